# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ----------------------------------------------------------------------
# Caller-input errors
# ----------------------------------------------------------------------

@dataclass(eq=False)
class ConfigurationError(Exception):
    """
    Structured input error with enough context for:
      - clean CLI output
      - an HTTP error body
      - pointing the caller at the offending field
    """
    kind: str
    field: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"field={self.field}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field, "message": self.message, "details": self.details}


class MalformedDescriptor(ConfigurationError):
    def __init__(self, field_name: str, message: str):
        super().__init__(kind="MalformedDescriptor", field=field_name, message=message)


class MissingProjectName(ConfigurationError):
    def __init__(self):
        super().__init__(kind="MissingProjectName", field="projectName", message="Project name is required")


class InvalidArchitecture(ConfigurationError):
    def __init__(self, tag: Any):
        super().__init__(
            kind="InvalidArchitecture",
            field="architecture",
            message=f"Unknown architecture {tag!r}",
            details={"tag": tag},
        )


class InvalidDeployStrategy(ConfigurationError):
    def __init__(self, tag: Any):
        super().__init__(
            kind="InvalidDeployStrategy",
            field="deployStrategy",
            message=f"Unknown deploy strategy {tag!r}",
            details={"tag": tag},
        )


class NoComponents(ConfigurationError):
    def __init__(self):
        super().__init__(kind="NoComponents", field="components", message="At least one component is required")


class ArchitectureArityMismatch(ConfigurationError):
    def __init__(self, architecture: str, count: int, expected: str):
        super().__init__(
            kind="ArchitectureArityMismatch",
            field="components",
            message=f"{architecture} requires {expected} component(s), got {count}",
            details={"architecture": architecture, "count": count},
        )


class UnsupportedLanguage(ConfigurationError):
    def __init__(self, component: str, language: Any):
        super().__init__(
            kind="UnsupportedLanguage",
            field=f"components[{component}].language",
            message=f"Component '{component}' uses unsupported language {language!r}",
            details={"component": component, "language": language},
        )


class DuplicateComponent(ConfigurationError):
    def __init__(self, component: str):
        super().__init__(
            kind="DuplicateComponent",
            field="components",
            message=f"Component identifier '{component}' is declared more than once",
            details={"component": component},
        )


class UnresolvedDependency(ConfigurationError):
    def __init__(self, component: str, dependency: str):
        super().__init__(
            kind="UnresolvedDependency",
            field=f"components[{component}].dependencies",
            message=f"Component '{component}' depends on unknown component '{dependency}'",
            details={"component": component, "dependency": dependency},
        )


class DependencyCycle(ConfigurationError):
    def __init__(self, components: list[str]):
        super().__init__(
            kind="DependencyCycle",
            field="components",
            message=f"Component dependencies form a cycle: {components}",
            details={"components": components},
        )


class DuplicateEnvironmentKey(ConfigurationError):
    def __init__(self, key: str):
        super().__init__(
            kind="DuplicateEnvironmentKey",
            field=f"environmentVariables[{key}]",
            message=f"Environment variable '{key}' is defined more than once",
            details={"key": key},
        )


class DuplicateKey(ConfigurationError):
    """Raised by the document loader when a mapping repeats a key."""
    def __init__(self, key: str, line: int | None = None):
        details = {"key": key}
        if line is not None:
            details["line"] = line
        super().__init__(
            kind="DuplicateKey",
            field=key,
            message=f"Key '{key}' appears more than once in the same mapping",
            details=details,
        )


# ----------------------------------------------------------------------
# Generator defects
# ----------------------------------------------------------------------

@dataclass(eq=False)
class InternalConsistencyError(Exception):
    """A bug in the topology/catalog pairing. Never degraded to partial output."""
    kind: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class NoActiveConfiguration(LookupError):
    """Lifecycle operation targeted a project with no active configuration."""

    def __init__(self, project_id: str):
        super().__init__(f"No active CI/CD configuration for project {project_id!r}")
        self.project_id = project_id


# ----------------------------------------------------------------------
# Non-fatal warnings
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class GenerationWarning:
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


def package_only_deploy_ignored(strategy: str) -> GenerationWarning:
    return GenerationWarning(
        kind="PackageOnlyDeployIgnored",
        message=f"EXTENSION pipelines are package-only; deploy strategy {strategy} was ignored",
    )


def dependencies_ignored(architecture: str, components: list[str]) -> GenerationWarning:
    return GenerationWarning(
        kind="DependenciesIgnored",
        message=(
            f"{architecture} pipelines have no per-component jobs; "
            f"dependencies declared by {components} were ignored"
        ),
    )

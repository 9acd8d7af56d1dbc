"""
Pipeline descriptor: the validated, immutable form of one generation request.

`parse_descriptor` checks the raw payload in a fixed order and raises the
first ConfigurationError it meets; nothing is constructed before every
check has passed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import catalog
from .dag import CycleError, build_dag, topo_levels
from .errors import (
    ArchitectureArityMismatch,
    DependencyCycle,
    DuplicateComponent,
    DuplicateEnvironmentKey,
    InvalidArchitecture,
    InvalidDeployStrategy,
    MalformedDescriptor,
    MissingProjectName,
    NoComponents,
    UnresolvedDependency,
    UnsupportedLanguage,
)


class Architecture(str, Enum):
    MONOLITH = "MONOLITH"
    MICROSERVICES = "MICROSERVICES"
    FULLSTACK = "FULLSTACK"
    EXTENSION = "EXTENSION"


class DeployStrategy(str, Enum):
    NONE = "NONE"
    STAGING = "STAGING"
    PRODUCTION = "PRODUCTION"
    DOCKER = "DOCKER"
    AWS_LAMBDA = "AWS_LAMBDA"


# architecture -> (min components, max components or None)
ARITY: Mapping[Architecture, Tuple[int, Optional[int]]] = {
    Architecture.MONOLITH: (1, None),
    Architecture.MICROSERVICES: (2, None),
    Architecture.FULLSTACK: (1, None),
    Architecture.EXTENSION: (1, 1),
}


@dataclass(frozen=True)
class LanguageComponent:
    """One buildable unit of a project."""

    name: str
    language: str
    directory: str = ""
    build_command: str = ""
    test_command: str = ""
    version: str = ""
    is_main: bool = False
    dependencies: Tuple[str, ...] = ()
    start_command: str = ""

    @property
    def id(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "language": self.language,
            "directory": self.directory,
            "buildCommand": self.build_command,
            "testCommand": self.test_command,
            "startCommand": self.start_command,
            "version": self.version,
            "isMain": self.is_main,
            "dependencies": list(self.dependencies),
        }


@dataclass(frozen=True)
class PipelineDescriptor:
    project_name: str
    architecture: Architecture
    deploy_strategy: DeployStrategy
    components: Tuple[LanguageComponent, ...]
    environment: Tuple[Tuple[str, str], ...] = ()

    @property
    def environment_variables(self) -> Dict[str, str]:
        return dict(self.environment)

    @property
    def deploys(self) -> bool:
        return self.deploy_strategy is not DeployStrategy.NONE

    def component(self, name: str) -> LanguageComponent:
        for c in self.components:
            if c.name == name:
                return c
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "architecture": self.architecture.value,
            "deployStrategy": self.deploy_strategy.value,
            "components": [c.to_dict() for c in self.components],
            "environmentVariables": self.environment_variables,
        }


# ---------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------

def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in raw:
            return raw[k]
    return None


def _component_name(raw: Mapping[str, Any]) -> str:
    return _text(raw.get("name")) or _text(raw.get("directory")) or _text(raw.get("language"))


def _parse_tag(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return None


def _environment_pairs(raw: Any) -> List[Tuple[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        return list(raw.items())
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        pairs: List[Tuple[str, Any]] = []
        for entry in raw:
            if isinstance(entry, Mapping) and "name" in entry:
                pairs.append((entry["name"], entry.get("value")))
            elif isinstance(entry, Sequence) and not isinstance(entry, (str, bytes)) and len(entry) == 2:
                pairs.append((entry[0], entry[1]))
            else:
                raise MalformedDescriptor(
                    "environmentVariables", f"Cannot read environment entry {entry!r}"
                )
        return pairs
    raise MalformedDescriptor("environmentVariables", "Expected a mapping or a list of {name, value} entries")


def _dependencies(raw: Mapping[str, Any], name: str) -> Tuple[str, ...]:
    deps = raw.get("dependencies")
    if deps is None:
        return ()
    if isinstance(deps, (str, bytes)) or not isinstance(deps, Sequence):
        raise MalformedDescriptor(f"components[{name}].dependencies", "Expected a list of component names")
    return tuple(_text(d) for d in deps)


def _check_dependencies(components: Sequence[Mapping[str, Any]], names: List[str]) -> Dict[str, Tuple[str, ...]]:
    seen = set()
    for n in names:
        if n in seen:
            raise DuplicateComponent(n)
        seen.add(n)

    edges: Dict[str, Tuple[str, ...]] = {}
    for raw, name in zip(components, names):
        deps = _dependencies(raw, name)
        for d in deps:
            if d not in seen:
                raise UnresolvedDependency(name, d)
        edges[name] = deps

    try:
        adj, indeg = build_dag(edges)
        topo_levels(adj, indeg)
    except CycleError as e:
        raise DependencyCycle(e.stuck) from e
    return edges


# ---------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------

def parse_descriptor(raw: Any) -> PipelineDescriptor:
    """
    Validate a caller payload and build a PipelineDescriptor.

    Order of checks:
      1. projectName
      2. architecture tag
      3. deployStrategy tag
      4. components present
      5. component count vs. architecture
      6. languages known to the catalog
      7. component ids unique, dependencies resolve and are acyclic
      8. environment keys unique
    """
    if isinstance(raw, PipelineDescriptor):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedDescriptor("payload", "Descriptor must be a mapping")

    project_name = _text(raw.get("projectName"))
    if not project_name:
        raise MissingProjectName()

    arch_tag = _first(raw, "architecture", "projectArchitecture")
    architecture = _parse_tag(Architecture, arch_tag)
    if architecture is None:
        raise InvalidArchitecture(arch_tag)

    deploy_tag = raw.get("deployStrategy")
    deploy_strategy = _parse_tag(DeployStrategy, deploy_tag)
    if deploy_strategy is None:
        raise InvalidDeployStrategy(deploy_tag)

    components = raw.get("components")
    if components is None or (isinstance(components, Sequence) and len(components) == 0):
        raise NoComponents()
    if isinstance(components, (str, bytes)) or not isinstance(components, Sequence):
        raise MalformedDescriptor("components", "Expected a list of components")
    for i, c in enumerate(components):
        if not isinstance(c, Mapping):
            raise MalformedDescriptor(f"components[{i}]", "Each component must be a mapping")

    low, high = ARITY[architecture]
    count = len(components)
    if count < low or (high is not None and count > high):
        expected = f"exactly {low}" if high == low else f"at least {low}"
        raise ArchitectureArityMismatch(architecture.value, count, expected)

    names = [_component_name(c) for c in components]
    for c, name in zip(components, names):
        if not catalog.is_supported(c.get("language")):
            raise UnsupportedLanguage(name, c.get("language"))
        # a number here has already lost digits (3.10 -> 3.1)
        if c.get("version") is not None and not isinstance(c.get("version"), str):
            raise MalformedDescriptor(f"components[{name}].version", "Quote the version string")

    edges = _check_dependencies(components, names)

    env: Dict[str, str] = {}
    for key, value in _environment_pairs(raw.get("environmentVariables")):
        key = _text(key)
        if key in env:
            raise DuplicateEnvironmentKey(key)
        env[key] = "" if value is None else str(value)

    parsed = tuple(
        LanguageComponent(
            name=name,
            language=catalog.normalize_language(c["language"]),
            directory=_text(c.get("directory")),
            build_command=_text(c.get("buildCommand")),
            test_command=_text(c.get("testCommand")),
            version=_text(c.get("version")),
            is_main=bool(_first(c, "isMain", "isMainComponent")),
            dependencies=edges[name],
            start_command=_text(c.get("startCommand")),
        )
        for c, name in zip(components, names)
    )

    return PipelineDescriptor(
        project_name=project_name,
        architecture=architecture,
        deploy_strategy=deploy_strategy,
        components=parsed,
        environment=tuple(env.items()),
    )

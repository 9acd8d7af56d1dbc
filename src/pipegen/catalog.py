"""Toolchain catalog: language identifiers mapped to setup/install/package templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .errors import InternalConsistencyError


@dataclass(frozen=True)
class ToolchainEntry:
    """Everything the assembler needs to prepare one toolchain on a runner."""

    id: str
    label: str
    setup_action: str
    version_key: Optional[str]
    default_version: Optional[str]
    setup_with: Mapping[str, str] = field(default_factory=dict)
    install_command: str = ""
    package_command: str = ""
    package_artifact: str = ""

    def version_for(self, requested: Optional[str]) -> Optional[str]:
        if self.version_key is None:
            return None
        return requested or self.default_version


_ENTRIES = (
    ToolchainEntry(
        id="node",
        label="Node.js",
        setup_action="actions/setup-node@v4",
        version_key="node-version",
        default_version="20.x",
        setup_with=MappingProxyType({"cache": "npm"}),
        install_command="npm ci",
        package_command="npx @vscode/vsce package",
        package_artifact="*.vsix",
    ),
    ToolchainEntry(
        id="python",
        label="Python",
        setup_action="actions/setup-python@v5",
        version_key="python-version",
        default_version="3.11",
        setup_with=MappingProxyType({"cache": "pip"}),
        install_command="python -m pip install --upgrade pip && pip install -r requirements.txt",
        package_command="python -m build",
        package_artifact="dist/*",
    ),
    ToolchainEntry(
        id="java",
        label="Java",
        setup_action="actions/setup-java@v4",
        version_key="java-version",
        default_version="17",
        setup_with=MappingProxyType({"distribution": "temurin", "cache": "maven"}),
        install_command="mvn -B dependency:resolve",
        package_command="mvn -B package -DskipTests",
        package_artifact="target/*.jar",
    ),
    ToolchainEntry(
        id="php",
        label="PHP",
        setup_action="shivammathur/setup-php@v2",
        version_key="php-version",
        default_version="8.2",
        setup_with=MappingProxyType({"tools": "composer"}),
        install_command="composer install --no-interaction --prefer-dist",
        package_command="composer archive --format=zip",
        package_artifact="*.zip",
    ),
    ToolchainEntry(
        id="docker",
        label="Docker Buildx",
        setup_action="docker/setup-buildx-action@v3",
        version_key=None,
        default_version=None,
        package_command="docker build -t $PROJECT_NAME . && docker save -o image.tar $PROJECT_NAME",
        package_artifact="image.tar",
    ),
)

TOOLCHAINS: Mapping[str, ToolchainEntry] = MappingProxyType({e.id: e for e in _ENTRIES})

# language identifier -> toolchain id
_ALIASES: Dict[str, str] = {
    # node family
    "node": "node",
    "nodejs": "node",
    "javascript": "node",
    "typescript": "node",
    # frontend frameworks / static sites build on node
    "react": "node",
    "vue": "node",
    "angular": "node",
    "svelte": "node",
    "nextjs": "node",
    "static": "node",
    # editor extensions are packaged with vsce
    "extension": "node",
    "vscode-extension": "node",
    # python family
    "python": "python",
    "django": "python",
    "flask": "python",
    "fastapi": "python",
    # java family
    "java": "java",
    "spring-boot": "java",
    "maven": "java",
    # php
    "php": "php",
    "laravel": "php",
    # container pseudo-language
    "docker": "docker",
    "container": "docker",
}
ALIASES: Mapping[str, str] = MappingProxyType(_ALIASES)


def normalize_language(language: str) -> str:
    return language.strip().lower()


def is_supported(language: object) -> bool:
    return isinstance(language, str) and normalize_language(language) in ALIASES


def resolve(language: str) -> ToolchainEntry:
    """
    Resolve a language identifier to its toolchain entry.

    Only called for languages that already passed validation, so a miss here
    means the alias table and the entries disagree.
    """
    key = normalize_language(language)
    try:
        return TOOLCHAINS[ALIASES[key]]
    except KeyError as exc:
        raise InternalConsistencyError(
            kind="CatalogMiss",
            message=f"No toolchain entry for validated language {language!r}",
            details={"language": language},
        ) from exc


def languages_by_toolchain() -> Dict[str, list[str]]:
    out: Dict[str, list[str]] = {tid: [] for tid in TOOLCHAINS}
    for alias, tid in ALIASES.items():
        out[tid].append(alias)
    return out

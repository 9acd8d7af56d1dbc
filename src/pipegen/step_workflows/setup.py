# step_workflows/setup.py
from __future__ import annotations

from typing import Dict, List, Sequence

from ..catalog import ToolchainEntry, resolve
from ..dsl import sh, uses
from ..model import Step


# ---------------------------------------------------------------------
# Per-component steps
# ---------------------------------------------------------------------

def _label(component) -> str:
    return component.directory or component.name


def _setup_with(entry: ToolchainEntry, version: str | None) -> Dict[str, str]:
    with_args: Dict[str, str] = {}
    if entry.version_key and version:
        with_args[entry.version_key] = version
    with_args.update(entry.setup_with)
    return with_args


def setup_step(component) -> Step:
    """Toolchain setup for one component, version falling back to the catalog default."""
    entry = resolve(component.language)
    return uses(
        f"Setup {entry.label} ({_label(component)})",
        entry.setup_action,
        with_args=_setup_with(entry, entry.version_for(component.version)),
    )


def install_step(component) -> Step | None:
    entry = resolve(component.language)
    if not entry.install_command:
        return None
    return sh(
        f"Install dependencies ({_label(component)})",
        entry.install_command,
        cwd=component.directory or None,
    )


def command_step(verb: str, component, command: str) -> Step | None:
    """Run a caller-supplied command verbatim; empty means the phase is skipped."""
    if not command:
        return None
    return sh(f"{verb} {_label(component)}", command, cwd=component.directory or None)


# ---------------------------------------------------------------------
# Matrix steps: one definition, selected per instance by `if:`
# ---------------------------------------------------------------------

def _toolchains(entries: Sequence[Dict[str, str]]) -> List[ToolchainEntry]:
    seen: List[str] = []
    for e in entries:
        if e["toolchain"] not in seen:
            seen.append(e["toolchain"])
    return [resolve(t) for t in seen]


def matrix_setup_steps(entries: Sequence[Dict[str, str]]) -> List[Step]:
    out: List[Step] = []
    for entry in _toolchains(entries):
        version = "${{ matrix.version }}" if entry.version_key else None
        out.append(
            uses(
                f"Setup {entry.label}",
                entry.setup_action,
                with_args=_setup_with(entry, version),
                condition=f"matrix.toolchain == '{entry.id}'",
            )
        )
    return out


def matrix_install_steps(entries: Sequence[Dict[str, str]]) -> List[Step]:
    return [
        sh(
            f"Install dependencies ({entry.label})",
            entry.install_command,
            cwd="${{ matrix.directory }}",
            condition=f"matrix.toolchain == '{entry.id}'",
        )
        for entry in _toolchains(entries)
        if entry.install_command
    ]


def matrix_command_step(verb: str, variable: str, entries: Sequence[Dict[str, str]]) -> Step | None:
    if not any(e[variable] for e in entries):
        return None
    return sh(
        f"{verb} ${{{{ matrix.service }}}}",
        f"${{{{ matrix.{variable} }}}}",
        cwd="${{ matrix.directory }}",
        condition=f"matrix.{variable} != ''",
    )

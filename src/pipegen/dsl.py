# src/pipegen/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .model import Intent, Job, JobGraph, Matrix, Step


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    env: Optional[Mapping[str, str]] = None,
    condition: str | None = None,
) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd, env=dict(env or {}), condition=condition)


def uses(
    name: str,
    action: str,
    *,
    with_args: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
    condition: str | None = None,
) -> Step:
    """Create a step that invokes a published action."""
    return Step(
        name=name,
        uses=action,
        with_args=dict(with_args or {}),
        env=dict(env or {}),
        condition=condition,
    )


def with_env(steps: Iterable[Step], env: Mapping[str, str]) -> List[Step]:
    """Overlay `env` onto every step; keys already on a step keep their position."""
    out: List[Step] = []
    for s in steps:
        merged = dict(s.env)
        merged.update(env)
        out.append(replace(s, env=merged))
    return out


# ---------------------------------------------------------------------
# Job helper
# ---------------------------------------------------------------------

def job(
    name: str,
    *intents: Intent,
    needs: Optional[List[str]] = None,
    matrix: Optional[Matrix] = None,
    condition: str | None = None,
    runs_on: str = "ubuntu-latest",
) -> Job:
    if not intents:
        raise ValueError(f"job({name!r}) must have at least one intent")

    return Job(
        name=name,
        intents=list(intents),
        needs=list(needs or []),
        matrix=matrix,
        condition=condition,
        runs_on=runs_on,
    )


# ---------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------

def matrix(key: str, values: Iterable[str], include: Iterable[Dict[str, str]] = ()) -> Matrix:
    """
    Example:
        matrix("service", ["api", "web"], include=[{"service": "api", "toolchain": "python"}])
    """
    return Matrix(key=key, values=tuple(values), include=tuple(dict(e) for e in include))


# ---------------------------------------------------------------------
# Workflow helper
# ---------------------------------------------------------------------

def wf(*jobs: Job) -> JobGraph:
    """Collect jobs into a graph, keeping declaration order."""
    return JobGraph(jobs=list(jobs))

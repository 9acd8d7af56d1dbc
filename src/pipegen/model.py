# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class Phase(str, Enum):
    """Abstract job intents expanded into concrete steps by the assembler."""
    SETUP = "setup"
    INSTALL = "install"
    TEST = "test"
    BUILD = "build"
    PACKAGE = "package"
    DEPLOY = "deploy"


@dataclass(frozen=True)
class Intent:
    """
    One abstract unit of work inside a job.

    `component` is None for deploy intents and for matrix jobs, where the
    component is chosen per matrix instance by the CI host.
    """
    phase: Phase
    component: Any = None


@dataclass(frozen=True)
class Step:
    """A single step inside a CI job: either a `run` command or a `uses` action."""
    name: str
    run: str | None = None
    uses: str | None = None
    with_args: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    condition: str | None = None


@dataclass(frozen=True)
class Matrix:
    """
    Matrix fan-out over one axis.

    `values` are the axis entries (component identifiers, in declaration order).
    `include` carries the per-entry variables the CI host merges into each instance.
    """
    key: str
    values: Tuple[str, ...]
    include: Tuple[Dict[str, str], ...] = ()


@dataclass
class Job:
    """
    A CI job: intents + dependencies, later expanded into steps.

    Canonical dependency field: `needs`
    """
    name: str
    steps: list[Step] = field(default_factory=list)
    needs: list[str] = field(default_factory=list)
    intents: list[Intent] = field(default_factory=list)
    matrix: Optional[Matrix] = None
    runs_on: str = "ubuntu-latest"
    condition: str | None = None


@dataclass
class JobGraph:
    """Ordered collection of jobs; list order is declaration order."""
    jobs: List[Job] = field(default_factory=list)

    def __iter__(self) -> Iterator[Job]:
        return iter(self.jobs)

    def __len__(self) -> int:
        return len(self.jobs)

    def __contains__(self, name: str) -> bool:
        return any(j.name == name for j in self.jobs)

    @property
    def names(self) -> list[str]:
        return [j.name for j in self.jobs]

    def get(self, name: str) -> Job:
        for j in self.jobs:
            if j.name == name:
                return j
        raise KeyError(name)

    def order_of(self, name: str) -> int:
        return self.names.index(name)

"""
Configuration lifecycle: at most one active generated pipeline per project.

Regenerating flips the current active record to inactive and inserts the new
one as a single unit per project; deleting flips it with no replacement.
History is append-only. A replacement is always fully generated before the
store is touched, so a rejected payload never deactivates anything.
"""

from __future__ import annotations

import itertools
import threading
from collections import Counter
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .errors import NoActiveConfiguration
from .generator import GenerationResult, configuration_json, generate
from .ui.console import get_console


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConfigurationRecord:
    project_id: str
    project_name: str
    architecture: str
    deploy_strategy: str
    pipeline_content: str
    configuration_json: str
    generated_at: datetime
    warnings: Tuple[str, ...] = ()
    is_active: bool = True
    id: Optional[str] = None
    updated_at: Optional[datetime] = None
    last_pipeline_status: Optional[str] = None
    last_pipeline_run: Optional[datetime] = None
    pipeline_run_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["warnings"] = list(self.warnings)
        for k in ("generated_at", "updated_at", "last_pipeline_run"):
            if out[k] is not None:
                out[k] = out[k].isoformat()
        return out


def prepare_record(project_id: str, payload: Any, generated_at: datetime) -> Tuple[ConfigurationRecord, GenerationResult]:
    """Validate + generate. Raises before anything is persisted."""
    result = generate(payload)
    d = result.descriptor
    record = ConfigurationRecord(
        project_id=str(project_id),
        project_name=d.project_name,
        architecture=d.architecture.value,
        deploy_strategy=d.deploy_strategy.value,
        pipeline_content=result.workflow,
        configuration_json=configuration_json(d, generated_at),
        generated_at=generated_at,
        warnings=tuple(w.kind for w in result.warnings),
    )
    return record, result


# ---------------------------------------------------------------------
# Pipeline run status (fed by the CI host's workflow_run events)
# ---------------------------------------------------------------------

RUNNING_ACTIONS = ("requested", "in_progress")
FAILED_CONCLUSIONS = ("failure", "cancelled", "timed_out")

StatusTransition = Callable[[ConfigurationRecord], ConfigurationRecord]


def apply_run_event(
    record: ConfigurationRecord,
    action: str,
    conclusion: Optional[str],
    at: datetime,
) -> ConfigurationRecord:
    if action in RUNNING_ACTIONS:
        return replace(record, last_pipeline_status="running", last_pipeline_run=at, updated_at=at)
    if action == "completed" and conclusion is not None:
        if conclusion == "success":
            status = "success"
        elif conclusion in FAILED_CONCLUSIONS:
            status = "failure"
        else:
            status = "unknown"
        return replace(
            record,
            last_pipeline_status=status,
            pipeline_run_count=record.pipeline_run_count + 1,
            updated_at=at,
        )
    return record


def run_transition(action: str, conclusion: Optional[str], at: datetime) -> StatusTransition:
    """Bind a run event so the store can apply it to whatever record is active under its lock."""
    return lambda record: apply_run_event(record, action, conclusion, at)


# ---------------------------------------------------------------------
# Dashboard statistics
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigurationStatistics:
    """Counts over active configurations only."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    running: int = 0
    never_run: int = 0
    architectures: Dict[str, int] = field(default_factory=dict)
    deploy_strategies: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_counts(
        cls,
        statuses: Mapping[Optional[str], int],
        architectures: Mapping[str, int],
        deploy_strategies: Mapping[str, int],
    ) -> "ConfigurationStatistics":
        return cls(
            total=sum(statuses.values()),
            successful=statuses.get("success", 0),
            failed=statuses.get("failure", 0),
            running=statuses.get("running", 0),
            never_run=statuses.get(None, 0),
            architectures=dict(sorted(architectures.items())),
            deploy_strategies=dict(sorted(deploy_strategies.items())),
        )

    @classmethod
    def of(cls, records: Iterable[ConfigurationRecord]) -> "ConfigurationStatistics":
        active = [r for r in records if r.is_active]
        return cls.from_counts(
            Counter(r.last_pipeline_status for r in active),
            Counter(r.architecture for r in active),
            Counter(r.deploy_strategy for r in active),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalConfigurations": self.total,
            "successfulRuns": self.successful,
            "failedRuns": self.failed,
            "runningPipelines": self.running,
            "neverRun": self.never_run,
            "architectures": dict(self.architectures),
            "deployStrategies": dict(self.deploy_strategies),
        }


# ---------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------

class ConfigurationStore(Protocol):
    def replace_active(self, record: ConfigurationRecord) -> Tuple[ConfigurationRecord, Optional[ConfigurationRecord]]:
        """Atomically deactivate the project's active record and insert `record`."""
        ...

    def deactivate_active(self, project_id: str, at: datetime) -> Optional[ConfigurationRecord]:
        ...

    def get_active(self, project_id: str) -> Optional[ConfigurationRecord]:
        ...

    def history(self, project_id: str) -> List[ConfigurationRecord]:
        """Newest first, in the order records superseded each other."""
        ...

    def update_status(self, project_id: str, transition: StatusTransition) -> Optional[ConfigurationRecord]:
        """Apply `transition` to the active record under the project lock; None when nothing is active."""
        ...

    def statistics(self) -> ConfigurationStatistics:
        ...


class AsyncConfigurationStore(Protocol):
    async def replace_active(self, record: ConfigurationRecord) -> Tuple[ConfigurationRecord, Optional[ConfigurationRecord]]:
        ...

    async def deactivate_active(self, project_id: str, at: datetime) -> Optional[ConfigurationRecord]:
        ...

    async def get_active(self, project_id: str) -> Optional[ConfigurationRecord]:
        ...

    async def history(self, project_id: str) -> List[ConfigurationRecord]:
        ...

    async def update_status(self, project_id: str, transition: StatusTransition) -> Optional[ConfigurationRecord]:
        ...

    async def statistics(self) -> ConfigurationStatistics:
        ...


class InMemoryConfigurationStore:
    """Process-local store; each project's transitions run under its own lock."""

    def __init__(self) -> None:
        self._records: Dict[str, List[ConfigurationRecord]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._ids = itertools.count(1)

    def _lock(self, project_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(project_id, threading.Lock())

    def _active_index(self, records: List[ConfigurationRecord]) -> Optional[int]:
        for i, r in enumerate(records):
            if r.is_active:
                return i
        return None

    def replace_active(self, record: ConfigurationRecord) -> Tuple[ConfigurationRecord, Optional[ConfigurationRecord]]:
        with self._lock(record.project_id):
            records = self._records.setdefault(record.project_id, [])
            previous = None
            idx = self._active_index(records)
            if idx is not None:
                previous = replace(records[idx], is_active=False, updated_at=record.generated_at)
                records[idx] = previous
            with self._guard:
                new_id = str(next(self._ids))
            inserted = replace(record, id=new_id, is_active=True)
            records.append(inserted)
            return inserted, previous

    def deactivate_active(self, project_id: str, at: datetime) -> Optional[ConfigurationRecord]:
        with self._lock(project_id):
            records = self._records.get(project_id, [])
            idx = self._active_index(records)
            if idx is None:
                return None
            records[idx] = replace(records[idx], is_active=False, updated_at=at)
            return records[idx]

    def get_active(self, project_id: str) -> Optional[ConfigurationRecord]:
        with self._lock(project_id):
            records = self._records.get(project_id, [])
            idx = self._active_index(records)
            return None if idx is None else records[idx]

    def history(self, project_id: str) -> List[ConfigurationRecord]:
        # insertion order is supersession order: inserts happen under the project lock
        with self._lock(project_id):
            return list(reversed(self._records.get(project_id, [])))

    def update_status(self, project_id: str, transition: StatusTransition) -> Optional[ConfigurationRecord]:
        with self._lock(project_id):
            records = self._records.get(project_id, [])
            idx = self._active_index(records)
            if idx is None:
                return None
            records[idx] = transition(records[idx])
            return records[idx]

    def statistics(self) -> ConfigurationStatistics:
        with self._guard:
            project_ids = list(self._records)
        active = [r for r in map(self.get_active, project_ids) if r is not None]
        return ConfigurationStatistics.of(active)


# ---------------------------------------------------------------------
# Managers
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Activation:
    record: ConfigurationRecord
    previous: Optional[ConfigurationRecord]
    result: GenerationResult


def _activated(project_id: str, active: ConfigurationRecord, previous: Optional[ConfigurationRecord], result: GenerationResult) -> Activation:
    console = get_console()
    if previous is not None:
        console.print_debug(f"Deactivated configuration {previous.id} for project {project_id}")
    console.print_debug(f"Activated configuration {active.id} for project {project_id}")
    return Activation(record=active, previous=previous, result=result)


def _deactivated(project_id: str, record: Optional[ConfigurationRecord]) -> ConfigurationRecord:
    if record is None:
        raise NoActiveConfiguration(project_id)
    get_console().print_debug(f"Deactivated configuration {record.id} for project {project_id}")
    return record


def _status_updated(project_id: str, record: Optional[ConfigurationRecord]) -> ConfigurationRecord:
    if record is None:
        raise NoActiveConfiguration(project_id)
    return record


class LifecycleManager:
    def __init__(self, store: ConfigurationStore, clock: Callable[[], datetime] = now_utc):
        self._store = store
        self._clock = clock

    def generate(self, project_id: str, payload: Any) -> Activation:
        """Create or replace the project's active configuration."""
        record, result = prepare_record(project_id, payload, self._clock())
        active, previous = self._store.replace_active(record)
        return _activated(project_id, active, previous, result)

    update = generate

    def delete(self, project_id: str) -> ConfigurationRecord:
        return _deactivated(project_id, self._store.deactivate_active(project_id, self._clock()))

    def active(self, project_id: str) -> Optional[ConfigurationRecord]:
        return self._store.get_active(project_id)

    def history(self, project_id: str) -> List[ConfigurationRecord]:
        return self._store.history(project_id)

    def record_run(self, project_id: str, action: str, conclusion: Optional[str] = None) -> ConfigurationRecord:
        transition = run_transition(action, conclusion, self._clock())
        return _status_updated(project_id, self._store.update_status(project_id, transition))

    def statistics(self) -> ConfigurationStatistics:
        return self._store.statistics()


class AsyncLifecycleManager:
    """Same transitions as LifecycleManager, over an async store (the HTTP control plane)."""

    def __init__(self, store: AsyncConfigurationStore, clock: Callable[[], datetime] = now_utc):
        self._store = store
        self._clock = clock

    async def generate(self, project_id: str, payload: Any) -> Activation:
        record, result = prepare_record(project_id, payload, self._clock())
        active, previous = await self._store.replace_active(record)
        return _activated(project_id, active, previous, result)

    update = generate

    async def delete(self, project_id: str) -> ConfigurationRecord:
        return _deactivated(project_id, await self._store.deactivate_active(project_id, self._clock()))

    async def active(self, project_id: str) -> Optional[ConfigurationRecord]:
        return await self._store.get_active(project_id)

    async def history(self, project_id: str) -> List[ConfigurationRecord]:
        return await self._store.history(project_id)

    async def record_run(self, project_id: str, action: str, conclusion: Optional[str] = None) -> ConfigurationRecord:
        transition = run_transition(action, conclusion, self._clock())
        return _status_updated(project_id, await self._store.update_status(project_id, transition))

    async def statistics(self) -> ConfigurationStatistics:
        return await self._store.statistics()

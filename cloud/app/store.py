from __future__ import annotations

from datetime import datetime
from typing import AsyncContextManager, Callable, List, Optional, Tuple

import sqlalchemy as sa

from pipegen.lifecycle import ConfigurationRecord, ConfigurationStatistics, StatusTransition

from .db import SessionLocal
from .models import CICDConfiguration
from .redislock import project_lock


def _active(project_id: str):
    return sa.select(CICDConfiguration).where(
        CICDConfiguration.project_id == project_id,
        CICDConfiguration.is_active.is_(True),
    )


class SqlConfigurationStore:
    """
    Postgres-backed store.

    Deactivate + insert run in one transaction, under a row lock on the
    current active record and a redis lock keyed by project id. The partial
    unique index on (project_id) WHERE is_active backs both.
    """

    def __init__(
        self,
        sessions=SessionLocal,
        lock: Callable[[str], AsyncContextManager[None]] = project_lock,
    ):
        self._sessions = sessions
        self._lock = lock

    async def replace_active(self, record: ConfigurationRecord) -> Tuple[ConfigurationRecord, Optional[ConfigurationRecord]]:
        async with self._lock(record.project_id):
            async with self._sessions() as s:
                async with s.begin():
                    current = (await s.execute(_active(record.project_id).with_for_update())).scalar_one_or_none()
                    previous = None
                    if current is not None:
                        current.is_active = False
                        current.updated_at = record.generated_at
                        # the old row must be inactive before the insert hits the unique index
                        await s.flush()
                        previous = current.to_record()

                    row = CICDConfiguration.from_record(record)
                    s.add(row)
                    await s.flush()
                    await s.refresh(row)
                    return row.to_record(), previous

    async def deactivate_active(self, project_id: str, at: datetime) -> Optional[ConfigurationRecord]:
        async with self._lock(project_id):
            async with self._sessions() as s:
                async with s.begin():
                    current = (await s.execute(_active(project_id).with_for_update())).scalar_one_or_none()
                    if current is None:
                        return None
                    current.is_active = False
                    current.updated_at = at
                    await s.flush()
                    return current.to_record()

    async def get_active(self, project_id: str) -> Optional[ConfigurationRecord]:
        async with self._sessions() as s:
            row = (await s.execute(_active(project_id))).scalar_one_or_none()
            return row.to_record() if row is not None else None

    async def history(self, project_id: str) -> List[ConfigurationRecord]:
        async with self._sessions() as s:
            q = (
                sa.select(CICDConfiguration)
                .where(CICDConfiguration.project_id == project_id)
                .order_by(CICDConfiguration.seq.desc())
            )
            return [row.to_record() for row in (await s.execute(q)).scalars()]

    async def update_status(self, project_id: str, transition: StatusTransition) -> Optional[ConfigurationRecord]:
        async with self._lock(project_id):
            async with self._sessions() as s:
                async with s.begin():
                    row = (await s.execute(_active(project_id).with_for_update())).scalar_one_or_none()
                    if row is None:
                        return None
                    current = row.to_record()
                    updated = transition(current)
                    if updated is current:
                        return current
                    row.last_pipeline_status = updated.last_pipeline_status
                    row.last_pipeline_run = updated.last_pipeline_run
                    row.pipeline_run_count = updated.pipeline_run_count
                    row.updated_at = updated.updated_at
                    await s.flush()
                    return row.to_record()

    async def statistics(self) -> ConfigurationStatistics:
        async with self._sessions() as s:
            counts = []
            for column in (
                CICDConfiguration.last_pipeline_status,
                CICDConfiguration.architecture,
                CICDConfiguration.deploy_strategy,
            ):
                q = (
                    sa.select(column, sa.func.count())
                    .where(CICDConfiguration.is_active.is_(True))
                    .group_by(column)
                )
                counts.append({key: n for key, n in (await s.execute(q)).all()})
            return ConfigurationStatistics.from_counts(*counts)

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from datetime import datetime

from pipegen.lifecycle import ConfigurationRecord

class Base(DeclarativeBase):
    pass

class CICDConfiguration(Base):
    __tablename__ = "cicd_configurations"
    __table_args__ = (
        # at most one active configuration per project
        sa.Index(
            "uq_cicd_configurations_active_project",
            "project_id",
            unique=True,
            postgresql_where=sa.text("is_active"),
        ),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))
    # insert order; assigned inside the locked replace transaction, so it is supersession order
    seq: Mapped[int] = mapped_column(sa.BigInteger, sa.Identity(always=True), nullable=False, unique=True)
    project_id: Mapped[str] = mapped_column(sa.Text, nullable=False, index=True)
    project_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    architecture: Mapped[str] = mapped_column(sa.Text, nullable=False)
    deploy_strategy: Mapped[str] = mapped_column(sa.Text, nullable=False)
    pipeline_content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    configuration_json: Mapped[str] = mapped_column(sa.Text, nullable=False)
    warnings: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=sa.text("'[]'::jsonb"))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())
    generated_at: Mapped[datetime] = mapped_column(sa.TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(sa.TIMESTAMP(timezone=True), nullable=True)
    last_pipeline_status: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    last_pipeline_run: Mapped[datetime | None] = mapped_column(sa.TIMESTAMP(timezone=True), nullable=True)
    pipeline_run_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default=sa.text("0"))

    @classmethod
    def from_record(cls, record: ConfigurationRecord) -> "CICDConfiguration":
        return cls(
            project_id=record.project_id,
            project_name=record.project_name,
            architecture=record.architecture,
            deploy_strategy=record.deploy_strategy,
            pipeline_content=record.pipeline_content,
            configuration_json=record.configuration_json,
            warnings=list(record.warnings),
            is_active=True,
            generated_at=record.generated_at,
            pipeline_run_count=0,
        )

    def to_record(self) -> ConfigurationRecord:
        return ConfigurationRecord(
            id=str(self.id),
            project_id=self.project_id,
            project_name=self.project_name,
            architecture=self.architecture,
            deploy_strategy=self.deploy_strategy,
            pipeline_content=self.pipeline_content,
            configuration_json=self.configuration_json,
            warnings=tuple(self.warnings or ()),
            is_active=self.is_active,
            generated_at=self.generated_at,
            updated_at=self.updated_at,
            last_pipeline_status=self.last_pipeline_status,
            last_pipeline_run=self.last_pipeline_run,
            pipeline_run_count=self.pipeline_run_count or 0,
        )

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from pipegen import catalog
from pipegen.descriptor import Architecture, DeployStrategy
from pipegen.errors import ConfigurationError, InternalConsistencyError, NoActiveConfiguration
from pipegen.lifecycle import AsyncLifecycleManager, ConfigurationRecord

from .db import init_models
from .redislock import LockTimeout
from .store import SqlConfigurationStore

app = FastAPI(title="pipegen CI/CD Configuration Service")

# -------------------- Schemas --------------------

class GenerateRequest(BaseModel):
    # Loose on purpose: field checks run in parse_descriptor, in a fixed order.
    model_config = ConfigDict(extra="allow")

    projectName: Any = None
    architecture: Any = None
    deployStrategy: Any = None
    components: Any = None
    environmentVariables: Any = None

class WarningResponse(BaseModel):
    kind: str
    message: str

class RecordResponse(BaseModel):
    id: str
    project_id: str
    project_name: str
    architecture: str
    deploy_strategy: str
    is_active: bool
    pipeline_content: str
    configuration_json: str
    warnings: list[str]
    generated_at: datetime
    updated_at: datetime | None
    last_pipeline_status: str | None
    last_pipeline_run: datetime | None
    pipeline_run_count: int

    @classmethod
    def from_record(cls, record: ConfigurationRecord) -> "RecordResponse":
        return cls(**{**record.__dict__, "warnings": list(record.warnings)})

class GenerateResponse(BaseModel):
    record: RecordResponse
    previous_id: str | None
    warnings: list[WarningResponse] = Field(default_factory=list)

class RunEventRequest(BaseModel):
    action: str  # requested|in_progress|completed
    conclusion: str | None = None

# -------------------- Dependencies --------------------

def get_store() -> SqlConfigurationStore:
    return SqlConfigurationStore()

def get_manager(store: SqlConfigurationStore = Depends(get_store)) -> AsyncLifecycleManager:
    return AsyncLifecycleManager(store)

# -------------------- Startup / errors --------------------

@app.on_event("startup")
async def startup() -> None:
    await init_models()

@app.exception_handler(ConfigurationError)
async def configuration_error(_request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})

@app.exception_handler(InternalConsistencyError)
async def internal_error(_request: Request, exc: InternalConsistencyError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": {"kind": exc.kind, "message": exc.message}})

@app.exception_handler(NoActiveConfiguration)
async def no_active(_request: Request, exc: NoActiveConfiguration) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(LockTimeout)
async def lock_timeout(_request: Request, exc: LockTimeout) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})

# -------------------- Endpoints --------------------

@app.post("/projects/{project_id}/cicd", response_model=GenerateResponse, status_code=201)
async def generate_config(project_id: str, req: GenerateRequest, manager: AsyncLifecycleManager = Depends(get_manager)):
    activation = await manager.generate(project_id, req.model_dump(exclude_unset=True))
    return GenerateResponse(
        record=RecordResponse.from_record(activation.record),
        previous_id=activation.previous.id if activation.previous else None,
        warnings=[WarningResponse(kind=w.kind, message=w.message) for w in activation.result.warnings],
    )

@app.get("/projects/{project_id}/cicd", response_model=RecordResponse)
async def get_config(project_id: str, manager: AsyncLifecycleManager = Depends(get_manager)):
    record = await manager.active(project_id)
    if record is None:
        raise NoActiveConfiguration(project_id)
    return RecordResponse.from_record(record)

@app.get("/projects/{project_id}/cicd/history", response_model=list[RecordResponse])
async def get_history(project_id: str, manager: AsyncLifecycleManager = Depends(get_manager)):
    return [RecordResponse.from_record(r) for r in await manager.history(project_id)]

@app.delete("/projects/{project_id}/cicd", response_model=RecordResponse)
async def delete_config(project_id: str, manager: AsyncLifecycleManager = Depends(get_manager)):
    return RecordResponse.from_record(await manager.delete(project_id))

@app.post("/projects/{project_id}/cicd/runs", response_model=RecordResponse)
async def record_run(project_id: str, req: RunEventRequest, manager: AsyncLifecycleManager = Depends(get_manager)):
    return RecordResponse.from_record(await manager.record_run(project_id, req.action, req.conclusion))

@app.get("/cicd/statistics")
async def statistics(manager: AsyncLifecycleManager = Depends(get_manager)):
    return (await manager.statistics()).to_dict()

@app.get("/cicd/options")
async def options():
    return {
        "architectures": [a.value for a in Architecture],
        "deployStrategies": [s.value for s in DeployStrategy],
        "languages": catalog.languages_by_toolchain(),
    }

"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the execution coordinator and the
execution audit store.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from workflow_engine import __version__
from workflow_engine.engine.factory import EngineFactory
from workflow_engine.engine.workflow.audit_store import ExecutionRecord, ExecutionStore
from workflow_engine.engine.workflow.coordinator import ExecutionCoordinator
from workflow_engine.engine.workflow.errors import (
    ExecutionStoreError,
    PreExecutionError,
    TriggerInactive,
    TriggerNotFound,
)
from workflow_engine.engine.workflow.events import TriggerEvent
from workflow_engine.server.config import ServerSettings
from workflow_engine.server.models import ApiExecution, ExecuteRequest, ExecuteResponse

logger = logging.getLogger(__name__)


def _to_api_execution(record: ExecutionRecord) -> ApiExecution:
    return ApiExecution.model_validate(record.model_dump(mode="json"))


def create_app(
    *,
    settings: ServerSettings | None = None,
    coordinator: ExecutionCoordinator | None = None,
    execution_store: ExecutionStore | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Workflow Trigger Engine",
        version=__version__,
        description="Runs the configured actions of a workflow trigger and records the outcome.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = execution_store or EngineFactory.create_execution_store(settings)
    engine = coordinator or EngineFactory.create_coordinator(settings, execution_store=store)

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/workflow/execute", response_model=ExecuteResponse)
    def execute_workflow(req: ExecuteRequest) -> ExecuteResponse:
        event = TriggerEvent(
            trigger_id=req.trigger_id,
            context=req.context_data or {},
            event_type=req.event_type,
            resource_id=req.resource_id,
        )
        try:
            result = engine.handle(event)
        except (TriggerNotFound, TriggerInactive) as e:
            raise HTTPException(status_code=404, detail="Trigger not found or inactive") from e
        except (PreExecutionError, ExecutionStoreError) as e:
            logger.error(
                "Workflow execution error", extra={"trigger_id": req.trigger_id, "error": str(e)}
            )
            raise HTTPException(status_code=500, detail=str(e)) from e

        return ExecuteResponse(
            execution_id=result.execution_id,
            status=result.status.value,
            executed_actions=result.executed_actions,
            failed_actions=result.failed_actions,
        )

    @app.get("/api/v1/executions", response_model=list[ApiExecution])
    def list_executions(trigger_id: str | None = None) -> list[ApiExecution]:
        try:
            records = store.list_executions(trigger_id=trigger_id)
        except ExecutionStoreError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return [_to_api_execution(r) for r in records]

    @app.get("/api/v1/executions/{execution_id}", response_model=ApiExecution)
    def get_execution(execution_id: str) -> ApiExecution:
        try:
            record = store.get_execution(execution_id)
        except ExecutionStoreError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        if record is None:
            raise HTTPException(status_code=404, detail="Execution not found")
        return _to_api_execution(record)

    return app

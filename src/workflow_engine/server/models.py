"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ExecutionStatusName = Literal["pending", "completed", "partial", "failed"]


class ExecuteRequest(BaseModel):
    trigger_id: str = Field(min_length=1)
    context_data: dict[str, Any] | None = None
    event_type: str | None = None
    resource_id: str | None = None


class ExecuteResponse(BaseModel):
    success: bool = True
    execution_id: str
    status: ExecutionStatusName
    executed_actions: int
    failed_actions: int


class ApiExecution(BaseModel):
    id: str
    trigger_id: str
    status: ExecutionStatusName
    execution_log: dict[str, Any] = Field(default_factory=dict)
    triggered_at: str
    completed_at: str | None = None
    error_message: str | None = None

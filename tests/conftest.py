"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from workflow_engine.engine.config import EngineSettings
from workflow_engine.engine.email.client import EmailMessage, EmailSendResult
from workflow_engine.engine.workflow.actions import default_executors
from workflow_engine.engine.workflow.audit_store import InMemoryExecutionStore
from workflow_engine.engine.workflow.coordinator import ExecutionCoordinator
from workflow_engine.engine.workflow.models import Customer, EmailTemplate, Trigger, WorkflowAction
from workflow_engine.engine.workflow.record_store import InMemoryRecordStore
from workflow_engine.engine.workflow.repository import InMemoryWorkflowRepository

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class FakeEmailSender:
    """Records messages instead of sending them."""

    def __init__(self, *, ok: bool = True, message: str = "sent") -> None:
        self.ok = ok
        self.message = message
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> EmailSendResult:
        self.sent.append(message)
        if not self.ok:
            return EmailSendResult(ok=False, message=self.message)
        return EmailSendResult(ok=True, message=self.message, message_id=f"msg-{len(self.sent)}")


def make_action(
    action_id: str,
    action_type: str,
    *,
    trigger_id: str = "trg-1",
    order: int = 0,
    config: dict[str, Any] | None = None,
    delay_minutes: int = 0,
) -> WorkflowAction:
    return WorkflowAction.model_validate(
        {
            "id": action_id,
            "trigger_id": trigger_id,
            "action_type": action_type,
            "action_config": config or {},
            "action_order": order,
            "delay_minutes": delay_minutes,
        }
    )


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture(name="make_action")
def make_action_fixture() -> Callable[..., WorkflowAction]:
    return make_action


@pytest.fixture
def make_email_sender() -> Callable[..., FakeEmailSender]:
    return FakeEmailSender


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.insert("work_orders", {"id": "wo-1", "status": "open", "priority": "low"})
    return store


@pytest.fixture
def execution_store() -> InMemoryExecutionStore:
    return InMemoryExecutionStore()


@pytest.fixture
def build_repository() -> Callable[..., InMemoryWorkflowRepository]:
    def _build(
        actions: list[WorkflowAction] | None = None,
        *,
        triggers: list[Trigger] | None = None,
        email_templates: list[EmailTemplate] | None = None,
        customers: list[Customer] | None = None,
    ) -> InMemoryWorkflowRepository:
        return InMemoryWorkflowRepository(
            triggers=triggers if triggers is not None else [Trigger(id="trg-1", name="Test")],
            actions=actions or [],
            email_templates=email_templates or [],
            customers=customers or [],
        )

    return _build


@pytest.fixture
def build_coordinator(
    execution_store: InMemoryExecutionStore,
    record_store: InMemoryRecordStore,
    email_sender: FakeEmailSender,
    fixed_now: Callable[[], datetime],
) -> Callable[[InMemoryWorkflowRepository], ExecutionCoordinator]:
    def _build(repository: InMemoryWorkflowRepository) -> ExecutionCoordinator:
        return ExecutionCoordinator(
            repository=repository,
            execution_store=execution_store,
            executors=default_executors(
                repository=repository,
                records=record_store,
                email_sender=email_sender,
                default_from_email="noreply@example.com",
                now=fixed_now,
            ),
            clock=fixed_now,
        )

    return _build


@pytest.fixture
def engine_settings(tmp_path: Path) -> EngineSettings:
    return EngineSettings(
        _env_file=None,
        RESEND_API_KEY="",
        WORKFLOW_DATA_PATH=str(tmp_path / "workflow_data"),
    )

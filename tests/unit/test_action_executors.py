"""Unit tests for the per-kind action executors."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from workflow_engine.engine.workflow.actions import (
    CreateTaskExecutor,
    SendEmailExecutor,
    SendNotificationExecutor,
    UpdateRecordExecutor,
)
from workflow_engine.engine.workflow.errors import (
    EmailNotConfigured,
    EmailSendFailed,
    MissingTargetReference,
    NoRecipient,
    NotificationFailed,
    RecordUpdateFailed,
    TaskCreationFailed,
)
from workflow_engine.engine.workflow.models import (
    CreateTaskConfig,
    Customer,
    EmailTemplate,
    SendEmailConfig,
    SendNotificationConfig,
    UpdateWorkOrderConfig,
)
from workflow_engine.engine.workflow.record_store import InMemoryRecordStore, RecordStore
from workflow_engine.engine.workflow.repository import InMemoryWorkflowRepository, WorkflowRepository

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _now() -> datetime:
    return FIXED_NOW


# -- send email ---------------------------------------------------------------


def test_send_email_substitutes_inline_content(make_email_sender) -> None:
    sender = make_email_sender()
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(),
        sender=sender,
        default_from_email="noreply@example.com",
    )

    executor.execute(
        SendEmailConfig(
            subject="Order {{order_id}}",
            body="<p>Hello {{name}}</p>",
            recipient_email="ops@example.com",
        ),
        {"order_id": "A-1", "name": "Ada"},
    )

    assert len(sender.sent) == 1
    message = sender.sent[0]
    assert message.subject == "Order A-1"
    assert message.html == "<p>Hello Ada</p>"
    assert message.to == ["ops@example.com"]
    assert message.from_email == "noreply@example.com"


def test_send_email_uses_defaults_and_custom_sender(make_email_sender) -> None:
    sender = make_email_sender()
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(), sender=sender, default_from_email="d@example.com"
    )

    executor.execute(
        SendEmailConfig(recipient_email="x@example.com", from_email="team@example.com"), {}
    )

    message = sender.sent[0]
    assert message.subject == "Notification"
    assert message.html == "You have a new notification."
    assert message.from_email == "team@example.com"


def test_send_email_prefers_stored_template(make_email_sender) -> None:
    sender = make_email_sender()
    repository = InMemoryWorkflowRepository(
        email_templates=[
            EmailTemplate(id="tpl-1", subject="Welcome {{name}}", content="Body for {{name}}")
        ]
    )
    executor = SendEmailExecutor(repository=repository, sender=sender, default_from_email="d@x.io")

    executor.execute(
        SendEmailConfig(template_id="tpl-1", subject="inline", recipient_email="a@x.io"),
        {"name": "Linus"},
    )

    assert sender.sent[0].subject == "Welcome Linus"
    assert sender.sent[0].html == "Body for Linus"


def test_send_email_falls_back_when_template_lookup_fails(make_email_sender) -> None:
    sender = make_email_sender()
    repository = Mock(spec=WorkflowRepository)
    repository.get_email_template.side_effect = RuntimeError("db down")
    executor = SendEmailExecutor(repository=repository, sender=sender, default_from_email="d@x.io")

    executor.execute(
        SendEmailConfig(template_id="tpl-x", subject="Inline", recipient_email="a@x.io"), {}
    )

    assert sender.sent[0].subject == "Inline"
    assert sender.sent[0].html == "You have a new notification."


def test_send_email_falls_back_when_template_missing(make_email_sender) -> None:
    sender = make_email_sender()
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(), sender=sender, default_from_email="d@x.io"
    )

    executor.execute(SendEmailConfig(template_id="nope", recipient_email="a@x.io"), {})

    assert sender.sent[0].subject == "Notification"


def test_send_email_resolves_customer_recipient(make_email_sender) -> None:
    sender = make_email_sender()
    repository = InMemoryWorkflowRepository(
        customers=[Customer(id="c-1", name="Ada", email="ada@example.com")]
    )
    executor = SendEmailExecutor(repository=repository, sender=sender, default_from_email="d@x.io")

    executor.execute(
        SendEmailConfig(recipient_type="customer", recipient_email="fallback@example.com"),
        {"customer_id": "c-1"},
    )

    assert sender.sent[0].to == ["ada@example.com"]


def test_send_email_keeps_explicit_recipient_when_customer_has_no_email(make_email_sender) -> None:
    sender = make_email_sender()
    repository = InMemoryWorkflowRepository(customers=[Customer(id="c-1", email=None)])
    executor = SendEmailExecutor(repository=repository, sender=sender, default_from_email="d@x.io")

    executor.execute(
        SendEmailConfig(recipient_type="customer", recipient_email="fallback@example.com"),
        {"customer_id": "c-1"},
    )

    assert sender.sent[0].to == ["fallback@example.com"]


def test_send_email_without_any_recipient_fails(make_email_sender) -> None:
    sender = make_email_sender()
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(), sender=sender, default_from_email="d@x.io"
    )

    with pytest.raises(NoRecipient):
        executor.execute(SendEmailConfig(recipient_type="customer"), {"customer_id": "missing"})
    assert sender.sent == []


def test_send_email_provider_rejection_is_a_hard_failure(make_email_sender) -> None:
    sender = make_email_sender(ok=False, message="domain not verified")
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(), sender=sender, default_from_email="d@x.io"
    )

    with pytest.raises(EmailSendFailed, match="domain not verified"):
        executor.execute(SendEmailConfig(recipient_email="a@x.io"), {})


def test_send_email_without_sender_is_not_configured() -> None:
    executor = SendEmailExecutor(
        repository=InMemoryWorkflowRepository(), sender=None, default_from_email="d@x.io"
    )

    with pytest.raises(EmailNotConfigured):
        executor.execute(SendEmailConfig(recipient_email="a@x.io"), {})


# -- create task --------------------------------------------------------------


def test_create_task_builds_reminder_record() -> None:
    records = InMemoryRecordStore()
    executor = CreateTaskExecutor(records=records, now=_now)

    executor.execute(
        CreateTaskConfig(
            title="Follow up {{customer_name}}",
            description="WO {{work_order_id}}",
            assigned_to="user-7",
            due_date=2,
        ),
        {"customer_name": "Ada", "work_order_id": "wo-1", "customer_id": "c-1"},
    )

    [task] = records.records["reminders"]
    assert task["title"] == "Follow up Ada"
    assert task["description"] == "WO wo-1"
    assert task["assigned_to"] == "user-7"
    assert task["priority"] == "medium"
    assert task["due_date"] == "2025-01-03T12:00:00+00:00"
    assert task["work_order_id"] == "wo-1"
    assert task["customer_id"] == "c-1"
    assert task["created_at"] == FIXED_NOW.isoformat()


def test_create_task_defaults() -> None:
    records = InMemoryRecordStore()
    CreateTaskExecutor(records=records, now=_now).execute(CreateTaskConfig(), {})

    [task] = records.records["reminders"]
    assert task["title"] == "Automated Task"
    assert task["description"] == ""
    assert task["due_date"] is None
    assert task["work_order_id"] is None


def test_create_task_persistence_error_is_wrapped() -> None:
    records = Mock(spec=RecordStore)
    records.insert.side_effect = OSError("disk full")

    with pytest.raises(TaskCreationFailed, match="disk full"):
        CreateTaskExecutor(records=records, now=_now).execute(CreateTaskConfig(title="T"), {})


# -- update record ------------------------------------------------------------


def test_update_record_applies_configured_fields() -> None:
    records = InMemoryRecordStore()
    records.insert("work_orders", {"id": "wo-1", "status": "open"})

    UpdateRecordExecutor(records=records, now=_now).execute(
        UpdateWorkOrderConfig(status="in_progress", notes="Picked up by {{tech}}"),
        {"work_order_id": "wo-1", "tech": "Sam"},
    )

    work_order = records.get("work_orders", "wo-1")
    assert work_order is not None
    assert work_order["status"] == "in_progress"
    assert work_order["notes"] == "Picked up by Sam"
    assert work_order["updated_at"] == FIXED_NOW.isoformat()
    assert "priority" not in work_order


def test_update_record_requires_target_reference() -> None:
    records = Mock(spec=RecordStore)

    with pytest.raises(MissingTargetReference):
        UpdateRecordExecutor(records=records, now=_now).execute(
            UpdateWorkOrderConfig(status="closed"), {"customer_id": "c-1"}
        )
    records.update_fields.assert_not_called()


def test_update_record_without_fields_is_a_noop_success() -> None:
    records = Mock(spec=RecordStore)

    UpdateRecordExecutor(records=records, now=_now).execute(
        UpdateWorkOrderConfig(), {"work_order_id": "wo-1"}
    )

    records.update_fields.assert_not_called()


def test_update_record_unknown_target_is_wrapped() -> None:
    with pytest.raises(RecordUpdateFailed):
        UpdateRecordExecutor(records=InMemoryRecordStore(), now=_now).execute(
            UpdateWorkOrderConfig(priority="high"), {"work_order_id": "missing"}
        )


# -- send notification --------------------------------------------------------


def test_send_notification_uses_context_assignee_fallback() -> None:
    records = InMemoryRecordStore()

    SendNotificationExecutor(records=records, now=_now).execute(
        SendNotificationConfig(title="WO {{work_order_id}}", message="Status: {{status}}"),
        {"work_order_id": "wo-1", "status": "done", "assigned_to": "user-3"},
    )

    [notification] = records.records["notifications"]
    assert notification["title"] == "WO wo-1"
    assert notification["message"] == "Status: done"
    assert notification["type"] == "info"
    assert notification["user_id"] == "user-3"


def test_send_notification_prefers_configured_user() -> None:
    records = InMemoryRecordStore()

    SendNotificationExecutor(records=records, now=_now).execute(
        SendNotificationConfig(user_id="user-1", type="warning"), {"assigned_to": "user-3"}
    )

    [notification] = records.records["notifications"]
    assert notification["user_id"] == "user-1"
    assert notification["type"] == "warning"
    assert notification["title"] == "Notification"


def test_send_notification_without_recipient_fails() -> None:
    records = Mock(spec=RecordStore)

    with pytest.raises(NoRecipient):
        SendNotificationExecutor(records=records, now=_now).execute(SendNotificationConfig(), {})
    records.insert.assert_not_called()


def test_send_notification_persistence_error_is_wrapped() -> None:
    records = Mock(spec=RecordStore)
    records.insert.side_effect = RuntimeError("constraint violation")

    with pytest.raises(NotificationFailed):
        SendNotificationExecutor(records=records, now=_now).execute(
            SendNotificationConfig(user_id="u-1"), {}
        )


def test_create_task_zero_due_date_means_no_due_date() -> None:
    records = InMemoryRecordStore()
    CreateTaskExecutor(records=records, now=_now).execute(CreateTaskConfig(due_date=0), {})

    [task] = records.records["reminders"]
    assert task["due_date"] is None


def test_explicit_null_defaults_load_and_fall_back(make_action) -> None:
    task_action = make_action("t", "create_task", config={"title": "T", "priority": None})
    note_action = make_action("n", "send_notification", config={"user_id": "u-1", "type": None})
    records = InMemoryRecordStore()

    CreateTaskExecutor(records=records, now=_now).execute(task_action.action_config, {})
    SendNotificationExecutor(records=records, now=_now).execute(note_action.action_config, {})

    assert records.records["reminders"][0]["priority"] == "medium"
    assert records.records["notifications"][0]["type"] == "info"

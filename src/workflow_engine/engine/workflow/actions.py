"""Action executors: one per action kind.

Every executor follows the same shape: resolve dynamic values, perform exactly one
external effect, return. Failures are raised as `ActionExecutionError` subclasses and
are never swallowed here; isolating them is the coordinator's job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from workflow_engine.engine.email.client import EmailMessage, EmailSender
from workflow_engine.engine.placeholders import missing_placeholders, substitute

from .errors import (
    EmailNotConfigured,
    EmailSendFailed,
    MissingTargetReference,
    NoRecipient,
    NotificationFailed,
    RecordUpdateFailed,
    TaskCreationFailed,
)
from .models import (
    ActionType,
    CreateTaskConfig,
    SendEmailConfig,
    SendNotificationConfig,
    UpdateWorkOrderConfig,
)
from .record_store import RecordStore
from .repository import WorkflowRepository

logger = logging.getLogger(__name__)

RunContext = Mapping[str, object]

DEFAULT_EMAIL_SUBJECT = "Notification"
DEFAULT_EMAIL_BODY = "You have a new notification."
DEFAULT_TASK_TITLE = "Automated Task"
DEFAULT_NOTIFICATION_TITLE = "Notification"

TASKS_RESOURCE = "reminders"
NOTIFICATIONS_RESOURCE = "notifications"
WORK_ORDERS_RESOURCE = "work_orders"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _context_str(context: RunContext, key: str) -> str | None:
    value = context.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _render(template: str, context: RunContext, *, field_name: str) -> str:
    missing = missing_placeholders(template, context)
    if missing:
        logger.warning(
            "Unresolved placeholders left in content",
            extra={"field": field_name, "placeholders": missing},
        )
    return substitute(template, context) or ""


class ActionExecutor(Protocol):
    """Performs the single external effect of one action kind."""

    def execute(self, config: Any, context: RunContext) -> None: ...


@dataclass(frozen=True, slots=True)
class SendEmailExecutor:
    """Send a transactional email.

    Content comes from a stored template when `template_id` resolves, otherwise from
    the inline subject/body (or defaults). The recipient is the explicit address, or
    the customer's address when `recipient_type == "customer"` and the context
    carries a `customer_id`.
    """

    repository: WorkflowRepository
    sender: EmailSender | None
    default_from_email: str

    def execute(self, config: SendEmailConfig, context: RunContext) -> None:
        if self.sender is None:
            raise EmailNotConfigured("Email delivery is not configured (RESEND_API_KEY missing)")

        subject, body = self._resolve_content(config)
        subject = _render(subject, context, field_name="subject")
        body = _render(body, context, field_name="body")

        recipient = self._resolve_recipient(config, context)
        if not recipient:
            raise NoRecipient("No recipient email found")

        message = EmailMessage(
            from_email=config.from_email or self.default_from_email,
            to=[recipient],
            subject=subject,
            html=body,
        )
        result = self.sender.send(message)
        if not result.ok:
            raise EmailSendFailed(f"Email send failed: {result.message}")

        logger.info(
            "Email sent", extra={"recipient": recipient, "message_id": result.message_id}
        )

    def _resolve_content(self, config: SendEmailConfig) -> tuple[str, str]:
        subject = config.subject or DEFAULT_EMAIL_SUBJECT
        body = config.body or DEFAULT_EMAIL_BODY
        if not config.template_id:
            return subject, body

        try:
            template = self.repository.get_email_template(config.template_id)
        except Exception:
            # Lookup failures fall back to inline content.
            logger.warning(
                "Email template lookup failed; using inline content",
                extra={"template_id": config.template_id},
                exc_info=True,
            )
            return subject, body

        if template is None:
            logger.warning(
                "Email template not found; using inline content",
                extra={"template_id": config.template_id},
            )
            return subject, body
        return template.subject, template.content

    def _resolve_recipient(self, config: SendEmailConfig, context: RunContext) -> str | None:
        recipient = config.recipient_email
        customer_id = _context_str(context, "customer_id")
        if config.recipient_type == "customer" and customer_id is not None:
            customer = self.repository.get_customer(customer_id)
            if customer is not None and customer.email:
                recipient = customer.email
        return recipient


@dataclass(frozen=True, slots=True)
class CreateTaskExecutor:
    """Create a reminder/task record."""

    records: RecordStore
    now: Callable[[], datetime] = field(default=_utc_now)

    def execute(self, config: CreateTaskConfig, context: RunContext) -> None:
        created = self.now()
        due_date = (
            (created + timedelta(days=config.due_date)).isoformat()
            if config.due_date
            else None
        )
        task = {
            "title": _render(config.title or DEFAULT_TASK_TITLE, context, field_name="title"),
            "description": _render(config.description or "", context, field_name="description"),
            "assigned_to": config.assigned_to,
            "due_date": due_date,
            "priority": config.priority or "medium",
            "work_order_id": context.get("work_order_id"),
            "customer_id": context.get("customer_id"),
            "created_at": created.isoformat(),
        }
        try:
            task_id = self.records.insert(TASKS_RESOURCE, task)
        except Exception as e:
            raise TaskCreationFailed(f"Failed to create task: {e}") from e

        logger.info("Task created", extra={"task_id": task_id})


@dataclass(frozen=True, slots=True)
class UpdateRecordExecutor:
    """Apply configured field changes to the work order referenced by the context.

    A config with no updatable fields is a successful no-op.
    """

    records: RecordStore
    now: Callable[[], datetime] = field(default=_utc_now)

    def execute(self, config: UpdateWorkOrderConfig, context: RunContext) -> None:
        work_order_id = _context_str(context, "work_order_id")
        if work_order_id is None:
            raise MissingTargetReference("No work order ID in context")

        updates: dict[str, object] = {}
        if config.status:
            updates["status"] = config.status
        if config.priority:
            updates["priority"] = config.priority
        if config.notes:
            updates["notes"] = _render(config.notes, context, field_name="notes")

        if not updates:
            logger.info("No work order updates specified", extra={"work_order_id": work_order_id})
            return

        updates["updated_at"] = self.now().isoformat()
        try:
            self.records.update_fields(WORK_ORDERS_RESOURCE, work_order_id, updates)
        except Exception as e:
            raise RecordUpdateFailed(f"Failed to update work order: {e}") from e

        logger.info(
            "Work order updated",
            extra={"work_order_id": work_order_id, "fields": sorted(updates)},
        )


@dataclass(frozen=True, slots=True)
class SendNotificationExecutor:
    """Create an in-app notification for a user."""

    records: RecordStore
    now: Callable[[], datetime] = field(default=_utc_now)

    def execute(self, config: SendNotificationConfig, context: RunContext) -> None:
        user_id = config.user_id or _context_str(context, "assigned_to")
        if not user_id:
            raise NoRecipient("No notification recipient found")

        notification = {
            "title": _render(
                config.title or DEFAULT_NOTIFICATION_TITLE, context, field_name="title"
            ),
            "message": _render(config.message or "", context, field_name="message"),
            "type": config.type or "info",
            "user_id": user_id,
            "created_at": self.now().isoformat(),
        }
        try:
            notification_id = self.records.insert(NOTIFICATIONS_RESOURCE, notification)
        except Exception as e:
            raise NotificationFailed(f"Failed to create notification: {e}") from e

        logger.info(
            "Notification created", extra={"notification_id": notification_id, "user_id": user_id}
        )


def default_executors(
    *,
    repository: WorkflowRepository,
    records: RecordStore,
    email_sender: EmailSender | None,
    default_from_email: str,
    now: Callable[[], datetime] = _utc_now,
) -> dict[ActionType, ActionExecutor]:
    return {
        ActionType.SEND_EMAIL: SendEmailExecutor(
            repository=repository,
            sender=email_sender,
            default_from_email=default_from_email,
        ),
        ActionType.CREATE_TASK: CreateTaskExecutor(records=records, now=now),
        ActionType.UPDATE_WORK_ORDER: UpdateRecordExecutor(records=records, now=now),
        ActionType.SEND_NOTIFICATION: SendNotificationExecutor(records=records, now=now),
    }

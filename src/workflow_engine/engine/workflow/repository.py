"""Read-only access to trigger and action configuration.

The authoring UI owns this data. The engine only reads it, so the JSON adapter
re-reads the file on every call and never writes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from .errors import ActionLoadError, InvalidActionConfig, RepositoryError
from .models import Customer, EmailTemplate, Trigger, WorkflowAction

logger = logging.getLogger(__name__)


class WorkflowRepository(Protocol):
    def get_trigger(self, trigger_id: str) -> Trigger | None: ...

    def get_active_trigger(self, trigger_id: str) -> Trigger | None: ...

    def get_actions_for_trigger(self, trigger_id: str) -> list[WorkflowAction]: ...

    def get_email_template(self, template_id: str) -> EmailTemplate | None: ...

    def get_customer(self, customer_id: str) -> Customer | None: ...


def order_actions(actions: Iterable[WorkflowAction]) -> list[WorkflowAction]:
    """Sort by `action_order` ascending; ties keep load order."""

    return sorted(actions, key=lambda action: action.action_order)


def parse_action(raw: dict[str, Any]) -> WorkflowAction:
    try:
        return WorkflowAction.model_validate(raw)
    except ValidationError as e:
        raise InvalidActionConfig(
            action_id=str(raw.get("id", "?")),
            action_type=str(raw.get("action_type", "?")),
            reason=str(e),
        ) from e


class InMemoryWorkflowRepository:
    """Repository over already-parsed configuration."""

    def __init__(
        self,
        *,
        triggers: Iterable[Trigger] = (),
        actions: Iterable[WorkflowAction] = (),
        email_templates: Iterable[EmailTemplate] = (),
        customers: Iterable[Customer] = (),
    ) -> None:
        self._triggers = {t.id: t for t in triggers}
        self._actions = list(actions)
        self._email_templates = {t.id: t for t in email_templates}
        self._customers = {c.id: c for c in customers}

    def get_trigger(self, trigger_id: str) -> Trigger | None:
        return self._triggers.get(trigger_id)

    def get_active_trigger(self, trigger_id: str) -> Trigger | None:
        trigger = self._triggers.get(trigger_id)
        if trigger is None or not trigger.is_active:
            return None
        return trigger

    def get_actions_for_trigger(self, trigger_id: str) -> list[WorkflowAction]:
        return order_actions(a for a in self._actions if a.trigger_id == trigger_id)

    def get_email_template(self, template_id: str) -> EmailTemplate | None:
        return self._email_templates.get(template_id)

    def get_customer(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)


class JsonWorkflowRepository:
    """JSON-file backed repository.

    Expected shape::

        {
          "triggers": [...],
          "actions": [...],
          "email_templates": [...],
          "customers": [...]
        }

    A missing file means "nothing configured". A file that cannot be parsed is a
    repository read failure.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, list[dict[str, Any]]]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryError(f"Cannot read workflow configuration: {e}") from e
        if not isinstance(raw, dict):
            raise RepositoryError("Workflow configuration must be a JSON object")

        out: dict[str, list[dict[str, Any]]] = {}
        for key, value in raw.items():
            if value is None:
                continue
            if not isinstance(value, list):
                raise RepositoryError(f"Workflow configuration key {key!r} must be a list")
            out[key] = [item for item in value if isinstance(item, dict)]
        return out

    def _section(self, name: str) -> list[dict[str, Any]]:
        return self._load_raw().get(name, [])

    def get_trigger(self, trigger_id: str) -> Trigger | None:
        for item in self._section("triggers"):
            if str(item.get("id")) == trigger_id:
                try:
                    return Trigger.model_validate(item)
                except ValidationError as e:
                    raise RepositoryError(f"Invalid trigger {trigger_id}: {e}") from e
        return None

    def get_active_trigger(self, trigger_id: str) -> Trigger | None:
        trigger = self.get_trigger(trigger_id)
        if trigger is None or not trigger.is_active:
            return None
        return trigger

    def get_actions_for_trigger(self, trigger_id: str) -> list[WorkflowAction]:
        try:
            items = self._section("actions")
        except RepositoryError as e:
            raise ActionLoadError(str(e)) from e
        actions = [parse_action(item) for item in items if str(item.get("trigger_id")) == trigger_id]
        return order_actions(actions)

    def get_email_template(self, template_id: str) -> EmailTemplate | None:
        for item in self._section("email_templates"):
            if str(item.get("id")) == template_id:
                return EmailTemplate.model_validate(item)
        return None

    def get_customer(self, customer_id: str) -> Customer | None:
        for item in self._section("customers"):
            if str(item.get("id")) == customer_id:
                return Customer.model_validate(item)
        logger.debug("Customer not found", extra={"customer_id": customer_id})
        return None

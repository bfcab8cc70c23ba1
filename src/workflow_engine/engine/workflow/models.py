"""Trigger and action configuration models.

Action configuration is a tagged variant keyed by `action_type`: each known kind has
its own strict model, validated when the action is loaded. Unknown kinds are kept as
`UnknownActionConfig` so the coordinator can skip them at run time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActionType(str, Enum):
    SEND_EMAIL = "send_email"
    CREATE_TASK = "create_task"
    UPDATE_WORK_ORDER = "update_work_order"
    SEND_NOTIFICATION = "send_notification"


class Trigger(BaseModel):
    """A workflow trigger. Only read by the engine."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str = ""
    trigger_type: str = ""
    description: str | None = None
    is_active: bool = True


class _StrictConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)


class SendEmailConfig(_StrictConfig):
    subject: str | None = None
    body: str | None = None
    template_id: str | None = None
    recipient_email: str | None = None
    recipient_type: str | None = None
    from_email: str | None = None


class CreateTaskConfig(_StrictConfig):
    title: str | None = None
    description: str | None = None
    assigned_to: str | None = None
    priority: str | None = None
    # Offset in days from the moment the task is created; 0 means no due date.
    due_date: float | None = Field(default=None, ge=0)


class UpdateWorkOrderConfig(_StrictConfig):
    status: str | None = None
    priority: str | None = None
    notes: str | None = None


class SendNotificationConfig(_StrictConfig):
    title: str | None = None
    message: str | None = None
    type: str | None = None
    user_id: str | None = None


class UnknownActionConfig(BaseModel):
    """Raw configuration of an action kind this engine does not know."""

    model_config = ConfigDict(frozen=True)

    raw: dict[str, Any] = Field(default_factory=dict)


ActionConfig = (
    SendEmailConfig
    | CreateTaskConfig
    | UpdateWorkOrderConfig
    | SendNotificationConfig
    | UnknownActionConfig
)

ACTION_CONFIG_MODELS: dict[ActionType, type[_StrictConfig]] = {
    ActionType.SEND_EMAIL: SendEmailConfig,
    ActionType.CREATE_TASK: CreateTaskConfig,
    ActionType.UPDATE_WORK_ORDER: UpdateWorkOrderConfig,
    ActionType.SEND_NOTIFICATION: SendNotificationConfig,
}


def _action_type_or_none(value: object) -> ActionType | None:
    try:
        return ActionType(value)
    except ValueError:
        return None


class WorkflowAction(BaseModel):
    """One configured step of a trigger."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    trigger_id: str
    action_type: str
    action_config: ActionConfig
    action_order: int = 0
    delay_minutes: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _select_config_model(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_config = data.get("action_config")
        if isinstance(raw_config, BaseModel):
            return data
        if raw_config is None:
            raw_config = {}
        kind = _action_type_or_none(data.get("action_type"))
        if kind is None:
            config: BaseModel = UnknownActionConfig(
                raw=raw_config if isinstance(raw_config, dict) else {}
            )
        else:
            config = ACTION_CONFIG_MODELS[kind].model_validate(raw_config)
        return {**data, "action_config": config}

    @property
    def kind(self) -> ActionType | None:
        return _action_type_or_none(self.action_type)


class EmailTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str = ""
    subject: str
    content: str


class Customer(BaseModel):
    """A party that can be resolved as an email recipient."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str = ""
    email: str | None = None

"""Typed errors raised by the workflow engine.

Two tiers:
- pre-execution errors abort an invocation before any execution record exists
- action execution errors are raised by executors and caught by the coordinator
"""

from __future__ import annotations


class WorkflowEngineError(Exception):
    """Base class for all workflow engine errors."""


class PreExecutionError(WorkflowEngineError):
    """Raised before an execution record is created; surfaced to the caller."""


class TriggerNotFound(PreExecutionError):
    def __init__(self, trigger_id: str) -> None:
        super().__init__(f"Trigger not found: {trigger_id}")
        self.trigger_id = trigger_id


class TriggerInactive(PreExecutionError):
    def __init__(self, trigger_id: str) -> None:
        super().__init__(f"Trigger is inactive: {trigger_id}")
        self.trigger_id = trigger_id


class RepositoryError(PreExecutionError):
    """The trigger/action configuration source could not be read."""


class ActionLoadError(RepositoryError):
    """The actions configured for a trigger could not be loaded."""


class InvalidActionConfig(ActionLoadError):
    """A known action kind carries a configuration that does not match its shape."""

    def __init__(self, action_id: str, action_type: str, reason: str) -> None:
        super().__init__(f"Invalid {action_type} config for action {action_id}: {reason}")
        self.action_id = action_id
        self.action_type = action_type


class ActionExecutionError(WorkflowEngineError):
    """Raised by an action executor when its single external effect fails."""


class NoRecipient(ActionExecutionError):
    pass


class EmailNotConfigured(ActionExecutionError):
    pass


class EmailSendFailed(ActionExecutionError):
    pass


class TaskCreationFailed(ActionExecutionError):
    pass


class MissingTargetReference(ActionExecutionError):
    pass


class RecordUpdateFailed(ActionExecutionError):
    pass


class NotificationFailed(ActionExecutionError):
    pass


class ExecutionStoreError(WorkflowEngineError):
    """The execution audit log exists but cannot be read; it is never overwritten."""

from __future__ import annotations

from enum import Enum


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


TERMINAL_STATUSES: frozenset[ExecutionStatus] = frozenset(
    {ExecutionStatus.COMPLETED, ExecutionStatus.PARTIAL, ExecutionStatus.FAILED}
)

ALLOWED_TRANSITIONS: dict[ExecutionStatus, set[ExecutionStatus]] = {
    ExecutionStatus.PENDING: set(TERMINAL_STATUSES),
    ExecutionStatus.COMPLETED: set(),
    ExecutionStatus.PARTIAL: set(),
    ExecutionStatus.FAILED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: ExecutionStatus, to: ExecutionStatus) -> ExecutionStatus:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


def final_status(*, executed_actions: int, failed_actions: int) -> ExecutionStatus:
    """Aggregate status of a finished action sequence."""

    if failed_actions == 0:
        return ExecutionStatus.COMPLETED
    if executed_actions == 0:
        return ExecutionStatus.FAILED
    return ExecutionStatus.PARTIAL

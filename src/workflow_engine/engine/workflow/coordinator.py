"""Execution coordinator.

Runs one trigger invocation: load the trigger and its ordered actions, open an
execution record, run every action in sequence through its executor, and close the
record with an aggregate status.

Per-action failures are caught at each iteration, recorded in the execution log and
folded into the tally; they never abort the sequence and never escape `execute`.
Pre-execution failures (missing/inactive trigger, unreadable configuration) are
raised to the caller before any record exists.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Any, Protocol

from .actions import ActionExecutor, RunContext
from .audit_store import ExecutionRecord, ExecutionStore
from .errors import ActionExecutionError, ActionLoadError, TriggerInactive, TriggerNotFound
from .events import TriggerEvent
from .models import ActionType, WorkflowAction
from .repository import WorkflowRepository, order_actions
from .state_machine import ExecutionStatus, final_status, transition

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class DeferredActionScheduler(Protocol):
    """Receives actions configured with a delay, together with their intended run time.

    Actions still run immediately; a scheduler only gets the chance to record or
    enqueue the deferred intent.
    """

    def schedule(self, *, action: WorkflowAction, context: RunContext, execute_at: datetime) -> None: ...


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    execution_id: str
    status: ExecutionStatus
    executed_actions: int
    failed_actions: int

    def to_json(self) -> dict[str, object]:
        return {
            "execution_id": self.execution_id,
            "status": self.status.value,
            "executed_actions": self.executed_actions,
            "failed_actions": self.failed_actions,
        }


@dataclass
class ExecutionTally:
    """Accumulator threaded through the action loop."""

    executed_actions: int = 0
    failed_actions: int = 0
    action_results: list[dict[str, Any]] = field(default_factory=list)
    action_errors: list[dict[str, Any]] = field(default_factory=list)
    skipped_actions: list[dict[str, Any]] = field(default_factory=list)
    delayed_actions: list[dict[str, Any]] = field(default_factory=list)

    def record_success(self, action: WorkflowAction, at: datetime) -> None:
        self.executed_actions += 1
        self.action_results.append(_result_entry(action, "succeeded", at))

    def record_failure(self, action: WorkflowAction, error: Exception, at: datetime) -> None:
        self.failed_actions += 1
        self.action_results.append(_result_entry(action, "failed", at))
        self.action_errors.append(
            {
                "action_id": action.id,
                "action_type": action.action_type,
                "error_message": str(error) or type(error).__name__,
                "timestamp": at.isoformat(),
            }
        )

    def record_skipped(self, action: WorkflowAction, reason: str) -> None:
        self.skipped_actions.append(
            {"action_id": action.id, "action_type": action.action_type, "reason": reason}
        )

    def record_delay(self, action: WorkflowAction, execute_at: datetime) -> None:
        self.delayed_actions.append(
            {
                "action_id": action.id,
                "delay_minutes": action.delay_minutes,
                "execute_at": execute_at.isoformat(),
            }
        )

    def to_log(self) -> dict[str, Any]:
        return {
            "action_results": list(self.action_results),
            "action_errors": list(self.action_errors),
            "skipped_actions": list(self.skipped_actions),
            "delayed_actions": list(self.delayed_actions),
        }


def _result_entry(action: WorkflowAction, status: str, at: datetime) -> dict[str, Any]:
    return {
        "action_id": action.id,
        "action_type": action.action_type,
        "action_order": action.action_order,
        "status": status,
        "executed_at": at.isoformat(),
    }


class ExecutionCoordinator:
    """Runs a trigger's actions in order and records the outcome."""

    def __init__(
        self,
        *,
        repository: WorkflowRepository,
        execution_store: ExecutionStore,
        executors: Mapping[ActionType, ActionExecutor],
        scheduler: DeferredActionScheduler | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._repository = repository
        self._executions = execution_store
        self._executors = dict(executors)
        self._scheduler = scheduler
        self._clock = clock

    def handle(self, event: TriggerEvent) -> ExecutionResult:
        return self.execute(event.trigger_id, event.context, event.metadata())

    def execute(
        self,
        trigger_id: str,
        context: Mapping[str, object] | None = None,
        event_metadata: Mapping[str, object] | None = None,
    ) -> ExecutionResult:
        """Run every action of `trigger_id` once, in ascending `action_order`.

        Raises:
            TriggerNotFound: No trigger with this id exists.
            TriggerInactive: The trigger exists but is disabled.
            RepositoryError: The trigger or its actions could not be read.
        """

        logger.info("Starting workflow execution", extra={"trigger_id": trigger_id})

        self._require_active_trigger(trigger_id)
        actions = self._load_actions(trigger_id)

        run_context: RunContext = MappingProxyType(dict(context or {}))
        started = time.monotonic()
        record = ExecutionRecord(
            trigger_id=trigger_id,
            status=ExecutionStatus.PENDING,
            execution_log={
                "context": dict(run_context),
                "event": dict(event_metadata or {}),
            },
            triggered_at=self._clock().isoformat(),
        )
        execution_id = self._executions.create_execution(record)
        logger.info(
            "Created execution record",
            extra={"trigger_id": trigger_id, "execution_id": execution_id, "actions": len(actions)},
        )

        tally = ExecutionTally()
        for action in actions:
            self._run_action(action, run_context, tally, execution_id, record.execution_log)

        status = transition(
            current=ExecutionStatus.PENDING,
            to=final_status(
                executed_actions=tally.executed_actions, failed_actions=tally.failed_actions
            ),
        )
        execution_log = {
            **record.execution_log,
            **tally.to_log(),
            "executed_actions": tally.executed_actions,
            "failed_actions": tally.failed_actions,
            "execution_time_ms": int((time.monotonic() - started) * 1000),
        }
        self._executions.update_execution(
            execution_id,
            status=status,
            completed_at=self._clock().isoformat(),
            execution_log=execution_log,
        )

        logger.info(
            "Workflow execution completed",
            extra={
                "trigger_id": trigger_id,
                "execution_id": execution_id,
                "status": status.value,
                "executed_actions": tally.executed_actions,
                "failed_actions": tally.failed_actions,
            },
        )
        return ExecutionResult(
            execution_id=execution_id,
            status=status,
            executed_actions=tally.executed_actions,
            failed_actions=tally.failed_actions,
        )

    def _require_active_trigger(self, trigger_id: str) -> None:
        if self._repository.get_active_trigger(trigger_id) is not None:
            return
        if self._repository.get_trigger(trigger_id) is not None:
            logger.warning("Trigger is inactive", extra={"trigger_id": trigger_id})
            raise TriggerInactive(trigger_id)
        logger.warning("Trigger not found", extra={"trigger_id": trigger_id})
        raise TriggerNotFound(trigger_id)

    def _load_actions(self, trigger_id: str) -> list[WorkflowAction]:
        try:
            actions = self._repository.get_actions_for_trigger(trigger_id)
        except ActionLoadError:
            logger.error("Failed to fetch actions", extra={"trigger_id": trigger_id})
            raise
        return order_actions(actions)

    def _run_action(
        self,
        action: WorkflowAction,
        context: RunContext,
        tally: ExecutionTally,
        execution_id: str,
        base_log: dict[str, Any],
    ) -> None:
        extra = {
            "execution_id": execution_id,
            "action_id": action.id,
            "action_type": action.action_type,
        }

        kind = action.kind
        executor = self._executors.get(kind) if kind is not None else None
        if executor is None:
            logger.warning("Unknown action type; skipping", extra=extra)
            tally.record_skipped(action, reason="unknown action type")
            return

        logger.info("Executing action", extra=extra)
        try:
            if action.delay_minutes > 0:
                self._defer(action, context, tally, extra)
            executor.execute(action.action_config, context)
        except ActionExecutionError as e:
            logger.error("Action failed", extra={**extra, "error": str(e)})
            self._record_failure(action, e, tally, execution_id, base_log)
            return
        except Exception as e:
            logger.exception("Action failed unexpectedly", extra=extra)
            self._record_failure(action, e, tally, execution_id, base_log)
            return

        tally.record_success(action, self._clock())
        logger.info("Action completed", extra=extra)

    def _defer(
        self,
        action: WorkflowAction,
        context: RunContext,
        tally: ExecutionTally,
        extra: dict[str, Any],
    ) -> None:
        """Record the intended run time of a delayed action and hand it to the scheduler.

        The action itself still runs now. A scheduler error fails the action.
        """

        execute_at = self._clock() + timedelta(minutes=action.delay_minutes)
        tally.record_delay(action, execute_at)
        logger.info(
            "Action has a delay; running now and recording intended time",
            extra={**extra, "delay_minutes": action.delay_minutes},
        )
        if self._scheduler is not None:
            self._scheduler.schedule(action=action, context=context, execute_at=execute_at)

    def _record_failure(
        self,
        action: WorkflowAction,
        error: Exception,
        tally: ExecutionTally,
        execution_id: str,
        base_log: dict[str, Any],
    ) -> None:
        tally.record_failure(action, error, self._clock())
        self._executions.update_execution(
            execution_id, execution_log={**base_log, **tally.to_log()}
        )

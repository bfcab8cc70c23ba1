"""Workflow domain: triggers, actions, executors and the execution coordinator.

Control flow for one invocation is strictly sequential: actions run in ascending
`action_order`, each failure is isolated and recorded, and the execution record
ends in exactly one terminal status.
"""

from workflow_engine.engine.workflow.coordinator import ExecutionCoordinator, ExecutionResult
from workflow_engine.engine.workflow.events import TriggerEvent
from workflow_engine.engine.workflow.state_machine import ExecutionStatus

__all__ = ["ExecutionCoordinator", "ExecutionResult", "ExecutionStatus", "TriggerEvent"]

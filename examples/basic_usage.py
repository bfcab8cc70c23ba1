#!/usr/bin/env python3
"""Programmatic trigger execution example.

This demonstrates using the engine components directly:

* load settings from `.env`
* describe a trigger and its actions in memory
* run the trigger once and print the execution summary

Records written by actions and the execution audit land under `WORKFLOW_DATA_PATH`.
Email actions only deliver when `RESEND_API_KEY` is set; otherwise they are recorded
as failed and the run ends `partial`.
"""

from __future__ import annotations

import argparse
import json
from typing import Sequence

from workflow_engine.engine.config import EngineSettings
from workflow_engine.engine.factory import EngineFactory
from workflow_engine.engine.logging import configure_logging
from workflow_engine.engine.workflow.events import TriggerEvent
from workflow_engine.engine.workflow.models import Trigger, WorkflowAction
from workflow_engine.engine.workflow.record_store import JsonRecordStore
from workflow_engine.engine.workflow.repository import InMemoryWorkflowRepository


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a work-order-closed workflow (example).")
    parser.add_argument("--work-order-id", required=True, help="Work order the event concerns")
    parser.add_argument("--customer-email", default="", help="Where the closing email goes")
    parser.add_argument("--assigned-to", default="", help="User notified about the closure")
    return parser.parse_args(argv)


def _actions(customer_email: str) -> list[WorkflowAction]:
    raw = [
        {
            "id": "close-wo",
            "action_type": "update_work_order",
            "action_order": 1,
            "action_config": {"status": "closed", "notes": "Closed by workflow"},
        },
        {
            "id": "follow-up",
            "action_type": "create_task",
            "action_order": 2,
            "action_config": {"title": "Follow up on {{work_order_id}}", "due_date": 3},
        },
        {
            "id": "notify-tech",
            "action_type": "send_notification",
            "action_order": 3,
            "action_config": {"title": "Work order {{work_order_id}} closed"},
        },
        {
            "id": "email-customer",
            "action_type": "send_email",
            "action_order": 4,
            "action_config": {
                "subject": "Your work order {{work_order_id}} is complete",
                "body": "<p>Thanks for your patience.</p>",
                "recipient_email": customer_email or None,
            },
        },
    ]
    return [WorkflowAction.model_validate({**item, "trigger_id": "wo-closed"}) for item in raw]


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineSettings()
    configure_logging(settings.log_level)

    repository = InMemoryWorkflowRepository(
        triggers=[Trigger(id="wo-closed", name="Work order closed", trigger_type="status_change")],
        actions=_actions(args.customer_email),
    )
    records = JsonRecordStore(settings.records_path)
    # The update action needs an existing work order to change.
    if records.get("work_orders", args.work_order_id) is None:
        records.insert("work_orders", {"id": args.work_order_id, "status": "open"})

    coordinator = EngineFactory.create_coordinator(settings, repository=repository, records=records)
    result = coordinator.handle(
        TriggerEvent(
            trigger_id="wo-closed",
            context={
                "work_order_id": args.work_order_id,
                "assigned_to": args.assigned_to,
            },
            event_type="status_change",
            resource_id=args.work_order_id,
        )
    )

    print(json.dumps(result.to_json(), indent=2))
    print(f"Execution log: {settings.executions_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

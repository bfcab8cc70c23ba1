"""CLI entrypoint for the workflow engine.

Runs a trigger once from the command line, inspects execution records, or starts
the HTTP server.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from workflow_engine import __version__
from workflow_engine.engine.config import EngineSettings
from workflow_engine.engine.factory import EngineFactory
from workflow_engine.engine.logging import configure_logging
from workflow_engine.engine.workflow.errors import (
    ExecutionStoreError,
    PreExecutionError,
    TriggerInactive,
    TriggerNotFound,
)
from workflow_engine.engine.workflow.events import TriggerEvent
from workflow_engine.engine.workflow.state_machine import ExecutionStatus

logger = logging.getLogger(__name__)

# Exit codes are designed to be CI-friendly.
EXIT_OK = 0
EXIT_PRE_EXECUTION_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_PARTIAL = 3
EXIT_FAILED = 4

_STATUS_EXIT_CODES: dict[ExecutionStatus, int] = {
    ExecutionStatus.COMPLETED: EXIT_OK,
    ExecutionStatus.PARTIAL: EXIT_PARTIAL,
    ExecutionStatus.FAILED: EXIT_FAILED,
}


def _parse_context(value: str | None) -> dict[str, object]:
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"--context must be a JSON object: {e}") from e
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("--context must be a JSON object")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-engine",
        description="Run workflow trigger actions and inspect their execution records",
    )
    parser.add_argument(
        "--version", action="version", version=f"workflow-trigger-engine {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    execute = subparsers.add_parser("execute", help="Run a trigger's actions now")
    execute.add_argument("--trigger-id", required=True, help="Trigger to run")
    execute.add_argument(
        "--context",
        type=_parse_context,
        default={},
        help='Run context as a JSON object, e.g. \'{"work_order_id": "wo-1"}\'',
    )
    execute.add_argument("--event-type", default=None, help="Event category that fired the trigger")
    execute.add_argument("--resource-id", default=None, help="Resource the event concerns")

    list_executions = subparsers.add_parser(
        "list-executions", help="List recorded executions (optionally for one trigger)"
    )
    list_executions.add_argument("--trigger-id", default=None, help="Only show this trigger")

    show_execution = subparsers.add_parser("show-execution", help="Print one execution record")
    show_execution.add_argument("--execution-id", required=True, help="Execution record id")

    serve = subparsers.add_parser("serve", help="Start the HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)

    try:
        return _run_command(parser, args, settings)
    except ExecutionStoreError as e:
        print(f"Execution log error: {e}", file=sys.stderr)
        return EXIT_PRE_EXECUTION_ERROR


def _run_command(
    parser: argparse.ArgumentParser, args: argparse.Namespace, settings: EngineSettings
) -> int:
    if args.command == "execute":
        coordinator = EngineFactory.create_coordinator(settings)
        event = TriggerEvent(
            trigger_id=args.trigger_id,
            context=args.context,
            event_type=args.event_type,
            resource_id=args.resource_id,
        )
        try:
            result = coordinator.handle(event)
        except (TriggerNotFound, TriggerInactive):
            print("Trigger not found or inactive", file=sys.stderr)
            return EXIT_PRE_EXECUTION_ERROR
        except PreExecutionError as e:
            print(f"Workflow execution error: {e}", file=sys.stderr)
            return EXIT_PRE_EXECUTION_ERROR

        print(json.dumps(result.to_json(), indent=2))
        return _STATUS_EXIT_CODES.get(result.status, EXIT_OK)

    if args.command == "list-executions":
        store = EngineFactory.create_execution_store(settings)
        records = store.list_executions(trigger_id=args.trigger_id)
        if not records:
            print("No executions recorded")
            return EXIT_OK
        for record in records:
            log = record.execution_log
            print(
                f"{record.id} trigger={record.trigger_id} status={record.status.value} "
                f"executed={log.get('executed_actions', 0)} failed={log.get('failed_actions', 0)} "
                f"triggered_at={record.triggered_at}"
            )
        return EXIT_OK

    if args.command == "show-execution":
        store = EngineFactory.create_execution_store(settings)
        found = store.get_execution(args.execution_id)
        if found is None:
            print(f"Execution not found: {args.execution_id}", file=sys.stderr)
            return EXIT_PRE_EXECUTION_ERROR
        print(json.dumps(found.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return EXIT_OK

    if args.command == "serve":
        import uvicorn

        from workflow_engine.server.app import create_app

        logger.info("Starting HTTP server", extra={"host": args.host, "port": args.port})
        uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
        return EXIT_OK

    parser.error(f"Unknown command: {args.command}")
    return EXIT_CONFIG_ERROR

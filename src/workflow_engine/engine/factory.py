"""Factory wiring settings into a ready-to-run coordinator."""

import logging

from workflow_engine.engine.config import EngineSettings
from workflow_engine.engine.email.client import EmailSender, ResendEmailSender
from workflow_engine.engine.workflow.actions import default_executors
from workflow_engine.engine.workflow.audit_store import ExecutionStore, JsonExecutionStore
from workflow_engine.engine.workflow.coordinator import (
    DeferredActionScheduler,
    ExecutionCoordinator,
)
from workflow_engine.engine.workflow.record_store import JsonRecordStore, RecordStore
from workflow_engine.engine.workflow.repository import JsonWorkflowRepository, WorkflowRepository

logger = logging.getLogger(__name__)


class EngineFactory:
    """Factory for the engine's collaborators."""

    @staticmethod
    def create_email_sender(settings: EngineSettings) -> EmailSender | None:
        """Create the email sender, or None when no API key is configured."""
        if not settings.email_enabled:
            logger.info("Email delivery disabled: RESEND_API_KEY is not set")
            return None
        return ResendEmailSender(
            api_key=settings.resend_api_key,
            base_url=settings.resend_base_url,
            timeout_seconds=settings.email_timeout_seconds,
        )

    @staticmethod
    def create_execution_store(settings: EngineSettings) -> ExecutionStore:
        return JsonExecutionStore(settings.executions_file)

    @staticmethod
    def create_coordinator(
        settings: EngineSettings,
        *,
        repository: WorkflowRepository | None = None,
        execution_store: ExecutionStore | None = None,
        records: RecordStore | None = None,
        email_sender: EmailSender | None = None,
        scheduler: DeferredActionScheduler | None = None,
    ) -> ExecutionCoordinator:
        """Create a coordinator backed by the local JSON stores.

        Args:
            settings: Engine settings.
            repository: Override for the configuration source.
            execution_store: Override for the audit store.
            records: Override for the record store actions write to.
            email_sender: Override for the email sender.
            scheduler: Optional collaborator notified about delayed actions.

        Returns:
            Configured coordinator.
        """
        repository = repository or JsonWorkflowRepository(settings.config_file)
        records = records or JsonRecordStore(settings.records_path)
        if email_sender is None:
            email_sender = EngineFactory.create_email_sender(settings)

        logger.info(
            "Creating execution coordinator",
            extra={"data_path": str(settings.data_path), "email_enabled": email_sender is not None},
        )
        return ExecutionCoordinator(
            repository=repository,
            execution_store=execution_store or EngineFactory.create_execution_store(settings),
            executors=default_executors(
                repository=repository,
                records=records,
                email_sender=email_sender,
                default_from_email=settings.default_from_email,
            ),
            scheduler=scheduler,
        )

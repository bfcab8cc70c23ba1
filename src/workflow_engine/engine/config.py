"""Configuration for the workflow engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Executors never read the environment themselves; everything they need (API key,
sender identity, store locations) flows from these settings through the factory.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the workflow engine.

    Environment variables:
    - RESEND_API_KEY                  (optional; email actions fail without it)
    - RESEND_BASE_URL                 (optional)
    - WORKFLOW_DEFAULT_FROM_EMAIL     (optional)
    - WORKFLOW_EMAIL_TIMEOUT_SECONDS  (optional)
    - LOG_LEVEL                       (optional)
    - WORKFLOW_DATA_PATH              (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EngineSettings(_env_file=path_to_env)`.
    """

    resend_api_key: str = Field(
        default="",
        validation_alias="RESEND_API_KEY",
        description="API key for the transactional email provider",
    )
    resend_base_url: str = Field(
        default="https://api.resend.com",
        validation_alias="RESEND_BASE_URL",
        description="Email provider API base URL",
    )
    default_from_email: str = Field(
        default="notifications@yourdomain.com",
        validation_alias="WORKFLOW_DEFAULT_FROM_EMAIL",
        description="Sender address used when an email action does not set `from_email`",
    )
    email_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="WORKFLOW_EMAIL_TIMEOUT_SECONDS",
        description="HTTP timeout (seconds) for a single email submission",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    data_path: Path = Field(
        default=Path("workflow_data"),
        validation_alias="WORKFLOW_DATA_PATH",
        description="Directory holding workflow configuration, execution records and records",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def email_enabled(self) -> bool:
        return bool(self.resend_api_key.strip())

    @property
    def config_file(self) -> Path:
        """Trigger, action, template and customer configuration (read-only)."""

        return self.data_path / "config.json"

    @property
    def executions_file(self) -> Path:
        """Execution audit records."""

        return self.data_path / "executions.json"

    @property
    def records_path(self) -> Path:
        """Directory of per-resource record files written by actions."""

        return self.data_path / "records"

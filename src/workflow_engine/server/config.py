"""Configuration for the REST server."""

from __future__ import annotations

from pydantic import Field

from workflow_engine.engine.config import EngineSettings


class ServerSettings(EngineSettings):
    """Engine settings plus HTTP-only concerns."""

    # Override via WORKFLOW_CORS_ORIGINS=... (comma-separated).
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="WORKFLOW_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

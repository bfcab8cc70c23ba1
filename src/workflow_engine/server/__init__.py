"""FastAPI server adapter for the workflow engine.

This module exposes the invocation entrypoint and read access to execution records.

Design intent:
- Keep execution logic in `workflow_engine.engine.*`
- Keep server-specific concerns (routing, CORS, HTTP error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_engine.server.app import create_app

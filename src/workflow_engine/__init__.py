"""Workflow Trigger Engine.

Runs the ordered actions configured for a workflow trigger (email, task,
record update, notification) and records every outcome in an execution log.
"""

__version__ = "0.1.0"

from workflow_engine.engine.config import EngineSettings

__all__ = ["__version__", "EngineSettings"]

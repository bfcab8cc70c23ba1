"""Workflow trigger execution engine.

Provides:
- Settings loaded from .env
- Structured logging
- Placeholder substitution for action content
- The execution coordinator and its action executors
"""

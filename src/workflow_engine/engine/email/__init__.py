"""Outbound email delivery."""

from workflow_engine.engine.email.client import (
    EmailMessage,
    EmailSender,
    EmailSendResult,
    ResendEmailSender,
)

__all__ = ["EmailMessage", "EmailSendResult", "EmailSender", "ResendEmailSender"]

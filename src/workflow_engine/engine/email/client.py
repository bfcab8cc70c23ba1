"""Transactional email sender (Resend HTTP API).

Wraps `requests` so executors only see `send(message) -> EmailSendResult` and tests
can substitute a fake sender.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EmailMessage:
    from_email: str
    to: list[str]
    subject: str
    html: str

    def to_payload(self) -> dict[str, object]:
        return {"from": self.from_email, "to": list(self.to), "subject": self.subject, "html": self.html}


@dataclass(frozen=True, slots=True)
class EmailSendResult:
    ok: bool
    message: str
    message_id: str | None = None


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> EmailSendResult: ...


class ResendEmailSender:
    """Small wrapper around the Resend `POST /emails` endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Resend API key is required")

        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "workflow-trigger-engine",
            }
        )

    @property
    def emails_url(self) -> str:
        return f"{self._base_url}/emails"

    def send(self, message: EmailMessage) -> EmailSendResult:
        try:
            resp = self._session.post(
                self.emails_url, json=message.to_payload(), timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.warning("Email request failed", extra={"error": str(e)})
            return EmailSendResult(ok=False, message=str(e))

        if not resp.ok:
            error = _error_message(resp)
            logger.warning(
                "Email provider rejected message",
                extra={"status_code": resp.status_code, "error": error},
            )
            return EmailSendResult(ok=False, message=error)

        message_id: str | None = None
        try:
            data: dict[str, Any] = resp.json()
            raw_id = data.get("id")
            message_id = raw_id if isinstance(raw_id, str) else None
        except ValueError:
            pass
        return EmailSendResult(ok=True, message="sent", message_id=message_id)

    def close(self) -> None:
        self._session.close()


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip() or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if isinstance(msg, str) and msg.strip():
            return msg
    return f"HTTP {resp.status_code}"

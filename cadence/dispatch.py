"""
cadence.dispatch
================

Notification Dispatchers.

Concrete subclasses implement ``.send(address, subject, html_body)`` and
raise :class:`~cadence.errors.DeliveryError` on failure.  Token acquisition
is not handled here: :class:`GmailDispatcher` receives a bearer token that
someone else keeps fresh.

:func:`deliver` fans a batch of notifications out per address and collects
failures without aborting the remaining recipients.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Iterable, List, Optional, Tuple

import httpx

from .errors import DeliveryError
from .models import Notification

logger = logging.getLogger(__name__)

__all__ = [
    "Dispatcher",
    "GmailDispatcher",
    "LogDispatcher",
    "RedirectDispatcher",
    "DispatchReport",
    "deliver",
]


class Dispatcher(ABC):
    """
    Abstract base for all email transports.

    ``ready`` is ``False`` when the transport cannot send (e.g. not
    authenticated); scheduled jobs skip themselves in that case.
    """

    @property
    def ready(self) -> bool:
        return True

    @abstractmethod
    def send(self, address: str, subject: str, html_body: str) -> None:
        """Deliver one message to one address or raise DeliveryError."""

    def close(self) -> None:
        pass


class LogDispatcher(Dispatcher):
    """Logs messages instead of sending them (dev mode, no token)."""

    def __init__(self) -> None:
        self.outbox: List[Tuple[str, str, str]] = []

    def send(self, address: str, subject: str, html_body: str) -> None:
        self.outbox.append((address, subject, html_body))
        logger.info("[LOG-ONLY] %s -> %s", subject, address)


class GmailDispatcher(Dispatcher):
    """
    Sends HTML mail through ``users.messages.send`` of the Gmail REST API.

    Parameters
    ----------
    access_token : str | None
        OAuth bearer token with the ``gmail.send`` scope.
    base_url : str
        Gmail API root, overridable for tests.
    timeout : float
        Per-request timeout in seconds.
    client : httpx.Client | None
        Injected client (tests pass one with a ``MockTransport``).
    """

    def __init__(
        self,
        access_token: Optional[str],
        base_url: str = "https://gmail.googleapis.com/gmail/v1",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.access_token = access_token
        if not self.access_token:
            logger.warning("No Gmail access token provided. Set GMAIL_ACCESS_TOKEN environment variable.")
        self._client = client or httpx.Client(base_url=str(base_url), timeout=timeout)

    @property
    def ready(self) -> bool:
        return bool(self.access_token)

    @staticmethod
    def encode(address: str, subject: str, html_body: str) -> str:
        """RFC 2822 message, base64url-encoded without padding."""
        msg = EmailMessage()
        msg["To"] = address
        msg["Subject"] = subject
        msg.set_content(html_body, subtype="html", charset="utf-8")
        return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")

    def send(self, address: str, subject: str, html_body: str) -> None:
        if not self.ready:
            raise DeliveryError(address, "not authenticated with Gmail")
        try:
            resp = self._client.post(
                "/users/me/messages/send",
                headers={"Authorization": f"Bearer {self.access_token}"},
                json={"raw": self.encode(address, subject, html_body)},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DeliveryError(address, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(address, str(exc) or type(exc).__name__) from exc

    def close(self) -> None:
        self._client.close()


class RedirectDispatcher(Dispatcher):
    """Rewrites every recipient to one address (TEST_MODE)."""

    def __init__(self, inner: Dispatcher, address: str) -> None:
        self.inner = inner
        self.address = address

    @property
    def ready(self) -> bool:
        return self.inner.ready

    def send(self, address: str, subject: str, html_body: str) -> None:
        if address != self.address:
            logger.info("[TEST_MODE] Redirecting email from %s to %s", address, self.address)
        self.inner.send(self.address, subject, html_body)

    def close(self) -> None:
        self.inner.close()


@dataclass
class DispatchReport:
    """Per-address outcome of one :func:`deliver` call."""
    sent: List[str] = field(default_factory=list)
    failed: List[DeliveryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "sent": len(self.sent),
            "failed": [{"address": e.address, "reason": e.reason} for e in self.failed],
        }


def deliver(dispatcher: Dispatcher, notifications: Iterable[Notification]) -> DispatchReport:
    """Send every notification to each of its addresses, isolating failures."""
    report = DispatchReport()
    for note in notifications:
        for address in note.addresses:
            try:
                dispatcher.send(address, note.subject, note.body)
            except DeliveryError as exc:
                logger.error("[ERROR] Failed to send %s to %s: %s", note.kind.value, address, exc.reason)
                report.failed.append(exc)
                continue
            label = note.record.name if note.record is not None else note.subject
            logger.info("[OK] Sent %s to %s for %s", note.kind.value, address, label)
            report.sent.append(address)
    return report

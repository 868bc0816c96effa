"""
cadence.box
===========

Box API client used to watch the weekly tracker document.

The monitor asks Box for the file's ``modified_at`` / ``modified_by`` and
turns a changed modification timestamp into an
:class:`~cadence.models.EditSignal`.  It never diffs file contents: who
edited and when is all the reconciler needs.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from .errors import MonitorError
from .models import EditSignal, MonitoredDocument, parse_timestamp

logger = logging.getLogger(__name__)


class BoxMonitor:
    """
    Polls one Box file for edits.

    Parameters
    ----------
    access_token : str | None
        OAuth bearer token for the Box API.
    base_url : str
        Box API root (``https://api.box.com/2.0``).
    timeout : float
        Per-request timeout in seconds.
    client : httpx.Client | None
        Injected client (tests pass one with a ``MockTransport``).
    """

    def __init__(
        self,
        access_token: Optional[str],
        base_url: str = "https://api.box.com/2.0",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.access_token = access_token
        if not self.access_token:
            logger.warning("No Box access token provided. Set BOX_ACCESS_TOKEN environment variable.")
        self._client = client or httpx.Client(base_url=str(base_url), timeout=timeout)

    @property
    def ready(self) -> bool:
        return bool(self.access_token)

    def file_info(self, document_id: str) -> Dict[str, Any]:
        """Raw ``GET /files/{id}`` response limited to modification fields."""
        if not self.ready:
            raise MonitorError("not authenticated with Box")
        try:
            resp = self._client.get(
                f"/files/{document_id}",
                params={"fields": "name,modified_at,modified_by"},
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise MonitorError(f"Box returned HTTP {exc.response.status_code} for {document_id}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise MonitorError(f"cannot reach Box for {document_id}: {exc}") from exc

    def poll(self, doc: MonitoredDocument, now: datetime) -> Optional[EditSignal]:
        """
        Check *doc* once and update its ``last_checked_at`` /
        ``last_modified_at`` in place.

        Returns an :class:`EditSignal` when the file changed since the last
        check.  The very first check only records a baseline.
        """
        info = self.file_info(doc.document_id)
        modified_at = info.get("modified_at")
        modifier = (info.get("modified_by") or {}).get("name", "")

        previous = doc.last_modified_at
        doc.last_checked_at = now
        doc.last_modified_at = modified_at

        if previous is None:
            logger.info("Baseline for Box file %s: modified %s", doc.document_id, modified_at)
            return None
        if modified_at == previous or not modified_at:
            logger.debug("Box file %s unchanged", doc.document_id)
            return None

        try:
            when = parse_timestamp(modified_at)
        except ValueError as exc:
            raise MonitorError(f"unparseable modified_at {modified_at!r}") from exc
        logger.info("Box file %s edited by %s at %s", doc.document_id, modifier, modified_at)
        return EditSignal(modifier_name=modifier, modified_at=when)

    def close(self) -> None:
        self._client.close()

"""
cadence.errors
==============

Exception hierarchy shared by the engine, the reconciler and the adapters.

Every error derives from :class:`TrackerError` so the HTTP layer can map the
whole family onto status codes in one place.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for every Cadence error."""


class NotFound(TrackerError):
    """No record with the requested id (recoverable, 404 over HTTP)."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"record not found: {record_id}")
        self.record_id = record_id


class StoreError(TrackerError):
    """Persistence failure. Nothing was committed."""


class StoreUnavailable(StoreError):
    """The record store could not be read."""


class DeliveryError(TrackerError):
    """A single recipient could not be notified."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"delivery to {address} failed: {reason}")
        self.address = address
        self.reason = reason


class ConfigurationError(TrackerError):
    """The record collection or settings are inconsistent."""


class MonitorError(TrackerError):
    """The monitored document could not be inspected."""

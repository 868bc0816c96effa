"""
cadence.lifecycle
=================

State-transition guard for a portfolio owner's :class:`cadence.models.Record`.

A two-state machine describes the weekly cycle: ``PENDING → COMPLETE`` is
the only forward transition.  Going back to ``PENDING`` happens only through
the explicit reset helpers below, never through :func:`advance_status`.

Every helper mutates the record **in-place**; callers that need atomicity
work on a copy (see :mod:`cadence.reconciler`).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .models import Record, Status, Via, as_utc

# ---------------------------------------------------------------------
# Allowed transitions: source status → set[valid target statuses]
# ---------------------------------------------------------------------
RULES = {
    Status.PENDING: {Status.COMPLETE},
    Status.COMPLETE: set(),
}


def advance_status(record: Record, new_status: Status) -> None:
    """
    Change :pyattr:`record.status` if the transition is legal,
    otherwise raise :class:`ValueError`.

    Examples
    --------
    >>> r = Record("acme", "Acme", "Ann", "ann@example.com")
    >>> advance_status(r, Status.COMPLETE)
    >>> advance_status(r, Status.PENDING)
    Traceback (most recent call last):
        ...
    ValueError: illegal transition complete → pending
    """
    if not record.is_owner:
        raise ValueError(f"{record.role} records have no status")
    current = record.status
    if new_status not in RULES.get(current, set()):
        raise ValueError(f"illegal transition {current} → {new_status}")
    record.status = new_status


def mark_complete(
    record: Record,
    *,
    now: datetime,
    via: Via,
    completed_at: Optional[datetime] = None,
    completed_by: Optional[str] = None,
) -> bool:
    """
    Transition *record* to ``COMPLETE`` and stamp its provenance.

    Returns ``False`` (and changes nothing) when the record was already
    complete.
    """
    if record.status is Status.COMPLETE:
        return False
    now = as_utc(now)
    advance_status(record, Status.COMPLETE)
    record.last_updated = now
    record.completed_at = as_utc(completed_at) if completed_at else now
    record.completed_by = completed_by
    record.completed_via = via
    return True


def reset(record: Record, *, soft: bool = False) -> None:
    """Put an owner back to ``PENDING``; a hard reset also clears history."""
    if not record.is_owner:
        return
    record.status = Status.PENDING
    if not soft:
        record.last_updated = None
        record.clear_provenance()


def needs_reminder(record: Record, now: datetime, recency: timedelta) -> bool:
    """
    True when a pending owner has not been touched within *recency*.

    A record updated inside the window counts as handled even while it is
    still pending.  Naive datetimes are read as UTC.
    """
    if not record.is_pending:
        return False
    if record.last_updated is None:
        return True
    return as_utc(now) - as_utc(record.last_updated) > recency

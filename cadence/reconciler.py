"""
cadence.reconciler
==================

Completion reconciliation: turns an external completion signal into a
status transition on the matching owner record(s).

Two signals exist:

* an explicit click on the "Mark as Complete" link (:func:`complete_by_id`)
* a detected edit of the tracker document (:func:`reconcile_external_edit`)

Plus the two cycle resets.  Every function mutates the collection it is
given; :class:`cadence.service.TrackerContext` hands in a copy and only
swaps it in once the store write succeeded.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Tuple

from .errors import NotFound
from .lifecycle import mark_complete, reset
from .models import Record, Status, Via
from .portfolio import RecordCollection

logger = logging.getLogger(__name__)

# "Matt/Shiju", "Ann & Bob", "Ann, Bob" all name several people
_OWNER_SEPARATORS = re.compile(r"\s*[/&,]\s*")


def names_match(modifier: str, owner: str) -> bool:
    """
    Loose, case-insensitive substring match in either direction.

    The full owner label is tried first, then each person in a combined
    label, so "Matt Jones" matches "Matt/Shiju".  Blank names never match.
    """
    modifier = (modifier or "").strip().lower()
    owner = (owner or "").strip().lower()
    if not modifier or not owner:
        return False
    candidates = [owner] + [p for p in _OWNER_SEPARATORS.split(owner) if p]
    return any(c in modifier or modifier in c for c in candidates)


def complete_by_id(rc: RecordCollection, record_id: str, now: datetime) -> Tuple[Record, bool]:
    """
    Mark the owner *record_id* complete.

    Returns ``(record, changed)``; ``changed`` is ``False`` when the record
    was already complete.  Raises :class:`NotFound` for unknown ids and for
    records that are not portfolio owners.
    """
    rec = rc.get(record_id)
    if not rec.is_owner:
        raise NotFound(record_id)
    changed = mark_complete(rec, now=now, via=Via.MANUAL)
    if changed:
        logger.info("Marked %s (%s) complete via %s", rec.name, rec.id, Via.MANUAL)
    return rec, changed


def reconcile_external_edit(
    rc: RecordCollection, modifier_name: str, modified_at: datetime, now: datetime
) -> List[Record]:
    """
    Complete every pending owner whose name matches *modifier_name*.

    All matches transition in one call, so an ambiguous name can complete
    several owners at once.  Returns the records that changed.
    """
    changed = []
    for rec in rc.find_by_status(Status.PENDING):
        if not names_match(modifier_name, rec.owner):
            continue
        mark_complete(
            rec, now=now, via=Via.BOX, completed_at=modified_at, completed_by=modifier_name
        )
        changed.append(rec)
    if len(changed) > 1:
        logger.warning(
            "Edit by %r matched %d owners: %s",
            modifier_name, len(changed), ", ".join(r.owner for r in changed),
        )
    for rec in changed:
        logger.info("Marked %s (%s) complete via %s edit by %s", rec.name, rec.id, Via.BOX, modifier_name)
    return changed


def bulk_reset(rc: RecordCollection, now: datetime) -> List[Record]:
    """Start a new cycle: every owner pending, history cleared."""
    owners = rc.owners()
    for rec in owners:
        reset(rec)
    return owners


def soft_reset(rc: RecordCollection, now: datetime) -> List[Record]:
    """Status back to pending, ``lastUpdated`` and provenance kept."""
    owners = rc.owners()
    for rec in owners:
        reset(rec, soft=True)
    return owners

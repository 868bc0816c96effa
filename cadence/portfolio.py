"""
cadence.portfolio
=================

An ordered, id-keyed collection of :class:`cadence.models.Record` objects.

Only the standard library is used here, so the engine can be
unit-tested without a store or a dispatcher.
"""

from __future__ import annotations

import copy
from typing import Dict, Iterable, Iterator, List

from .errors import ConfigurationError, NotFound
from .models import Record, Role, Status


class RecordCollection:
    """
    Insertion-ordered registry of records keyed by ``id``.

    Example
    -------
    >>> rc = RecordCollection([Record("acme", "Acme", "Ann", "ann@example.com")])
    >>> rc.get("acme").status
    <Status.PENDING: 'pending'>
    """

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: Dict[str, Record] = {}
        for rec in records:
            if rec.id in self._records:
                raise ConfigurationError(f"duplicate record id: {rec.id}")
            self._records[rec.id] = rec

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, record_id: str) -> Record:
        """Retrieve by id (raise :class:`NotFound` if not present)."""
        try:
            return self._records[record_id]
        except KeyError:
            raise NotFound(record_id) from None

    def find_by_role(self, role: Role) -> List[Record]:
        return [r for r in self._records.values() if r.role is role]

    def owners(self) -> List[Record]:
        return self.find_by_role(Role.PORTFOLIO_OWNER)

    def find_by_status(self, status: Status) -> List[Record]:
        """Return all portfolio owners currently at the given Status."""
        return [r for r in self.owners() if r.status is status]

    def clone(self) -> "RecordCollection":
        """Deep copy, used for copy-on-write mutations."""
        return RecordCollection(copy.deepcopy(list(self)))

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Record]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

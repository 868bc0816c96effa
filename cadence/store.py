"""
cadence.store
=============

Record Store Adapters.

The engine treats persistence as a get/put of the **whole** collection:

* ``load() -> list[Record]`` raises :class:`~cadence.errors.StoreUnavailable`
* ``save(records)`` raises :class:`~cadence.errors.StoreError`

:class:`JsonRecordStore` keeps the ``reminders.json`` layout and writes via a
temporary file + rename, so a failed write never leaves a half-written file.
:class:`MemoryRecordStore` is used by tests and demos.  The SQLite-backed
variant lives in :mod:`cadence.db`.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import StoreError, StoreUnavailable
from .models import MonitoredDocument, Record

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Abstract whole-collection store."""

    @abstractmethod
    def load(self) -> List[Record]:
        """Return every record, in order."""

    @abstractmethod
    def save(self, records: Iterable[Record]) -> None:
        """Replace the stored collection with *records*."""


def _atomic_write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
            fh.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class JsonRecordStore(RecordStore):
    """
    ``reminders.json`` on disk.

    A missing file loads as an empty collection; unreadable or malformed
    files raise :class:`StoreUnavailable`.
    """

    def __init__(self, path: os.PathLike | str) -> None:
        self.path = Path(path)

    def load(self) -> List[Record]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            logger.warning("Record file %s does not exist, starting empty", self.path)
            return []
        except (OSError, ValueError) as exc:
            raise StoreUnavailable(f"cannot read {self.path}: {exc}") from exc

        if not isinstance(raw, list):
            raise StoreUnavailable(f"{self.path} must contain a JSON array")
        try:
            return [Record.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreUnavailable(f"invalid record in {self.path}: {exc}") from exc

    def save(self, records: Iterable[Record]) -> None:
        payload = [r.to_dict() for r in records]
        try:
            _atomic_write_json(self.path, payload)
        except OSError as exc:
            raise StoreError(f"cannot write {self.path}: {exc}") from exc
        logger.debug("Saved %d records to %s", len(payload), self.path)


class MemoryRecordStore(RecordStore):
    """Keeps deep copies so callers cannot mutate the stored state by accident."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: List[Record] = copy.deepcopy(list(records))
        self.saves = 0

    def load(self) -> List[Record]:
        return copy.deepcopy(self._records)

    def save(self, records: Iterable[Record]) -> None:
        self._records = copy.deepcopy(list(records))
        self.saves += 1


# ---------------------------------------------------------------------------
# Monitored-document pointer
# ---------------------------------------------------------------------------
class DocumentConfigStore:
    """Small JSON file holding the :class:`MonitoredDocument` state."""

    def __init__(self, path: os.PathLike | str) -> None:
        self.path = Path(path)

    def load(self, default_id: Optional[str] = None) -> Optional[MonitoredDocument]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                return MonitoredDocument.from_dict(json.load(fh))
        except FileNotFoundError:
            return MonitoredDocument(default_id) if default_id else None
        except (OSError, ValueError, KeyError) as exc:
            raise StoreUnavailable(f"cannot read {self.path}: {exc}") from exc

    def save(self, doc: MonitoredDocument) -> None:
        try:
            _atomic_write_json(self.path, doc.to_dict())
        except OSError as exc:
            raise StoreError(f"cannot write {self.path}: {exc}") from exc

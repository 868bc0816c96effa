"""
cadence.db
==========

SQLite persistence layer for Cadence.

This module exposes:

* ``make_engine(url)`` – a SQLModel engine for the given database URL
* ``RecordDB`` – ORM row mirroring :class:`cadence.models.Record`
* ``DBRecordStore`` – a :class:`~cadence.store.RecordStore` that replaces the
  whole collection inside a single transaction
* ``create_all(engine)`` – helper to create tables at first run
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from .errors import StoreError, StoreUnavailable
from .models import Record, as_utc
from .store import RecordStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
def make_engine(url: str, echo: bool = False):
    """Return a SQLModel engine; SQLite connections may cross threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=echo, connect_args=connect_args)


# ---------------------------------------------------------------------------
# ORM model that mirrors cadence.models.Record
# ---------------------------------------------------------------------------
class RecordDB(SQLModel, table=True):
    """
    SQLite-backed representation of a :class:`cadence.models.Record`.

    ``position`` keeps the collection order stable across reloads.  SQLite
    drops tzinfo, so timestamps are written as naive UTC into plain
    ``DateTime`` columns and re-tagged on the way out.
    """

    __tablename__ = "records"

    id: str = Field(primary_key=True, index=True)
    position: int = Field(index=True)
    name: str
    owner: str
    email: Union[str, List[str]] = Field(sa_column=Column(JSON, nullable=False))
    role: str
    status: Optional[str] = None
    last_updated: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(), nullable=True))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(), nullable=True))
    completed_by: Optional[str] = None
    completed_via: Optional[str] = None

    # ---------------------------------------------------------------------
    # Converters
    # ---------------------------------------------------------------------
    @classmethod
    def from_record(cls, rec: Record, position: int) -> "RecordDB":
        """Create a DB row from an in-memory record."""
        return cls(
            id=rec.id,
            position=position,
            name=rec.name,
            owner=rec.owner,
            email=list(rec.email) if isinstance(rec.email, list) else rec.email,
            role=rec.role.value,
            status=rec.status.value if rec.status else None,
            last_updated=_naive(rec.last_updated),
            completed_at=_naive(rec.completed_at),
            completed_by=rec.completed_by,
            completed_via=rec.completed_via.value if rec.completed_via else None,
        )

    def to_record(self) -> Record:
        """Convert the DB row back into a plain Record."""
        return Record(
            id=self.id,
            name=self.name,
            owner=self.owner,
            email=self.email,
            role=self.role,
            status=self.status,
            last_updated=_aware(self.last_updated),
            completed_at=_aware(self.completed_at),
            completed_by=self.completed_by,
            completed_via=self.completed_via,
        )


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value).replace(tzinfo=None) if value is not None else None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(engine) -> None:
    """Create all tables for imported SQLModel subclasses, including RecordDB."""
    SQLModel.metadata.create_all(engine)


class DBRecordStore(RecordStore):
    """
    Whole-collection store backed by SQLModel.

    ``save`` deletes and re-inserts every row in one transaction; any
    database error rolls the transaction back and surfaces as
    :class:`StoreError`.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.engine = make_engine(url, echo=echo)
        create_all(self.engine)

    def load(self) -> List[Record]:
        try:
            with Session(self.engine) as s:
                rows = s.exec(select(RecordDB).order_by(RecordDB.position)).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"cannot read records: {exc}") from exc

    def save(self, records: Iterable[Record]) -> None:
        rows = [RecordDB.from_record(rec, i) for i, rec in enumerate(records)]
        try:
            with Session(self.engine) as s:
                for row in s.exec(select(RecordDB)).all():
                    s.delete(row)
                s.flush()
                s.add_all(rows)
                s.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"cannot write records: {exc}") from exc
        logger.debug("Saved %d records to %s", len(rows), self.engine.url)


# ---------------------------------------------------------------------------
# Lightweight CLI
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    """
    Quick bootstrap helper.

    Examples
    --------
    $ python -m cadence.db --create        # first-time table creation
    $ python -m cadence.db --import reminders.json
    """
    import argparse
    import textwrap

    from .settings import settings
    from .store import JsonRecordStore

    parser = argparse.ArgumentParser(
        prog="python -m cadence.db",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Cadence DB utilities
            --------------------
            --create   Create all SQLModel tables (safe if they already exist)
            --import   Replace the database contents with a reminders.json file
            """
        ),
    )
    parser.add_argument("--create", action="store_true", help="create tables")
    parser.add_argument("--import", dest="import_file", metavar="FILE", help="import a JSON record file")
    args = parser.parse_args()

    store = DBRecordStore(settings.db_url)
    if args.create:
        print("✅ database schema initialised")

    if args.import_file:
        records = JsonRecordStore(args.import_file).load()
        store.save(records)
        print(f"✅ imported {len(records)} records")

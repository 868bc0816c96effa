"""
cadence.service
===============

:class:`TrackerContext` is the single owner of the record collection.

It replaces module-level state: one context bundles the store, the
dispatcher, the optional Box monitor, the in-memory collection and the lock
that serialises every read-modify-persist sequence.  Tests build as many
isolated contexts as they like; the API and the scheduler share one built by
:meth:`TrackerContext.from_settings`.

Ordering rule for every mutation: compute on a copy, persist, swap the copy
in, release the lock, *then* send email.  A failed write leaves memory
untouched; a failed email never undoes a persisted transition.
"""

from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from . import reconciler
from .box import BoxMonitor
from .db import DBRecordStore
from .dispatch import (
    Dispatcher,
    DispatchReport,
    GmailDispatcher,
    LogDispatcher,
    RedirectDispatcher,
    deliver,
)
from .engine import EscalationEngine
from .errors import ConfigurationError, NotFound
from .models import EditSignal, Kind, Notification, Record
from .portfolio import RecordCollection
from .settings import Settings
from .store import DocumentConfigStore, JsonRecordStore, RecordStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackerContext:
    """
    Process-wide tracker state.

    Parameters
    ----------
    store : RecordStore
        Whole-collection persistence.
    dispatcher : Dispatcher
        Email transport.
    engine : EscalationEngine
        Batch calculator.
    monitor : BoxMonitor | None
        Document watcher; ``None`` disables edit detection.
    document_store : DocumentConfigStore | None
        Where the monitored-document pointer is kept.
    document_id : str | None
        Box file id used when no pointer has been stored yet.
    completion_address : str | None
        Coordinator told about every completion.
    clock : callable
        Returns "now"; tests pass a fixed clock.
    """

    def __init__(
        self,
        store: RecordStore,
        dispatcher: Dispatcher,
        engine: EscalationEngine,
        *,
        monitor: Optional[BoxMonitor] = None,
        document_store: Optional[DocumentConfigStore] = None,
        document_id: Optional[str] = None,
        completion_address: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.engine = engine
        self.monitor = monitor
        self.document_store = document_store
        self.document_id = document_id
        self.completion_address = completion_address
        self.clock = clock
        self._lock = threading.Lock()
        self._records = RecordCollection()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_settings(cls, settings: Settings) -> "TrackerContext":
        """Build adapters from *settings* and load the collection."""
        if settings.store_backend == "db":
            store: RecordStore = DBRecordStore(settings.db_url)
        else:
            store = JsonRecordStore(settings.records_file)

        if settings.gmail_access_token:
            dispatcher: Dispatcher = GmailDispatcher(
                settings.gmail_access_token,
                base_url=str(settings.gmail_api_base),
                timeout=settings.dispatch_timeout,
            )
        else:
            logger.warning("No Gmail token configured, emails will only be logged")
            dispatcher = LogDispatcher()
        if settings.test_mode:
            logger.info("TEST MODE ACTIVE - all emails redirect to %s", settings.test_mode_address)
            dispatcher = RedirectDispatcher(dispatcher, settings.test_mode_address)

        monitor = None
        if settings.box_file_id:
            monitor = BoxMonitor(
                settings.box_access_token,
                base_url=str(settings.box_api_base),
                timeout=settings.dispatch_timeout,
            )

        ctx = cls(
            store,
            dispatcher,
            EscalationEngine(str(settings.public_base_url), timedelta(days=settings.recency_days)),
            monitor=monitor,
            document_store=DocumentConfigStore(settings.document_file),
            document_id=settings.box_file_id,
            completion_address=settings.completion_notify_address,
        )
        ctx.load()
        return ctx

    def load(self) -> int:
        """(Re)load the collection from the store; returns the record count."""
        records = RecordCollection(self.store.load())
        with self._lock:
            self._records = records
        logger.info("Loaded %d records (%d portfolio owners)", len(records), len(records.owners()))
        return len(records)

    def close(self) -> None:
        self.dispatcher.close()
        if self.monitor is not None:
            self.monitor.close()

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def snapshot(self) -> RecordCollection:
        """Deep copy of the current collection."""
        with self._lock:
            return self._records.clone()

    def records(self) -> List[Record]:
        return list(self.snapshot())

    def get(self, record_id: str) -> Record:
        with self._lock:
            return copy.deepcopy(self._records.get(record_id))

    def _mutate(self, apply: Callable[[RecordCollection], Tuple[object, bool]]):
        """Run *apply* on a copy; persist and swap in only if it reports a change."""
        with self._lock:
            work = self._records.clone()
            result, dirty = apply(work)
            if dirty:
                self.store.save(work)
                self._records = work
            return result

    # ------------------------------------------------------------------
    # Batches (Cycle Clock entry points)
    # ------------------------------------------------------------------
    def batch(self, kind: Kind, now: Optional[datetime] = None) -> List[Notification]:
        now = now or self.clock()
        rc = self.snapshot()
        if kind is Kind.REMINDER:
            return self.engine.reminder_batch(rc, now)
        if kind is Kind.CHASE:
            return self.engine.chase_batch(rc, now)
        if kind is Kind.REVIEW:
            return self.engine.review_batch(rc, now)
        if kind is Kind.FINAL:
            return self.engine.final_batch(rc, now)
        raise ValueError(f"{kind.value} is not a scheduled batch")

    def run_batch(self, kind: Kind, now: Optional[datetime] = None) -> DispatchReport:
        """Compute one batch and dispatch it."""
        logger.info("Running %s batch", kind.value)
        notes = self.batch(kind, now)
        if not notes:
            logger.info("No %s notifications to send", kind.value)
        return deliver(self.dispatcher, notes)

    def send_reminders(self, now: Optional[datetime] = None) -> DispatchReport:
        return self.run_batch(Kind.REMINDER, now)

    def send_chase(self, now: Optional[datetime] = None) -> DispatchReport:
        return self.run_batch(Kind.CHASE, now)

    def send_review(self, now: Optional[datetime] = None) -> DispatchReport:
        return self.run_batch(Kind.REVIEW, now)

    def send_final(self, now: Optional[datetime] = None) -> DispatchReport:
        return self.run_batch(Kind.FINAL, now)

    # ------------------------------------------------------------------
    # Completion signals
    # ------------------------------------------------------------------
    def complete(self, record_id: str, now: Optional[datetime] = None) -> Tuple[Record, bool]:
        """
        Mark *record_id* complete (idempotent).

        Raises :class:`NotFound`; store errors propagate and nothing changes.
        The coordinator notice goes out only for a real transition.
        """
        now = now or self.clock()

        def apply(rc):
            rec, changed = reconciler.complete_by_id(rc, record_id, now)
            return (copy.deepcopy(rec), changed), changed

        rec, changed = self._mutate(apply)
        if changed:
            self._notify_completed([rec], now)
        return rec, changed

    def reconcile_edit(self, signal: EditSignal, now: Optional[datetime] = None) -> List[Record]:
        """Apply a detected document edit; returns the records that changed."""
        now = now or self.clock()

        def apply(rc):
            changed = reconciler.reconcile_external_edit(
                rc, signal.modifier_name, signal.modified_at, now
            )
            return copy.deepcopy(changed), bool(changed)

        changed = self._mutate(apply)
        if not changed:
            logger.info("Edit by %r matched no pending owner", signal.modifier_name)
        self._notify_completed(changed, now)
        return changed

    def check_document(self, now: Optional[datetime] = None) -> List[Record]:
        """
        Poll the monitored document once and reconcile any edit.

        The stored pointer only advances after the reconciliation was
        persisted, so a failed write is retried on the next poll.
        """
        if self.monitor is None or self.document_store is None:
            raise ConfigurationError("document monitoring is not configured")
        now = now or self.clock()
        doc = self.document_store.load(default_id=self.document_id)
        if doc is None:
            raise ConfigurationError("no monitored document id configured")

        signal = self.monitor.poll(doc, now)
        changed = self.reconcile_edit(signal, now) if signal is not None else []
        self.document_store.save(doc)
        return changed

    def _notify_completed(self, records: List[Record], now: datetime) -> Optional[DispatchReport]:
        if not records or not self.completion_address:
            return None
        notes = [self.engine.completion_notice(r, self.completion_address, now) for r in records]
        return deliver(self.dispatcher, notes)

    # ------------------------------------------------------------------
    # Cycle resets
    # ------------------------------------------------------------------
    def bulk_reset(self, now: Optional[datetime] = None) -> int:
        """New weekly cycle: owners pending, history cleared. Returns count."""
        now = now or self.clock()
        count = self._mutate(lambda rc: (len(reconciler.bulk_reset(rc, now)), True))
        logger.info("Bulk reset %d portfolio owners to pending", count)
        return count

    def soft_reset(self, now: Optional[datetime] = None) -> int:
        """Status-only reset used for ad hoc testing. Returns count."""
        now = now or self.clock()
        count = self._mutate(lambda rc: (len(reconciler.soft_reset(rc, now)), True))
        logger.info("Soft reset %d portfolio owners to pending", count)
        return count

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------
    def send_feedback(self, feedback: Dict[str, str]) -> Tuple[DispatchReport, List[str]]:
        notes, names = self.engine.feedback_batch(self.snapshot(), feedback)
        return deliver(self.dispatcher, notes), names

    def acknowledge_feedback(self, record_id: str) -> Record:
        rec = self.get(record_id)
        if not rec.is_owner:
            raise NotFound(record_id)
        logger.info("Feedback acknowledged for %s (%s)", rec.name, rec.id)
        return rec

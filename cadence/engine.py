"""
cadence.engine
==============

Escalation engine: decides who is notified and renders what they receive.

Every ``*_batch`` method is a pure function of the record collection and an
explicit ``now``; nothing is mutated and nothing is sent.  Calling a batch
twice yields the same payloads, and sending them twice sends twice; the
only de-duplication is the recency window applied to owner reminders.

Streams
-------
reminder  one payload per pending owner outside the recency window
chase     one payload per ``chase`` record, suppressed when nothing is pending
review    one payload per ``reviewer`` record, always sent
final     at most one payload, to the first ``final`` record
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Tuple

from . import render
from .lifecycle import needs_reminder
from .models import Kind, Notification, Record, Role, Via
from .portfolio import RecordCollection

logger = logging.getLogger(__name__)

DEFAULT_RECENCY = timedelta(days=7)


@dataclass(frozen=True)
class CycleSummary:
    """Completion counts over the portfolio owners of one collection."""
    total: int
    completed: List[Record]
    pending: List[Record]

    @property
    def rate(self) -> int:
        """Completion percentage, 0 when there are no owners."""
        if self.total == 0:
            return 0
        return round(100 * len(self.completed) / self.total)

    @property
    def all_complete(self) -> bool:
        return self.total > 0 and not self.pending


def summarize(records: Iterable[Record]) -> CycleSummary:
    owners = [r for r in records if r.is_owner]
    return CycleSummary(
        total=len(owners),
        completed=[r for r in owners if r.is_complete],
        pending=[r for r in owners if r.is_pending],
    )


def _collection(records) -> RecordCollection:
    return records if isinstance(records, RecordCollection) else RecordCollection(records)


class EscalationEngine:
    """
    Stateless batch calculator.

    Parameters
    ----------
    base_url : str
        Public URL of the control surface, used for links in emails.
    recency : datetime.timedelta, default=7 days
        Owners updated within this window are not reminded.
    """

    def __init__(self, base_url: str, recency: timedelta = DEFAULT_RECENCY) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.recency = recency

    # ------------------------------------------------------------------
    # Owner reminders
    # ------------------------------------------------------------------
    def due_reminders(self, records, now: datetime) -> List[Record]:
        """Owners eligible for a reminder at *now*, in collection order."""
        return [r for r in _collection(records) if needs_reminder(r, now, self.recency)]

    def reminder_batch(self, records, now: datetime) -> List[Notification]:
        batch = []
        for rec in self.due_reminders(records, now):
            if not rec.addresses:
                logger.warning("Owner %s (%s) has no email address, skipping", rec.owner, rec.id)
                continue
            body = render.render(
                "reminder",
                owner=rec.owner,
                name=rec.name,
                button=render.button(f"{self.base_url}/complete/{rec.id}", "Mark as Complete"),
            )
            batch.append(Notification(
                kind=Kind.REMINDER,
                record=rec,
                addresses=rec.addresses,
                subject=f"Reminder: {rec.name} Portfolio Update",
                body=body,
            ))
        return batch

    # ------------------------------------------------------------------
    # Escalation and reporting
    # ------------------------------------------------------------------
    def chase_batch(self, records, now: datetime) -> List[Notification]:
        rc = _collection(records)
        summary = summarize(rc)
        if not summary.pending:
            logger.info("No pending updates - skipping chase notification")
            return []

        pending_list = render.owner_list(summary.pending)
        batch = []
        for chaser in rc.find_by_role(Role.CHASE):
            batch.append(Notification(
                kind=Kind.CHASE,
                record=chaser,
                addresses=chaser.addresses,
                subject="[Chase] Portfolio Updates - Pending List",
                body=render.render(
                    "chase",
                    owner=chaser.owner,
                    pending_list=pending_list,
                    pending=len(summary.pending),
                    total=summary.total,
                ),
                context={"pending": len(summary.pending), "total": summary.total},
            ))
        return batch

    def review_batch(self, records, now: datetime) -> List[Notification]:
        rc = _collection(records)
        summary = summarize(rc)
        completed_list = render.owner_list(summary.completed, "#28a745", empty="None yet")
        pending_list = render.owner_list(summary.pending, "#dc3545", empty="None")

        batch = []
        for reviewer in rc.find_by_role(Role.REVIEWER):
            batch.append(Notification(
                kind=Kind.REVIEW,
                record=reviewer,
                addresses=reviewer.addresses,
                subject="[Review] Portfolio Updates Status Report",
                body=render.render(
                    "review",
                    owner=reviewer.owner,
                    completed=len(summary.completed),
                    pending=len(summary.pending),
                    total=summary.total,
                    completed_list=completed_list,
                    pending_list=pending_list,
                ),
                context={
                    "completed": len(summary.completed),
                    "pending": len(summary.pending),
                    "total": summary.total,
                },
            ))
        return batch

    def final_batch(self, records, now: datetime) -> List[Notification]:
        rc = _collection(records)
        finals = rc.find_by_role(Role.FINAL)
        if not finals:
            logger.warning("No final report recipient found")
            return []
        if len(finals) > 1:
            logger.warning("%d final recipients configured, using %s", len(finals), finals[0].id)
        recipient = finals[0]

        summary = summarize(rc)
        if summary.all_complete:
            subject = "Weekly Tracker Review - All Updates Complete"
        else:
            subject = f"Weekly Tracker Review - {summary.rate}% Complete"

        pending_section = ""
        if summary.pending:
            pending_section = render.fragment(
                "final_pending",
                pending=len(summary.pending),
                pending_list=render.owner_list(summary.pending, "#dc3545"),
            )
        body = render.render(
            "final",
            owner=recipient.owner,
            banner="#d4edda" if summary.all_complete else "#fff3cd",
            rate=summary.rate,
            completed=len(summary.completed),
            total=summary.total,
            button=render.button(
                f"{self.base_url}/feedback.html", "Add Feedback for Any Company", "#007bff"
            ),
            completed_list=render.owner_list(summary.completed, "#28a745"),
            pending_section=pending_section,
        )
        return [Notification(
            kind=Kind.FINAL,
            record=recipient,
            addresses=recipient.addresses,
            subject=subject,
            body=body,
            context={
                "rate": summary.rate,
                "completed": len(summary.completed),
                "total": summary.total,
                "all_complete": summary.all_complete,
            },
        )]

    # ------------------------------------------------------------------
    # Follow-ups
    # ------------------------------------------------------------------
    def completion_notice(self, record: Record, address: str, now: datetime) -> Notification:
        """Tell the coordinator that *record* was just completed."""
        via = ""
        if record.completed_via is Via.BOX:
            via = f" (detected Box edit by {record.completed_by})"
        return Notification(
            kind=Kind.COMPLETION,
            record=record,
            addresses=[address],
            subject=f"[Complete] {record.name} Update Completed",
            body=render.render(
                "completion",
                owner=record.owner,
                name=record.name,
                via=via,
                when=now.strftime("%Y-%m-%d %H:%M %Z"),
            ),
        )

    def feedback_batch(
        self, records, feedback: Dict[str, str]
    ) -> Tuple[List[Notification], List[str]]:
        """
        One payload per owner id in *feedback*.

        Returns the payloads and the names of the companies that received
        feedback.  Unknown or non-owner ids are logged and skipped.
        """
        rc = _collection(records)
        batch, names = [], []
        for record_id, text in feedback.items():
            if record_id not in rc or not rc.get(record_id).is_owner:
                logger.warning("Company not found: %s", record_id)
                continue
            company = rc.get(record_id)
            names.append(company.name)
            batch.append(Notification(
                kind=Kind.FEEDBACK,
                record=company,
                addresses=company.addresses,
                subject=f"Feedback for {company.name}",
                body=render.render(
                    "feedback",
                    owner=company.owner,
                    name=company.name,
                    text=text,
                    button=render.button(
                        f"{self.base_url}/feedback-complete/{company.id}", "Mark Done", "#28a745"
                    ),
                ),
            ))
        return batch, names

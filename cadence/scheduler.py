"""
cadence.scheduler
=================

Cycle Clock: cron triggers that call into a :class:`TrackerContext`.

All business logic stays in the context; the jobs here only check that the
dispatcher can send, then run one batch.  Two schedule sets exist:

TEST        short intervals for end-to-end trials
PRODUCTION  Pacific-time weekday slots, written in UTC

Weekdays are spelled as names: APScheduler numbers ``day_of_week`` from
Monday, not from Sunday as crontab does.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .errors import TrackerError
from .models import Kind
from .service import TrackerContext

logger = logging.getLogger(__name__)

SCHEDULES: Dict[str, Dict[str, List[str]]] = {
    "TEST": {
        "reminder": ["*/2 * * * *", "*/3 * * * *"],
        "chase": ["*/4 * * * *"],
        "review": ["*/6 * * * *"],
        "final": ["*/8 * * * *"],
    },
    "PRODUCTION": {
        "reminder": [
            "0 22 * * wed",  # Wednesday 3 PM PT
            "0 22 * * thu",  # Thursday 3 PM PT
            "0 16 * * fri",  # Friday 9 AM PT
            "0 17 * * fri",  # Friday 10 AM PT
            "0 18 * * fri",  # Friday 11 AM PT
        ],
        "chase": ["0 19 * * fri"],  # Friday 12 PM PT
        "review": ["0 19 * * fri"],  # Friday 12 PM PT
        "final": ["1 0 * * sat"],  # Friday 5 PM PT (00:01 UTC Saturday)
    },
}


def run_job(ctx: TrackerContext, kind: Kind) -> None:
    """
    Wrapper job for one batch.

    Skips when the dispatcher is not authenticated; errors are logged so one
    failed run does not unschedule the job.
    """
    if not ctx.dispatcher.ready:
        logger.info("[SKIP] %s - not authenticated", kind.value)
        return
    try:
        report = ctx.run_batch(kind)
    except TrackerError:
        logger.exception("Scheduled %s batch failed", kind.value)
        return
    logger.info("%s batch: %d sent, %d failed", kind.value, len(report.sent), len(report.failed))


def check_document_job(ctx: TrackerContext) -> None:
    try:
        changed = ctx.check_document()
    except TrackerError:
        logger.exception("Document check failed")
        return
    if changed:
        logger.info("Document check completed %d owner(s)", len(changed))


def build_scheduler(
    ctx: TrackerContext,
    mode: str = "TEST",
    document_poll_minutes: Optional[int] = None,
    scheduler: Optional[BackgroundScheduler] = None,
) -> BackgroundScheduler:
    """
    Register every job for *mode* on a (not yet started) scheduler.

    Unknown modes fall back to ``TEST``.
    """
    if mode not in SCHEDULES:
        logger.warning("Unknown schedule mode %r, using TEST", mode)
        mode = "TEST"
    scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    for kind_name, expressions in SCHEDULES[mode].items():
        kind = Kind(kind_name)
        for i, expr in enumerate(expressions):
            scheduler.add_job(
                run_job,
                trigger=CronTrigger.from_crontab(expr, timezone="UTC"),
                args=[ctx, kind],
                id=f"{kind_name}-{i}",
                replace_existing=True,
                max_instances=1,  # Prevent overlapping runs
                coalesce=True,  # Merge missed runs if the process was down
            )

    if document_poll_minutes and ctx.monitor is not None:
        scheduler.add_job(
            check_document_job,
            trigger="interval",
            minutes=document_poll_minutes,
            args=[ctx],
            id="document-check",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    logger.info("Scheduled %d jobs in %s mode", len(scheduler.get_jobs()), mode)
    return scheduler

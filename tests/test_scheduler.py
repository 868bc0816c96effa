"""
tests/test_scheduler.py
=======================

The cycle clock only wires jobs; these tests inspect the registered jobs
and call the job wrappers directly instead of waiting for cron.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from cadence.errors import StoreError
from cadence.models import Kind
from cadence.scheduler import SCHEDULES, build_scheduler, check_document_job, run_job


def test_production_schedule_registers_every_slot(ctx):
    scheduler = build_scheduler(ctx, "PRODUCTION")
    ids = sorted(job.id for job in scheduler.get_jobs())
    assert ids == sorted(
        f"{kind}-{i}" for kind, exprs in SCHEDULES["PRODUCTION"].items() for i in range(len(exprs))
    )
    assert len([i for i in ids if i.startswith("reminder-")]) == 5


def test_production_slots_fire_on_the_right_weekday(ctx):
    scheduler = build_scheduler(ctx, "PRODUCTION")
    monday = datetime(2026, 10, 12, 0, 0, tzinfo=timezone.utc)
    expected = {
        "reminder-0": "Wednesday 22:00",
        "reminder-1": "Thursday 22:00",
        "reminder-2": "Friday 16:00",
        "reminder-3": "Friday 17:00",
        "reminder-4": "Friday 18:00",
        "chase-0": "Friday 19:00",
        "review-0": "Friday 19:00",
        "final-0": "Saturday 00:01",
    }
    fired = {
        job.id: job.trigger.get_next_fire_time(None, monday).strftime("%A %H:%M")
        for job in scheduler.get_jobs()
    }
    assert fired == expected


def test_unknown_mode_falls_back_to_test(ctx):
    scheduler = build_scheduler(ctx, "STAGING")
    assert {job.id for job in scheduler.get_jobs()} == {
        "reminder-0", "reminder-1", "chase-0", "review-0", "final-0"
    }


def test_document_job_only_with_monitor(ctx):
    assert "document-check" not in {j.id for j in build_scheduler(ctx, "TEST", 5).get_jobs()}
    ctx.monitor = MagicMock()
    assert "document-check" in {j.id for j in build_scheduler(ctx, "TEST", 5).get_jobs()}


def test_run_job_sends_batch(ctx, dispatcher):
    run_job(ctx, Kind.REVIEW)
    assert [m[0] for m in dispatcher.outbox] == ["neil@example.com"]


def test_run_job_skips_when_not_ready():
    ctx = MagicMock()
    ctx.dispatcher.ready = False
    run_job(ctx, Kind.REMINDER)
    ctx.run_batch.assert_not_called()


def test_run_job_logs_tracker_errors(caplog):
    ctx = MagicMock()
    ctx.dispatcher.ready = True
    ctx.run_batch.side_effect = StoreError("disk full")
    run_job(ctx, Kind.FINAL)
    assert "Scheduled final batch failed" in caplog.text


def test_check_document_job_swallows_tracker_errors(caplog):
    ctx = MagicMock()
    ctx.check_document.side_effect = StoreError("disk full")
    check_document_job(ctx)
    assert "Document check failed" in caplog.text

"""
api.notifications
=================

Manual triggers for each notification batch.

These call the same code path as the scheduler and answer 401 while the
email transport is not authenticated.
"""

from fastapi import APIRouter, Depends

from cadence.models import Kind
from cadence.service import TrackerContext
from .deps import get_context, require_dispatcher

router = APIRouter(tags=["notifications"])


def _run(ctx: TrackerContext, kind: Kind, message: str):
    report = ctx.run_batch(kind)
    return {"success": report.ok, "message": message, **report.to_dict()}


@router.get("/auth/status")
def auth_status(ctx: TrackerContext = Depends(get_context)):
    return {"authenticated": ctx.dispatcher.ready}


@router.post("/send-test-reminder")
def send_reminders(ctx: TrackerContext = Depends(require_dispatcher)):
    return _run(ctx, Kind.REMINDER, "Owner reminders sent")


@router.post("/send-test-chase")
def send_chase(ctx: TrackerContext = Depends(require_dispatcher)):
    return _run(ctx, Kind.CHASE, "Chase notification sent")


@router.post("/send-test-review")
def send_review(ctx: TrackerContext = Depends(require_dispatcher)):
    return _run(ctx, Kind.REVIEW, "Review notification sent")


@router.post("/send-test-final")
def send_final(ctx: TrackerContext = Depends(require_dispatcher)):
    return _run(ctx, Kind.FINAL, "Final report sent")

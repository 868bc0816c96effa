"""
api.feedback
============

Reviewer feedback: one free-text note per company, mailed to its owner(s),
plus the "Mark Done" acknowledgement page.
"""

from html import escape
from typing import Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import HTMLResponse

from cadence.render import page
from cadence.service import TrackerContext
from .deps import get_context, require_dispatcher

router = APIRouter(tags=["feedback"])


@router.post("/feedback")
def submit_feedback(
    feedback: Dict[str, str] = Body(..., description="Company id → feedback text"),
    ctx: TrackerContext = Depends(require_dispatcher),
):
    entries = {k: v for k, v in feedback.items() if v and v.strip()}
    if not entries:
        return {"success": False, "error": "No feedback provided"}
    report, names = ctx.send_feedback(entries)
    return {"success": True, "count": len(report.sent), "companies": names, **report.to_dict()}


@router.get("/feedback-complete/{record_id}", response_class=HTMLResponse)
def feedback_complete(record_id: str, ctx: TrackerContext = Depends(get_context)):
    rec = ctx.acknowledge_feedback(record_id)
    return page(
        "✓ Feedback Acknowledged",
        f"Thank you for acknowledging the feedback for <strong>{escape(rec.name)}</strong>.",
        color="#28a745",
    )

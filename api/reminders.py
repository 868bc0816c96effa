"""
api.reminders
=============

Record listing, completion-by-click and cycle resets.
"""

from html import escape
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from cadence.render import page
from cadence.service import TrackerContext
from .deps import get_context

router = APIRouter(tags=["reminders"])


@router.get("/reminders", response_model=List[Dict[str, Any]])
def list_reminders(ctx: TrackerContext = Depends(get_context)):
    """Every record in store order, in the ``reminders.json`` shape."""
    return [r.to_dict() for r in ctx.records()]


@router.get("/complete/{record_id}", response_class=HTMLResponse)
def complete(record_id: str, ctx: TrackerContext = Depends(get_context)):
    """
    Target of the "Mark as Complete" button.

    Clicking twice is harmless: the second click shows the same page and
    sends no second notice.  Unknown ids answer 404.
    """
    rec, changed = ctx.complete(record_id)
    message = f"Update for <strong>{escape(rec.name)}</strong> has been marked as complete."
    if not changed:
        message = f"Update for <strong>{escape(rec.name)}</strong> was already marked as complete."
    return page("Thank you!", message)


@router.post("/reset-reminders")
def reset_reminders(ctx: TrackerContext = Depends(get_context)):
    """Status-only reset, for testing."""
    count = ctx.soft_reset()
    return {"success": True, "message": "All portfolio owners reset to pending", "count": count}


@router.post("/reset-cycle")
def reset_cycle(ctx: TrackerContext = Depends(get_context)):
    """Start a new weekly cycle: status, timestamps and provenance cleared."""
    count = ctx.bulk_reset()
    return {"success": True, "message": "New weekly cycle started", "count": count}


@router.post("/document/check")
def check_document(ctx: TrackerContext = Depends(get_context)):
    """Poll the monitored Box document now."""
    changed = ctx.check_document()
    return {
        "success": True,
        "completed": [{"id": r.id, "name": r.name, "owner": r.owner} for r in changed],
    }

"""
api.deps
========

FastAPI dependency providers.

`get_context` returns the process-wide **TrackerContext** so every request
works on the same in-memory collection and lock.  Tests swap it out via
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException

from cadence.service import TrackerContext
from cadence.settings import Settings, settings


@lru_cache
def get_settings() -> Settings:
    """Return application settings."""
    return settings


@lru_cache
def get_context() -> TrackerContext:
    """Singleton tracker context (loads the record store on first use)."""
    return TrackerContext.from_settings(get_settings())


def require_dispatcher(ctx: TrackerContext = Depends(get_context)) -> TrackerContext:
    """401 unless the email transport is authenticated."""
    if not ctx.dispatcher.ready:
        raise HTTPException(status_code=401, detail="Not authenticated with Gmail")
    return ctx

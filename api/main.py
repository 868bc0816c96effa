import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cadence.errors import ConfigurationError, MonitorError, NotFound, StoreError, TrackerError
from cadence.settings import API_DEBUG, API_HOST, API_PORT
from .deps import get_context, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the cron schedule with the app when ENABLE_SCHEDULER is set."""
    cfg = get_settings()
    scheduler = None
    if cfg.enable_scheduler:
        from cadence.scheduler import build_scheduler

        ctx = get_context()
        scheduler = build_scheduler(ctx, cfg.mode, cfg.box_poll_minutes)
        scheduler.start()
        logger.info("Scheduler running in %s mode", cfg.mode)
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(
    title="Cadence API",
    version="0.1.0",
    description="HTTP control surface over the weekly portfolio update tracker.",
    lifespan=lifespan,
)

# --- CORS ----------------------------------------------------------
# Dev-only origins for the dashboard.
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    f"http://localhost:{API_PORT}",
    f"http://{API_HOST}:{API_PORT}",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# --- Error mapping --------------------------------------------------
_STATUS = [
    (NotFound, 404),
    (ConfigurationError, 409),
    (StoreError, 503),
    (MonitorError, 502),
]


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    status = next((code for cls, code in _STATUS if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"success": False, "error": str(exc)})


# --- Include Routers ----------------------------------------------------------
from .feedback import router as feedback_router  # noqa: E402
from .notifications import router as notifications_router  # noqa: E402
from .reminders import router as reminders_router  # noqa: E402

app.include_router(reminders_router)
app.include_router(notifications_router)
app.include_router(feedback_router)


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "Cadence API is alive", "debug": API_DEBUG}

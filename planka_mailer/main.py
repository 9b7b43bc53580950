"""
FastAPI application exposing health and manual sync triggers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, BackgroundTasks

from planka_mailer.config import settings
from planka_mailer.core.logging import configure_logging, get_logger
from planka_mailer.scheduler import run_sync, start_scheduler, stop_scheduler

log = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    log.info("application_starting")

    if settings.scheduler_enabled:
        start_scheduler()
    else:
        log.info("scheduler_disabled", reason="use POST /process to run a batch")

    yield

    if settings.scheduler_enabled:
        stop_scheduler()
    log.info("application_stopped")


app = FastAPI(
    title="Planka Mail Bridge",
    description="Turns tagged emails into Planka cards",
    version=VERSION,
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.post("/process")
async def trigger_processing(background_tasks: BackgroundTasks):
    """
    Trigger one mailbox batch.

    Runs in background to avoid timeout. A trigger while a batch is
    already running is skipped.
    """
    background_tasks.add_task(run_sync)
    return {"status": "processing_started", "inbox": settings.inbox_path}


# Run with: uvicorn planka_mailer.main:app --host 0.0.0.0 --port 8000

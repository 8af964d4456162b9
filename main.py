"""
Lecture reminder service entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (trigger, history and requeue endpoints)
  2. APScheduler (reminder cycles + dispatcher batches on a fixed cadence)

The scheduler can be switched off (--no-scheduler / DISABLE_SCHEDULER=true)
when an external cron drives the pipeline through POST /api/reminders/run
or scripts/run_reminders.py instead.

Run with: python main.py [--no-scheduler] [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI

from reminders.config import (
    check_required_env_vars,
    get_api_port,
    is_scheduler_disabled,
)
from reminders.database import close_engine
from reminders.notifications.scheduler import init_scheduler, shutdown_scheduler
from web_api.routes.notifications import router as notifications_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        environment=os.environ.get("APP_ENV", "development"),
        traces_sample_rate=0.0,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts the reminder scheduler alongside FastAPI in the same event loop.
    """
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        print(warning)
    if not ok:
        raise RuntimeError("Missing required environment variables")

    if is_scheduler_disabled():
        print("Reminder scheduler disabled (--no-scheduler or DISABLE_SCHEDULER=true)")
    else:
        init_scheduler()

    yield  # FastAPI runs here, scheduler jobs run alongside it

    print("Shutting down peer services...")
    shutdown_scheduler()
    await close_engine()  # Close database connections


app = FastAPI(
    title="Lecture Reminder Service",
    lifespan=lifespan,
)

app.include_router(notifications_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "scheduler_enabled": not is_scheduler_disabled(),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Lecture Reminder Service")
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the in-process scheduler (use an external cron instead)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.no_scheduler:
        os.environ["DISABLE_SCHEDULER"] = "true"

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )

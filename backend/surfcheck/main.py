"""
FastAPI app entrypoint.

Forecasts, scheduling CRUD and notification history; the notification tick runs on
APScheduler inside the app process.
"""
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from surfcheck.api.routes import forecast, notifications, push, schedulings, spots
from surfcheck.config import settings
from surfcheck.core.constants import NOTIFICATION_TICK_JOB_ID
from surfcheck.scheduler.notification_job import run_notification_job

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _scheduler.add_job(
        run_notification_job,
        "interval",
        minutes=settings.notification_tick_minutes,
        id=NOTIFICATION_TICK_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler

    def startup_background():
        # One tick on startup; the interval job takes over afterwards.
        try:
            run_notification_job()
            logger.info("Notification tick on startup; next tick in %s min", settings.notification_tick_minutes)
        except Exception as e:
            logger.warning("Notification tick on startup failed: %s", e, exc_info=True)

    threading.Thread(target=startup_background, daemon=True).start()
    logger.info("SurfCheck backend ready")
    yield
    _scheduler.shutdown(wait=False)


app = FastAPI(title="SurfCheck", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the deployed frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(spots.router, tags=["spots"])
app.include_router(forecast.router, tags=["forecast"])
app.include_router(schedulings.router, tags=["schedulings"])
app.include_router(notifications.router, tags=["notifications"])
app.include_router(push.router, tags=["push"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "SurfCheck API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}

"""FastAPI dependencies for dependency injection."""
from functools import lru_cache
from typing import Callable

from fastapi import Header, Query
from sqlalchemy.orm import Session

from surfcheck.services.forecast.service import ForecastService
from surfcheck.services.notifications.notifier import Notifier, default_notifier
from surfcheck.services.notifications.scheduler import NotificationScheduler
from surfcheck.services.tides.cache import TideCacheStore
from surfcheck.services.tides.service import TideService
from surfcheck.services.tides.stormglass import StormglassTideSource

DEFAULT_USER_ID = "default"


def get_session_factory() -> Callable[[], Session]:
    """Session factory for work that outlives the request (background tasks, ticks)."""
    from surfcheck.db.session import SessionLocal

    return SessionLocal


@lru_cache()
def get_tide_cache() -> TideCacheStore:
    """Get cached tide cache store instance."""
    return TideCacheStore(session_factory=get_session_factory())


@lru_cache()
def get_tide_service() -> TideService:
    """Get cached tide service instance. Upstream fetches only when a Stormglass key is set."""
    source = StormglassTideSource()
    return TideService(store=get_tide_cache(), source=source if source.configured else None)


@lru_cache()
def get_forecast_service() -> ForecastService:
    """Get cached forecast service instance (provider resolved per call from the registry)."""
    return ForecastService(tide_service=get_tide_service())


@lru_cache()
def get_notification_scheduler() -> NotificationScheduler:
    """Get cached notification scheduler instance."""
    return NotificationScheduler(forecasts=get_forecast_service(), session_factory=get_session_factory())


@lru_cache()
def get_notifier() -> Notifier:
    """Get cached notifier (APNs when configured, else log-only)."""
    return default_notifier()


def get_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    user_id: str | None = Query(None),
) -> str:
    return (x_user_id or user_id or DEFAULT_USER_ID).strip() or DEFAULT_USER_ID

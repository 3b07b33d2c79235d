"""
Next-day forecast stored on each scheduling: best qualifying window for tomorrow across
the target's spots. Recomputed by every notification tick and after create/update.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from surfcheck.services.forecast.matcher import next_day_forecast
from surfcheck.services.forecast.service import ForecastResult, ForecastService
from surfcheck.services.scheduling.crud import get_scheduling, resolve_target_spots, save_next_day_forecast, to_snapshot
from surfcheck.services.scheduling.types import SchedulingSnapshot
from surfcheck.services.spots import SpotProfile

logger = logging.getLogger(__name__)


def compute_next_day(
    snapshot: SchedulingSnapshot,
    results: list[tuple[SpotProfile, ForecastResult]],
    today: date,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Highest-scoring candidate across spots; earlier spot in the target wins ties."""
    best: dict[str, Any] | None = None
    for spot, result in results:
        if not result.available:
            continue
        candidate = next_day_forecast(snapshot.preferences, result.hours, today, spot, now=now)
        if candidate is not None and (best is None or candidate["score"] > best["score"]):
            best = candidate
    return best


def refresh_next_day(
    session_factory: Callable[[], Session],
    forecasts: ForecastService,
    scheduling_id: str,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Fetch, compute and store the next-day forecast for one scheduling. Logs and returns None on failure."""
    now = now or datetime.now(timezone.utc)
    db = session_factory()
    try:
        snapshot = to_snapshot(get_scheduling(db, scheduling_id))
        spots = resolve_target_spots(snapshot.target)
        results = [(spot, forecasts.forecast(spot, snapshot.preferences.days_ahead)) for spot in spots]
        if not any(r.available for _, r in results):
            logger.warning("Next-day refresh for %s skipped: forecast unavailable", scheduling_id)
            return None
        today = now.astimezone(snapshot.notifications.tz).date()
        forecast = compute_next_day(snapshot, results, today, now=now)
        save_next_day_forecast(db, scheduling_id, forecast, now=now)
        return forecast
    except Exception as e:
        logger.warning("Next-day refresh for %s failed: %s", scheduling_id, e, exc_info=True)
        return None
    finally:
        db.close()

"""
Forecast query: scored hours, ranked windows, chart series and tide data for one spot.

Never fails because the provider did: status "unavailable" comes back with zero hours.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query

from surfcheck.api.dependencies import get_forecast_service
from surfcheck.core.constants import FORECAST_DEFAULT_DAYS, FORECAST_MAX_DAYS, FORECAST_MIN_DAYS
from surfcheck.core.errors import SurfCheckError, domain_error_to_http
from surfcheck.services.forecast.service import ForecastService
from surfcheck.services.forecast.windows import best_for_day, current_hour
from surfcheck.services.spots import require_spot

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/forecast/{spot_id}")
def get_forecast(
    spot_id: str,
    days: int = Query(FORECAST_DEFAULT_DAYS, ge=FORECAST_MIN_DAYS, le=FORECAST_MAX_DAYS),
    forecasts: ForecastService = Depends(get_forecast_service),
) -> dict[str, Any]:
    try:
        spot = require_spot(spot_id)
    except SurfCheckError as e:
        raise domain_error_to_http(e)
    result = forecasts.forecast(spot, days)
    analysis = result.analysis()
    now = datetime.now(timezone.utc)
    current = current_hour(result.hours, now)
    tomorrow = None
    if result.hours:
        local_today = now.astimezone(result.hours[0].timestamp.tzinfo).date()
        tomorrow = best_for_day(result.hours, local_today + timedelta(days=1))
    return {
        "status": result.status,
        "error": result.error,
        "spot": spot.summary(),
        "current": current.to_dict() if current else None,
        "hours": [h.to_dict() for h in result.hours],
        "windows": [w.to_dict() for w in analysis.ranked],
        "best": analysis.best.to_dict() if analysis.best else None,
        "tomorrow": tomorrow.to_dict() if tomorrow else None,
        "chart": [{"time": t.isoformat(), "score": s} for t, s in analysis.chart_series],
        "tide_events": [e.to_dict() for e in result.tide_events],
        "cache": {"fresh": result.tide_fresh},
        "params": {"spot_id": spot_id, "days": days},
    }

"""
Match a scheduling's preferences against a spot's scored hours.

Hours are kept when their local hour falls in one of the selected time-of-day buckets,
re-partitioned into windows, then windows failing any preference are dropped. An empty
result is the normal "no good session" outcome.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any

from surfcheck.core.angles import direction_to_text
from surfcheck.core.constants import (
    LIGHT_WIND_MAX_KMH,
    LONGBOARD_HEIGHT_RANGE,
    SHORTBOARD_MIN_HEIGHT,
    TIME_WINDOW_HOURS,
)
from surfcheck.services.forecast.types import ScoredHour, Window, WindClass
from surfcheck.services.forecast.windows import best_window, hours_on, partition_windows
from surfcheck.services.scheduling.types import SchedulingPreferences, SurfStyle, TimeWindow, WindPreference
from surfcheck.services.spots import SpotProfile


def time_bucket(hour: int) -> TimeWindow | None:
    for name, (lo, hi) in TIME_WINDOW_HOURS.items():
        if lo <= hour < hi:
            return TimeWindow(name)
    return None


def in_time_windows(h: ScoredHour, time_windows: tuple[TimeWindow, ...]) -> bool:
    return time_bucket(h.timestamp.hour) in time_windows


def board_fits(mean_height: float) -> set[SurfStyle]:
    """Board styles a mean swell height suits; can be both or neither."""
    fits = set()
    lo, hi = LONGBOARD_HEIGHT_RANGE
    if lo <= mean_height <= hi:
        fits.add(SurfStyle.LONGBOARD)
    if mean_height >= SHORTBOARD_MIN_HEIGHT:
        fits.add(SurfStyle.SHORTBOARD)
    return fits


def window_qualifies(window: Window, preferences: SchedulingPreferences) -> bool:
    if window.avg_score < preferences.min_score:
        return False
    if window.mean_power < preferences.min_energy:
        return False
    if preferences.wind_preference is WindPreference.OFFSHORE and window.dominant_wind is not WindClass.OFFSHORE:
        return False
    if preferences.wind_preference is WindPreference.LIGHT and window.mean_wind_speed > LIGHT_WIND_MAX_KMH:
        return False
    if preferences.surf_style is not SurfStyle.ANY and preferences.surf_style not in board_fits(window.mean_swell_height):
        return False
    return True


def match_windows(preferences: SchedulingPreferences, hours: list[ScoredHour]) -> list[Window]:
    """Qualifying windows, chronological."""
    subset = [h for h in hours if in_time_windows(h, preferences.time_windows)]
    return [w for w in partition_windows(subset) if window_qualifies(w, preferences)]


def conditions_summary(h: ScoredHour) -> str:
    bucket = time_bucket(h.timestamp.hour)
    when = f"in the {bucket.value}" if bucket else "during the day"
    return f"{h.label.value} conditions {when}"


def next_day_forecast(
    preferences: SchedulingPreferences,
    hours: list[ScoredHour],
    today: date,
    spot: SpotProfile,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """
    Best qualifying window on today + 1 as a JSON-ready dict, or None when nothing
    qualifies. Stored on the scheduling and always replaced as a whole.
    """
    tomorrow = today + timedelta(days=1)
    best = best_window(match_windows(preferences, hours_on(hours, tomorrow)))
    if best is None:
        return None
    h = best.best_hour
    s = h.sample
    return {
        "date": tomorrow.isoformat(),
        "spot_id": spot.id,
        "spot_name": spot.name,
        "start": best.start.isoformat(),
        "end": best.end.isoformat(),
        "score": best.avg_score,
        "time": h.timestamp.strftime("%H:%M"),
        "best_hour_score": h.score,
        "swell_height": s.swell_height,
        "swell_direction": s.swell_direction,
        "swell_direction_text": direction_to_text(s.swell_direction),
        "swell_period": s.swell_period,
        "wind_speed": s.wind_speed,
        "wind_direction": s.wind_direction,
        "power_kwm": round(h.power_kwm, 2),
        "conditions_summary": conditions_summary(h),
        "updated_at": (now or datetime.now(timezone.utc)).isoformat(),
    }

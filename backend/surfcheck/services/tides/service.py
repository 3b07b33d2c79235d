"""
Read-through tide data: per local day, cache get -> on miss fetch upstream -> put.
Hourly heights are interpolated between consecutive extremes with a half-cosine curve.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Protocol

from surfcheck.core.errors import TideCacheError
from surfcheck.services.spots import SpotProfile
from surfcheck.services.tides.cache import TideCacheStore, TideEvent

logger = logging.getLogger(__name__)

# Each cached day also holds the extremes just outside it so every hour is bracketed
DAY_PADDING = timedelta(hours=7)


class TideSource(Protocol):
    source_id: str

    def fetch_extremes(
        self, spot: SpotProfile, start: datetime, end: datetime, timeout: float | None = None
    ) -> list[TideEvent]:
        ...


@dataclass(frozen=True)
class TideResult:
    events: list[TideEvent]
    fresh: bool  # True if any day came from a live fetch


def height_at(events: list[TideEvent], when: datetime) -> float | None:
    """Interpolated height at when; None outside the span of events."""
    for a, b in zip(events, events[1:]):
        if a.time <= when <= b.time:
            span = (b.time - a.time).total_seconds()
            if span <= 0:
                return a.height
            u = (when - a.time).total_seconds() / span
            s = (1 - math.cos(math.pi * u)) / 2
            return a.height + (b.height - a.height) * s
    return None


def _merge(events: list[TideEvent]) -> list[TideEvent]:
    by_time: dict[datetime, TideEvent] = {}
    for e in events:
        by_time.setdefault(e.time, e)
    return sorted(by_time.values(), key=lambda e: e.time)


class TideService:
    def __init__(self, store: TideCacheStore, source: TideSource | None = None):
        self._store = store
        self._source = source

    def _fetch_day(self, spot: SpotProfile, day: date, tz: tzinfo, timeout: float | None) -> list[TideEvent] | None:
        start = datetime.combine(day, time(0), tz) - DAY_PADDING
        end = datetime.combine(day + timedelta(days=1), time(0), tz) + DAY_PADDING
        try:
            events = self._source.fetch_extremes(spot, start, end, timeout)
        except Exception as e:
            logger.warning("Tide fetch for %s on %s failed: %s", spot.id, day, e)
            return None
        try:
            self._store.put(spot.id, day, events, self._source.source_id, timeout=timeout)
        except TideCacheError as e:
            logger.warning("%s", e)
        return events

    def events_for(self, spot: SpotProfile, days: list[date], tz: tzinfo, timeout: float | None = None) -> TideResult:
        events: list[TideEvent] = []
        fresh = False
        for day in days:
            entry = self._store.get(spot.id, day, timeout=timeout)
            if entry is not None:
                events.extend(entry.events)
                continue
            if self._source is None:
                continue
            fetched = self._fetch_day(spot, day, tz, timeout)
            if fetched is not None:
                fresh = True
                events.extend(fetched)
        return TideResult(events=_merge(events), fresh=fresh)

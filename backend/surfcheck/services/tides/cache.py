"""
TTL cache of tide extremes keyed by (spot, local day), stored one row per key.

get() never raises: lookup errors, bad rows, timeouts and expired rows all return None,
so the caller re-fetches upstream. put() replaces the whole row in one transaction and
raises TideCacheError on failure. Staleness is checked at read time; no sweep.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from surfcheck.config import settings
from surfcheck.core.errors import TideCacheError
from surfcheck.core.timeouts import call_with_timeout
from surfcheck.models.tide_cache import TideCache

logger = logging.getLogger(__name__)


def _utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class TideEvent:
    time: datetime
    type: str  # high | low
    height: float  # m

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time.isoformat(), "type": self.type, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TideEvent":
        return cls(time=_utc(datetime.fromisoformat(d["time"])), type=str(d["type"]), height=float(d["height"]))


@dataclass(frozen=True)
class TideCacheEntry:
    spot_id: str
    day: date
    source: str
    events: tuple[TideEvent, ...]
    created_at: datetime
    expires_at: datetime

    @property
    def key(self) -> str:
        return cache_key(self.spot_id, self.day)

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


def cache_key(spot_id: str, day: date) -> str:
    return f"{spot_id}_{day.isoformat()}"


def _row_to_entry(row: TideCache) -> TideCacheEntry:
    return TideCacheEntry(
        spot_id=row.spot_id,
        day=row.day,
        source=row.source,
        events=tuple(TideEvent.from_dict(e) for e in row.events),
        created_at=_utc(row.created_at),
        expires_at=_utc(row.expires_at),
    )


class TideCacheStore:
    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        ttl_hours: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if session_factory is None:
            from surfcheck.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self._ttl_hours = ttl_hours  # None: read settings on every put
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _read(self, key: str) -> TideCacheEntry | None:
        db = self._session_factory()
        try:
            row = db.get(TideCache, key)
            return _row_to_entry(row) if row is not None else None
        finally:
            db.close()

    def _write(self, entry: TideCacheEntry) -> None:
        db = self._session_factory()
        try:
            db.merge(
                TideCache(
                    cache_key=entry.key,
                    spot_id=entry.spot_id,
                    day=entry.day,
                    source=entry.source,
                    events=[e.to_dict() for e in entry.events],
                    created_at=entry.created_at,
                    expires_at=entry.expires_at,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, spot_id: str, day: date, timeout: float | None = None) -> TideCacheEntry | None:
        """Valid entry for (spot, day), or None on miss, expiry or any error."""
        key = cache_key(spot_id, day)
        try:
            entry = call_with_timeout(self._read, timeout, key)
        except Exception as e:
            logger.warning("Tide cache get %s failed; treating as miss: %s", key, e)
            return None
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            logger.debug("Tide cache %s expired at %s", key, entry.expires_at.isoformat())
            return None
        return entry

    def put(
        self,
        spot_id: str,
        day: date,
        events: list[TideEvent],
        source: str,
        ttl_hours: float | None = None,
        timeout: float | None = None,
    ) -> TideCacheEntry:
        """Create or replace the entry; expires_at = now + TTL."""
        now = self._clock()
        if ttl_hours is None:
            ttl_hours = self._ttl_hours if self._ttl_hours is not None else settings.tide_cache_ttl_hours
        entry = TideCacheEntry(
            spot_id=spot_id,
            day=day,
            source=source,
            events=tuple(sorted(events, key=lambda e: e.time)),
            created_at=now,
            expires_at=now + timedelta(hours=ttl_hours),
        )
        try:
            call_with_timeout(self._write, timeout, entry)
        except Exception as e:
            raise TideCacheError(f"tide cache put {entry.key} failed: {e}") from e
        logger.debug("Tide cache put %s (%s events, ttl %sh)", entry.key, len(entry.events), ttl_hours)
        return entry

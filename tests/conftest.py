"""Shared fixtures: in-memory database, sample/hour factories and fake collaborators."""
import os

# Point settings at SQLite before anything imports surfcheck.db.session
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("STORMGLASS_API_KEY", "")
os.environ.setdefault("FORECAST_PROVIDER", "")

import threading
import time
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import surfcheck.models  # noqa: F401  (register tables)
from surfcheck.db.base import Base
from surfcheck.services.forecast.types import HourlySample, Label, ScoredHour, WindClass
from surfcheck.services.spots import require_spot

SAO_PAULO = ZoneInfo("America/Sao_Paulo")

# Itamambuca faces SE (135): swell from 135 is aligned, wind from 315 is offshore
GOOD_CONDITIONS = {
    "swell_height": 1.5,
    "swell_direction": 135.0,
    "swell_period": 11.0,
    "wind_speed": 10.0,
    "wind_direction": 315.0,
}
POOR_CONDITIONS = {
    "swell_height": 0.2,
    "swell_direction": 315.0,
    "swell_period": 5.0,
    "wind_speed": 30.0,
    "wind_direction": 135.0,
}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def spot():
    return require_spot("itamambuca")


class FakeClock:
    """Settable clock for TTL and tick tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


def sample_at(ts: datetime, **overrides) -> HourlySample:
    fields = dict(GOOD_CONDITIONS)
    fields.update(overrides)
    return HourlySample(timestamp=ts, **fields)


@pytest.fixture
def make_sample():
    def _make(ts: datetime | None = None, **overrides) -> HourlySample:
        return sample_at(ts or datetime(2025, 3, 10, 7, 0, tzinfo=SAO_PAULO), **overrides)

    return _make


@pytest.fixture
def make_hour():
    """ScoredHour with a chosen score; sample fields default to good conditions."""

    def _make(
        ts: datetime,
        score: int,
        reasons: tuple[str, ...] = ("swell_aligned",),
        power: float = 10.0,
        wind_class: WindClass | None = WindClass.OFFSHORE,
        **sample_overrides,
    ) -> ScoredHour:
        return ScoredHour(
            sample=sample_at(ts, **sample_overrides),
            score=score,
            label=Label.for_score(score),
            reasons=reasons,
            power_kwm=power,
            wind_class=wind_class,
        )

    return _make


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=SAO_PAULO)


class FakeProvider:
    """
    Hourly samples from local midnight of `start` for `days` days.
    conditions(spot_id, ts) -> dict of sample fields; raise_for lists spot ids that fail.
    delay (seconds) slows every fetch down but still returns data.
    """

    provider_id = "fake"

    def __init__(
        self, start: date, conditions=None, raise_for=(), gate: threading.Event | None = None, delay: float = 0
    ):
        self.start = start
        self.conditions = conditions or (lambda spot_id, ts: GOOD_CONDITIONS)
        self.raise_for = set(raise_for)
        self.gate = gate
        self.delay = delay
        self.calls: list[tuple[str, int]] = []
        self._lock = threading.Lock()

    def fetch_hourly(self, spot, days, timeout=None):
        with self._lock:
            self.calls.append((spot.id, days))
        if self.gate is not None:
            self.gate.wait(timeout=5)
            raise RuntimeError("provider released without data")
        if self.delay:
            time.sleep(self.delay)
        if spot.id in self.raise_for:
            raise RuntimeError(f"upstream down for {spot.id}")
        out = []
        for i in range(days * 24):
            ts = local(self.start, 0) + timedelta(hours=i)
            out.append(HourlySample(timestamp=ts, **self.conditions(spot.id, ts)))
        return out


def morning_session(spot_id: str, ts: datetime) -> dict:
    """Good from 06:00 to 08:00 local, poor otherwise."""
    return GOOD_CONDITIONS if 6 <= ts.hour <= 8 else POOR_CONDITIONS


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[tuple[list[str], object]] = []
        self.fail = fail

    def send(self, target_tokens, payload) -> int:
        if self.fail:
            raise RuntimeError("transport down")
        self.sent.append((list(target_tokens), payload))
        return len(target_tokens)

"""Tests for the read-through tide service and the Stormglass parser."""
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from conftest import SAO_PAULO

from surfcheck.core.errors import TideUnavailable
from surfcheck.services.tides.cache import TideCacheStore, TideEvent
from surfcheck.services.tides.service import TideService, height_at
from surfcheck.services.tides.stormglass import StormglassTideSource, parse_extremes

DAY = date(2025, 3, 10)
T0 = datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc)

EVENTS = [
    TideEvent(time=T0, type="high", height=0.6),
    TideEvent(time=T0 + timedelta(hours=6), type="low", height=-0.2),
    TideEvent(time=T0 + timedelta(hours=12), type="high", height=0.5),
]


class FakeTideSource:
    source_id = "fake-tides"

    def __init__(self, events=None, fail=False):
        self.events = EVENTS if events is None else events
        self.fail = fail
        self.calls = []

    def fetch_extremes(self, spot, start, end, timeout=None):
        self.calls.append((spot.id, start, end))
        if self.fail:
            raise TideUnavailable("upstream down")
        return list(self.events)


class TestHeightAt:
    """Tests for height_at()."""

    def test_exact_at_extremes(self):
        for event in EVENTS:
            assert height_at(EVENTS, event.time) == pytest.approx(event.height)

    def test_midpoint_is_mean_of_neighbours(self):
        assert height_at(EVENTS, T0 + timedelta(hours=3)) == pytest.approx(0.2)

    def test_curve_is_monotonic_between_extremes(self):
        heights = [height_at(EVENTS, T0 + timedelta(hours=h)) for h in range(7)]

        assert heights == sorted(heights, reverse=True)

    def test_none_outside_span(self):
        assert height_at(EVENTS, T0 - timedelta(minutes=1)) is None
        assert height_at(EVENTS, T0 + timedelta(hours=13)) is None
        assert height_at([], T0) is None


class TestTideService:
    """Tests for TideService.events_for()."""

    def test_miss_fetches_and_caches(self, spot, session_factory, clock):
        source = FakeTideSource()
        service = TideService(TideCacheStore(session_factory, clock=clock), source)

        first = service.events_for(spot, [DAY], SAO_PAULO)
        second = service.events_for(spot, [DAY], SAO_PAULO)

        assert first.fresh is True
        assert second.fresh is False
        assert first.events == second.events == EVENTS
        assert len(source.calls) == 1

    def test_fetch_window_pads_the_local_day(self, spot, session_factory, clock):
        source = FakeTideSource()
        TideService(TideCacheStore(session_factory, clock=clock), source).events_for(spot, [DAY], SAO_PAULO)

        [(_, start, end)] = source.calls
        assert start == datetime(2025, 3, 9, 17, 0, tzinfo=SAO_PAULO)
        assert end == datetime(2025, 3, 11, 7, 0, tzinfo=SAO_PAULO)

    def test_expired_entry_is_refetched(self, spot, session_factory, clock):
        source = FakeTideSource()
        service = TideService(TideCacheStore(session_factory, ttl_hours=1, clock=clock), source)

        service.events_for(spot, [DAY], SAO_PAULO)
        clock.advance(hours=2)
        again = service.events_for(spot, [DAY], SAO_PAULO)

        assert again.fresh is True
        assert len(source.calls) == 2

    def test_overlapping_days_are_merged_once(self, spot, session_factory, clock):
        source = FakeTideSource()
        service = TideService(TideCacheStore(session_factory, clock=clock), source)

        result = service.events_for(spot, [DAY, DAY + timedelta(days=1)], SAO_PAULO)

        assert result.events == EVENTS
        assert len(source.calls) == 2

    def test_source_failure_gives_no_events(self, spot, session_factory, clock):
        service = TideService(TideCacheStore(session_factory, clock=clock), FakeTideSource(fail=True))

        result = service.events_for(spot, [DAY], SAO_PAULO)

        assert result.events == []
        assert result.fresh is False

    def test_without_source_only_cache_is_read(self, spot, session_factory, clock):
        store = TideCacheStore(session_factory, clock=clock)
        store.put(spot.id, DAY, EVENTS, "stormglass")

        result = TideService(store, None).events_for(spot, [DAY, DAY + timedelta(days=1)], SAO_PAULO)

        assert result.events == EVENTS
        assert result.fresh is False


class TestStormglass:
    """Tests for the Stormglass client."""

    BODY = {
        "data": [
            {"height": 0.41, "time": "2025-03-10T09:14:00+00:00", "type": "low"},
            {"height": 0.93, "time": "2025-03-10T03:02:00Z", "type": "High"},
            {"time": "2025-03-10T15:30:00+00:00", "type": "high"},
        ],
        "meta": {"station": {"name": "ubatuba"}},
    }

    def test_parse_extremes_sorts_and_skips_malformed(self):
        events = parse_extremes(self.BODY)

        assert [e.type for e in events] == ["high", "low"]
        assert events[0].time == datetime(2025, 3, 10, 3, 2, tzinfo=timezone.utc)
        assert events[1].height == 0.41

    def test_parse_extremes_empty_body(self):
        assert parse_extremes({}) == []

    def test_fetch_without_key_raises(self, spot):
        with pytest.raises(TideUnavailable):
            StormglassTideSource(api_key="").fetch_extremes(spot, T0, T0 + timedelta(days=1))

    def test_fetch_sends_key_and_parses(self, spot):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["lat"] = request.url.params["lat"]
            return httpx.Response(200, json=self.BODY)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        events = StormglassTideSource(api_key="sg-key", client=client).fetch_extremes(spot, T0, T0 + timedelta(days=1))

        assert seen["auth"] == "sg-key"
        assert float(seen["lat"]) == spot.lat
        assert len(events) == 2

    def test_http_error_becomes_tide_unavailable(self, spot):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(402, json={})))

        with pytest.raises(TideUnavailable):
            StormglassTideSource(api_key="sg-key", client=client).fetch_extremes(spot, T0, T0 + timedelta(days=1))

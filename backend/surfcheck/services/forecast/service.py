"""
Forecast for one spot: provider samples + tide heights -> scored hours.

Provider failure or timeout never raises from forecast(); it returns status
"unavailable" with zero hours.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

from surfcheck.config import settings
from surfcheck.core.timeouts import call_with_timeout
from surfcheck.services.forecast.providers import default_provider
from surfcheck.services.forecast.scoring import score_all
from surfcheck.services.forecast.types import HourlySample, ScoredHour
from surfcheck.services.forecast.windows import WindowAnalysis, analyze
from surfcheck.services.spots import SpotProfile
from surfcheck.services.tides.cache import TideEvent
from surfcheck.services.tides.service import TideService, height_at

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ForecastResult:
    status: str
    spot: SpotProfile
    days: int
    hours: list[ScoredHour] = field(default_factory=list)
    tide_events: list[TideEvent] = field(default_factory=list)
    tide_fresh: bool = False
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.status == STATUS_OK

    def analysis(self) -> WindowAnalysis:
        return analyze(self.hours)


class ForecastService:
    def __init__(
        self,
        provider: Any | None = None,
        tide_service: TideService | None = None,
        default_timeout: float | None = None,
    ):
        self._provider = provider
        self._tide_service = tide_service
        self._default_timeout = settings.io_timeout_seconds if default_timeout is None else default_timeout

    def _resolve_provider(self) -> Any | None:
        return self._provider or default_provider(settings.forecast_provider)

    def _unavailable(self, spot: SpotProfile, days: int, error: str) -> ForecastResult:
        logger.warning("Forecast unavailable for %s (%s days): %s", spot.id, days, error)
        return ForecastResult(status=STATUS_UNAVAILABLE, spot=spot, days=days, error=error)

    def _with_tides(
        self, spot: SpotProfile, samples: list[HourlySample], timeout: float | None
    ) -> tuple[list[HourlySample], list[TideEvent], bool]:
        if self._tide_service is None:
            return samples, [], False
        tz = samples[0].timestamp.tzinfo
        days = sorted({s.timestamp.date() for s in samples})
        try:
            tides = self._tide_service.events_for(spot, days, tz, timeout=timeout)
        except Exception as e:
            logger.warning("Tide lookup for %s failed; scoring without tide: %s", spot.id, e, exc_info=True)
            return samples, [], False
        if not tides.events:
            return samples, [], tides.fresh
        enriched = [
            s if s.tide_height is not None else s.with_tide(height_at(tides.events, s.timestamp))
            for s in samples
        ]
        return enriched, tides.events, tides.fresh

    def forecast(self, spot: SpotProfile, days: int, timeout: float | None = None) -> ForecastResult:
        timeout = self._default_timeout if timeout is None else timeout
        provider = self._resolve_provider()
        if provider is None:
            return self._unavailable(spot, days, "no forecast provider configured")
        try:
            samples = call_with_timeout(provider.fetch_hourly, timeout, spot, days, timeout)
        except Exception as e:
            return self._unavailable(spot, days, f"{type(e).__name__}: {e}")
        if not samples:
            return self._unavailable(spot, days, "provider returned no samples")
        samples = sorted(samples, key=lambda s: s.timestamp)
        samples, tide_events, tide_fresh = self._with_tides(spot, samples, timeout)
        return ForecastResult(
            status=STATUS_OK,
            spot=spot,
            days=days,
            hours=score_all(samples, spot),
            tide_events=tide_events,
            tide_fresh=tide_fresh,
        )

"""
Forecast providers: protocol + registry. Meteorological fetches live outside this repo;
a deployment registers its provider at startup and selects it with FORECAST_PROVIDER.
"""
import logging
from typing import Any, Protocol

from surfcheck.services.forecast.types import HourlySample
from surfcheck.services.spots import SpotProfile

logger = logging.getLogger(__name__)


class ForecastProvider(Protocol):
    """Same contract for every source; only the fetch differs."""

    @property
    def provider_id(self) -> str:
        ...

    def fetch_hourly(self, spot: SpotProfile, days: int, timeout: float | None = None) -> list[HourlySample]:
        """
        Hourly samples for the spot, starting at local midnight today, chronological.
        Timestamps must be tz-aware in the spot's local zone. Raise on failure.
        """
        ...


_providers: dict[str, Any] = {}


def register(name: str, provider: Any) -> None:
    """Register a provider under a name (e.g. 'open_meteo')."""
    _providers[name] = provider
    logger.info("Registered forecast provider: %s", name)


def unregister(name: str) -> None:
    _providers.pop(name, None)


def get_provider(name: str) -> Any:
    """Get provider by name. Raises KeyError if unknown."""
    if name not in _providers:
        raise KeyError(f"Unknown provider: {name}. Available: {list(_providers.keys())}")
    return _providers[name]


def list_providers() -> list[str]:
    return list(_providers.keys())


def default_provider(name: str = "") -> Any | None:
    """Provider by name; with no name, the only registered one. None when nothing fits."""
    if name:
        return _providers.get(name)
    if len(_providers) == 1:
        return next(iter(_providers.values()))
    return None

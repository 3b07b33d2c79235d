"""
Stormglass tide extremes client.
Requires STORMGLASS_API_KEY; without it every fetch raises TideUnavailable.
"""
import logging
from datetime import datetime, timezone

import httpx

from surfcheck.config import settings
from surfcheck.core.errors import TideUnavailable
from surfcheck.services.spots import SpotProfile
from surfcheck.services.tides.cache import TideEvent

logger = logging.getLogger(__name__)

STORMGLASS_TIDE_EXTREMES_URL = "https://api.stormglass.io/v2/tide/extremes/point"


def _parse_time(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_extremes(body: dict) -> list[TideEvent]:
    """Response body -> events sorted by time. Items missing a field are skipped."""
    events = []
    for item in body.get("data") or []:
        try:
            events.append(
                TideEvent(time=_parse_time(item["time"]), type=str(item["type"]).lower(), height=float(item["height"]))
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping malformed tide extreme %r: %s", item, e)
    return sorted(events, key=lambda e: e.time)


class StormglassTideSource:
    source_id = "stormglass"

    def __init__(self, api_key: str | None = None, client: httpx.Client | None = None):
        self._api_key = settings.stormglass_api_key if api_key is None else api_key.strip()
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def fetch_extremes(
        self, spot: SpotProfile, start: datetime, end: datetime, timeout: float | None = None
    ) -> list[TideEvent]:
        if not self._api_key:
            raise TideUnavailable("STORMGLASS_API_KEY not set")
        params = {
            "lat": spot.lat,
            "lng": spot.lon,
            "start": start.astimezone(timezone.utc).isoformat(),
            "end": end.astimezone(timezone.utc).isoformat(),
        }
        headers = {"Authorization": self._api_key}
        try:
            if self._client is not None:
                resp = self._client.get(STORMGLASS_TIDE_EXTREMES_URL, params=params, headers=headers, timeout=timeout)
            else:
                with httpx.Client(timeout=timeout or settings.io_timeout_seconds) as client:
                    resp = client.get(STORMGLASS_TIDE_EXTREMES_URL, params=params, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise TideUnavailable(f"stormglass request failed for {spot.id}: {e}") from e
        events = parse_extremes(resp.json())
        logger.info("Stormglass: %s tide extremes for %s (%s .. %s)", len(events), spot.id, start.date(), end.date())
        return events

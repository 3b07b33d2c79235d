"""Spot profiles and region lookups over data/spots.py."""
from dataclasses import asdict, dataclass
from functools import lru_cache

from surfcheck.core.errors import NotFoundError
from surfcheck.data.spots import REGIONS, SPOTS, SpotData


@dataclass(frozen=True)
class SpotProfile:
    """What the scoring engine needs to know about a break."""

    id: str
    name: str
    lat: float
    lon: float
    orientation: float
    swell_directions: tuple[float, ...]
    ideal_height: tuple[float, float]
    ideal_period: tuple[float, float]
    tide_preference: str = "any"
    tide_range: tuple[float, float] = (-0.5, 0.5)
    bottom_type: str = "beachbreak"
    region: str | None = None
    region_name: str | None = None

    @classmethod
    def from_data(cls, d: SpotData) -> "SpotProfile":
        return cls(
            id=d["id"],
            name=d["name"],
            lat=d["lat"],
            lon=d["lon"],
            orientation=float(d["orientation"]),
            swell_directions=tuple(float(x) for x in d["swell_directions"]),
            ideal_height=tuple(d["ideal_height"]),
            ideal_period=tuple(d["ideal_period"]),
            tide_preference=d["tide_preference"],
            tide_range=tuple(d["tide_range"]),
            bottom_type=d["bottom_type"],
            region=d["region"],
            region_name=d["region_name"],
        )

    def summary(self) -> dict:
        return asdict(self)


@lru_cache()
def _spots_by_id() -> dict[str, SpotProfile]:
    return {d["id"]: SpotProfile.from_data(d) for d in SPOTS}


def list_spots() -> list[SpotProfile]:
    return list(_spots_by_id().values())


def get_spot(spot_id: str) -> SpotProfile | None:
    return _spots_by_id().get(spot_id)


def require_spot(spot_id: str) -> SpotProfile:
    spot = get_spot(spot_id)
    if spot is None:
        raise NotFoundError("spot", spot_id)
    return spot


def list_regions() -> list[dict[str, str]]:
    return [{"id": rid, "name": name} for rid, name in REGIONS.items()]


def spots_in_region(region_id: str) -> list[SpotProfile]:
    """Spots of a region; raises NotFoundError for an unknown region."""
    if region_id not in REGIONS:
        raise NotFoundError("region", region_id)
    return [s for s in list_spots() if s.region == region_id]

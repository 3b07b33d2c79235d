"""Spot and region catalogue."""
from typing import Any

from fastapi import APIRouter

from surfcheck.core.angles import direction_to_text
from surfcheck.core.errors import SurfCheckError, domain_error_to_http
from surfcheck.services.spots import SpotProfile, list_regions, list_spots, require_spot, spots_in_region

router = APIRouter()


def _spot_dict(spot: SpotProfile) -> dict[str, Any]:
    return {
        **spot.summary(),
        "orientation_text": direction_to_text(spot.orientation),
        "swell_directions_text": [direction_to_text(d) for d in spot.swell_directions],
    }


@router.get("/spots")
def get_spots() -> dict[str, Any]:
    return {"spots": [_spot_dict(s) for s in list_spots()]}


@router.get("/spots/{spot_id}")
def get_spot(spot_id: str) -> dict[str, Any]:
    try:
        return _spot_dict(require_spot(spot_id))
    except SurfCheckError as e:
        raise domain_error_to_http(e)


@router.get("/regions")
def get_regions() -> dict[str, Any]:
    return {"regions": list_regions()}


@router.get("/regions/{region_id}/spots")
def get_region_spots(region_id: str) -> dict[str, Any]:
    try:
        spots = spots_in_region(region_id)
    except SurfCheckError as e:
        raise domain_error_to_http(e)
    return {"region_id": region_id, "spots": [_spot_dict(s) for s in spots]}

"""Compass helpers. Directions are degrees clockwise from north."""

_COMPASS_16 = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def to360(deg: float) -> float:
    return deg % 360.0


def ang_diff(a: float, b: float) -> float:
    """Smallest absolute angle between two directions, 0..180."""
    d = (a - b) % 360.0
    return 360.0 - d if d > 180.0 else d


def direction_to_text(deg: float | None) -> str:
    """16-point compass name, e.g. 135 -> 'SE'."""
    if deg is None:
        return "N/A"
    idx = int((to360(deg) + 11.25) // 22.5) % 16
    return _COMPASS_16[idx]

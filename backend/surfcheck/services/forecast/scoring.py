"""
Hourly surf scoring: one HourlySample + SpotProfile -> ScoredHour.

Pure and deterministic (no clock, no I/O). Each factor scores 0..1 and is weighted;
factors with no data (tide, or tide preference "any") drop out and the remaining
weights are renormalized. Reasons are the top factors by |weighted contribution|.
"""
from surfcheck.core.angles import ang_diff, to360
from surfcheck.core.constants import MAX_REASONS
from surfcheck.services.forecast.types import HourlySample, Label, ScoredHour, WindClass, round_half_up
from surfcheck.services.spots import SpotProfile

# Fixed order doubles as the tie-break for reasons with equal contribution
FACTOR_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("swell_direction", 0.30),
    ("swell_height", 0.25),
    ("wind", 0.25),
    ("swell_period", 0.12),
    ("tide", 0.08),
)

DIRECTION_FULL_SCORE_DEG = 15.0
DIRECTION_ZERO_SCORE_DEG = 90.0
OFFSHORE_SECTOR_DEG = 45.0
CALM_WIND_KMH = 5.0

# Normalized tide level (0 = spot low, 1 = spot high) that each preference likes
TIDE_BANDS = {
    "low": (0.0, 0.35),
    "mid": (0.3, 0.7),
    "high": (0.65, 1.0),
}


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _band_score(value: float, lo: float, hi: float) -> float:
    """1 inside [lo, hi]; linear decay over 75% of the band width outside it."""
    if lo <= value <= hi:
        return 1.0
    pad = (hi - lo) * 0.75 or 1.0
    if value < lo:
        return _clamp01(1 - (lo - value) / pad)
    return _clamp01(1 - (value - hi) / pad)


def wave_power_kwm(height: float | None, period: float | None) -> float:
    """Deep-water wave power, P = 0.49 * H^2 * T (kW/m)."""
    if not height or not period or height <= 0 or period <= 0:
        return 0.0
    return 0.49 * height * height * period


def classify_wind(wind_direction: float, orientation: float) -> WindClass:
    offshore_from = to360(orientation + 180.0)
    d = ang_diff(wind_direction, offshore_from)
    if d <= OFFSHORE_SECTOR_DEG:
        return WindClass.OFFSHORE
    if d >= 180.0 - OFFSHORE_SECTOR_DEG:
        return WindClass.ONSHORE
    return WindClass.CROSS


def _score_direction(sample: HourlySample, spot: SpotProfile) -> tuple[float, str]:
    if sample.swell_direction is None or not spot.swell_directions:
        return 0.0, "swell_misaligned"
    d = min(ang_diff(sample.swell_direction, p) for p in spot.swell_directions)
    if d <= DIRECTION_FULL_SCORE_DEG:
        s = 1.0
    else:
        s = _clamp01(1 - (d - DIRECTION_FULL_SCORE_DEG) / (DIRECTION_ZERO_SCORE_DEG - DIRECTION_FULL_SCORE_DEG))
    return s, ("swell_aligned" if s >= 0.5 else "swell_misaligned")


def _score_height(sample: HourlySample, spot: SpotProfile) -> tuple[float, str]:
    h = sample.swell_height or 0.0
    lo, hi = spot.ideal_height
    s = _band_score(h, lo, hi) if h > 0 else 0.0
    if s >= 0.5:
        return s, "swell_size_good"
    return s, ("swell_too_small" if h < lo else "swell_too_big")


def _score_period(sample: HourlySample, spot: SpotProfile) -> tuple[float, str]:
    t = sample.swell_period or 0.0
    lo, hi = spot.ideal_period
    s = _band_score(t, lo, hi) if t > 0 else 0.0
    if s >= 0.5:
        return s, "period_good"
    return s, ("period_short" if t < lo else "period_long")


def _score_wind(sample: HourlySample, spot: SpotProfile) -> tuple[float, str, WindClass | None]:
    if sample.wind_direction is None:
        return 0.0, "wind_unknown", None
    v = sample.wind_speed or 0.0
    cls = classify_wind(sample.wind_direction, spot.orientation)
    if cls is WindClass.OFFSHORE:
        s = 1.0 if v <= 25 else 0.7 if v <= 35 else 0.4
        return s, ("wind_offshore" if s >= 0.5 else "wind_offshore_strong"), cls
    if v < CALM_WIND_KMH:
        return 0.85, "wind_light", cls
    if cls is WindClass.CROSS:
        s = 0.65 if v <= 12 else 0.4 if v <= 20 else 0.2
        return s, ("wind_light" if s >= 0.5 else "wind_cross"), cls
    s = 0.45 if v <= 10 else 0.2 if v <= 18 else 0.0
    return s, "wind_onshore", cls


def _score_tide(sample: HourlySample, spot: SpotProfile) -> tuple[float, str] | None:
    band = TIDE_BANDS.get(spot.tide_preference)
    if sample.tide_height is None or band is None:
        return None
    lo, hi = spot.tide_range
    level = (sample.tide_height - lo) / (hi - lo) if hi > lo else 0.5
    s = _band_score(level, *band)
    return s, ("tide_favorable" if s >= 0.5 else "tide_unfavorable")


def score(sample: HourlySample, spot: SpotProfile) -> ScoredHour:
    """Score one hour for a spot. Never raises on missing optional fields."""
    wind_s, wind_code, wind_class = _score_wind(sample, spot)
    factors: dict[str, tuple[float, str] | None] = {
        "swell_direction": _score_direction(sample, spot),
        "swell_height": _score_height(sample, spot),
        "wind": (wind_s, wind_code),
        "swell_period": _score_period(sample, spot),
        "tide": _score_tide(sample, spot),
    }
    present = [(name, w, factors[name]) for name, w in FACTOR_WEIGHTS if factors[name] is not None]
    total_w = sum(w for _, w, _ in present)
    raw = sum(w * f[0] for _, w, f in present) / total_w
    value = max(0, min(100, round_half_up(100 * raw)))

    # sorted() is stable, so equal contributions keep FACTOR_WEIGHTS order
    contributions = [((w / total_w) * (f[0] - 0.5), f[1]) for _, w, f in present]
    ranked = sorted(contributions, key=lambda c: abs(c[0]), reverse=True)
    reasons = tuple(code for _, code in ranked[:MAX_REASONS])

    power = sample.wave_power if sample.wave_power is not None else wave_power_kwm(
        sample.swell_height, sample.swell_period
    )
    return ScoredHour(
        sample=sample,
        score=value,
        label=Label.for_score(value),
        reasons=reasons,
        power_kwm=power,
        wind_class=wind_class,
    )


def score_all(samples: list[HourlySample], spot: SpotProfile) -> list[ScoredHour]:
    return [score(s, spot) for s in samples]

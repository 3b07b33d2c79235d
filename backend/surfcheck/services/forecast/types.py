"""Forecast value types shared by scoring, windowing and matching. Same shape regardless of provider."""
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from surfcheck.core.angles import direction_to_text
from surfcheck.core.constants import EPIC_MIN_SCORE, GOOD_MIN_SCORE, OK_MIN_SCORE


def round_half_up(x: float) -> int:
    """0.5 rounds away from zero for positives (2.5 -> 3), unlike round()."""
    return int(math.floor(x + 0.5))


class Label(str, Enum):
    POOR = "poor"
    OK = "ok"
    GOOD = "good"
    EPIC = "epic"

    @property
    def rank(self) -> int:
        return _LABEL_ORDER.index(self)

    def at_least(self, other: "Label") -> bool:
        return self.rank >= other.rank

    @classmethod
    def for_score(cls, score: int) -> "Label":
        if score >= EPIC_MIN_SCORE:
            return cls.EPIC
        if score >= GOOD_MIN_SCORE:
            return cls.GOOD
        if score >= OK_MIN_SCORE:
            return cls.OK
        return cls.POOR


_LABEL_ORDER = [Label.POOR, Label.OK, Label.GOOD, Label.EPIC]


class WindClass(str, Enum):
    OFFSHORE = "offshore"
    CROSS = "cross"
    ONSHORE = "onshore"


@dataclass(frozen=True)
class HourlySample:
    """One hour from a forecast provider. Speeds in km/h, heights in m, directions are "from"."""

    timestamp: datetime
    swell_height: float | None = None
    swell_direction: float | None = None
    swell_period: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    wave_height: float | None = None
    tide_height: float | None = None
    wave_energy: float | None = None  # J/m²
    wave_power: float | None = None  # kW/m

    def with_tide(self, tide_height: float | None) -> "HourlySample":
        return HourlySample(
            timestamp=self.timestamp,
            swell_height=self.swell_height,
            swell_direction=self.swell_direction,
            swell_period=self.swell_period,
            wind_speed=self.wind_speed,
            wind_direction=self.wind_direction,
            wave_height=self.wave_height,
            tide_height=tide_height,
            wave_energy=self.wave_energy,
            wave_power=self.wave_power,
        )


@dataclass(frozen=True)
class ScoredHour:
    sample: HourlySample
    score: int
    label: Label
    reasons: tuple[str, ...]
    power_kwm: float
    wind_class: WindClass | None = None

    @property
    def timestamp(self) -> datetime:
        return self.sample.timestamp

    def to_dict(self) -> dict[str, Any]:
        s = self.sample
        return {
            "time": s.timestamp.isoformat(),
            "score": self.score,
            "label": self.label.value,
            "reasons": list(self.reasons),
            "swell_height": s.swell_height,
            "swell_direction": s.swell_direction,
            "swell_direction_text": direction_to_text(s.swell_direction),
            "swell_period": s.swell_period,
            "wind_speed": s.wind_speed,
            "wind_direction": s.wind_direction,
            "wind_class": self.wind_class.value if self.wind_class else None,
            "wave_height": s.wave_height,
            "tide_height": s.tide_height,
            "power_kwm": round(self.power_kwm, 2),
        }


@dataclass(frozen=True)
class Window:
    """Contiguous run of hours at label >= ok."""

    start: datetime
    end: datetime
    avg_score: int
    highlights: tuple[tuple[str, int], ...]
    hours: tuple[ScoredHour, ...] = field(repr=False)
    spot_id: str | None = None

    @property
    def peak_score(self) -> int:
        return max(h.score for h in self.hours)

    @property
    def best_hour(self) -> ScoredHour:
        # first hour with the peak score
        return max(enumerate(self.hours), key=lambda p: (p[1].score, -p[0]))[1]

    @property
    def mean_power(self) -> float:
        return sum(h.power_kwm for h in self.hours) / len(self.hours)

    @property
    def mean_swell_height(self) -> float:
        return sum((h.sample.swell_height or 0.0) for h in self.hours) / len(self.hours)

    @property
    def mean_wind_speed(self) -> float:
        return sum((h.sample.wind_speed or 0.0) for h in self.hours) / len(self.hours)

    @property
    def dominant_wind(self) -> WindClass | None:
        counts = Counter(h.wind_class for h in self.hours if h.wind_class is not None)
        if not counts:
            return None
        # ties go to the less favourable class
        order = [WindClass.ONSHORE, WindClass.CROSS, WindClass.OFFSHORE]
        return max(counts, key=lambda c: (counts[c], -order.index(c)))

    def with_spot(self, spot_id: str) -> "Window":
        return Window(self.start, self.end, self.avg_score, self.highlights, self.hours, spot_id)

    def to_dict(self) -> dict[str, Any]:
        best = self.best_hour
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "score_avg": self.avg_score,
            "peak_score": self.peak_score,
            "count": len(self.hours),
            "highlights": [{"reason": r, "count": c} for r, c in self.highlights],
            "best_hour": best.to_dict(),
            "spot_id": self.spot_id,
        }

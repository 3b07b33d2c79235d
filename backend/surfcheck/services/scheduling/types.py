"""
Scheduling value objects: preferences, notification settings and the target variant.

All are frozen pydantic models; invalid input fails at construction with one error per
violated field (FastAPI turns these into 422 responses).
"""
import re
from enum import Enum
from typing import Annotated, Literal, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TimeWindow(str, Enum):
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"


class SurfStyle(str, Enum):
    LONGBOARD = "longboard"
    SHORTBOARD = "shortboard"
    ANY = "any"


class WindPreference(str, Enum):
    OFFSHORE = "offshore"
    LIGHT = "light"
    ANY = "any"


class SchedulingPreferences(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    days_ahead: Literal[1, 3, 5] = 3
    time_windows: tuple[TimeWindow, ...] = (TimeWindow.MORNING,)
    min_score: int = Field(default=60, ge=0, le=100)
    surf_style: SurfStyle = SurfStyle.ANY
    wind_preference: WindPreference = WindPreference.ANY
    min_energy: float = Field(default=1.0, ge=0)

    @field_validator("time_windows", mode="after")
    @classmethod
    def dedupe_windows(cls, v: tuple[TimeWindow, ...]) -> tuple[TimeWindow, ...]:
        # not reached when a member fails enum parsing
        if not v:
            raise ValueError("at least one time window is required")
        # keep first occurrence order
        return tuple(dict.fromkeys(v))


class NotificationSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    push_enabled: bool = True
    advance_hours: float = Field(default=1.0, ge=0.5, le=24)
    daily_summary: bool = False
    special_alerts: bool = True
    fixed_time: str | None = None  # HH:mm, local to timezone
    timezone: str = "America/Sao_Paulo"

    @field_validator("fixed_time", mode="after")
    @classmethod
    def check_fixed_time(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not _HHMM.match(v):
            raise ValueError("fixed_time must be HH:mm (24h)")
        return v

    @field_validator("timezone", mode="after")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def fixed_time_minutes(self) -> int | None:
        """fixed_time as minutes after local midnight."""
        if self.fixed_time is None:
            return None
        hh, mm = self.fixed_time.split(":")
        return int(hh) * 60 + int(mm)


class SingleTarget(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["single"] = "single"
    spot_id: str = Field(..., min_length=1)


class RegionalTarget(BaseModel):
    """Empty spot_ids means every spot of the region."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["regional"] = "regional"
    region_id: str = Field(..., min_length=1)
    spot_ids: tuple[str, ...] = ()


SchedulingTarget = Annotated[Union[SingleTarget, RegionalTarget], Field(discriminator="kind")]


class SchedulingSnapshot(BaseModel):
    """Detached, read-only view of a scheduling row (safe to hand to worker threads)."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    target: SchedulingTarget
    active: bool = True
    preferences: SchedulingPreferences = SchedulingPreferences()
    notifications: NotificationSettings = NotificationSettings()
    next_day_forecast: dict | None = None

    @property
    def is_regional(self) -> bool:
        return isinstance(self.target, RegionalTarget)

"""Notification payload builders. Title/body are short push texts; data carries the details."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from surfcheck.services.forecast.types import ScoredHour, Window
from surfcheck.services.spots import SpotProfile


class NotificationType(str, Enum):
    ADVANCE_ALERT = "advance_alert"
    DAILY_SUMMARY = "daily_summary"
    SPECIAL_ALERT = "special_alert"
    FIXED_TIME = "fixed_time_alert"
    REGIONAL_COMPARISON = "regional_comparison"


@dataclass(frozen=True)
class NotificationPayload:
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    slot: str | None = None  # sub-key for types that fire more than once a day

    def dedupe_key(self, scheduling_id: str, local_date: date) -> str:
        kind = self.type.value if self.slot is None else f"{self.type.value}_{self.slot}"
        return f"{scheduling_id}|{kind}|{local_date.isoformat()}"


def _hhmm(dt: datetime) -> str:
    return dt.strftime("%H:%M")


def _window_item(spot: SpotProfile, window: Window) -> dict[str, Any]:
    best = window.best_hour
    return {
        "spot_id": spot.id,
        "spot_name": spot.name,
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
        "score": window.avg_score,
        "best_time": best.timestamp.isoformat(),
        "highlights": [r for r, _ in window.highlights],
    }


def advance_alert(spot: SpotProfile, window: Window, now: datetime) -> NotificationPayload:
    lead_min = max(0, int((window.start - now).total_seconds() // 60))
    return NotificationPayload(
        type=NotificationType.ADVANCE_ALERT,
        title=f"{spot.name}: score {window.avg_score} at {_hhmm(window.start)}",
        body=f"Session starts in {lead_min // 60}h{lead_min % 60:02d} and runs until {_hhmm(window.end)}",
        data={**_window_item(spot, window), "lead_minutes": lead_min},
    )


def daily_summary(local_date: date, items: list[tuple[SpotProfile, Window]]) -> NotificationPayload:
    if not items:
        return no_good_session(local_date)
    spot, best = items[0]
    spots = {s.id for s, _ in items}
    return NotificationPayload(
        type=NotificationType.DAILY_SUMMARY,
        title=f"Good morning! {len(items)} windows at {len(spots)} spots",
        body=f"Best: {spot.name} at {_hhmm(best.start)} ({best.avg_score})",
        data={
            "date": local_date.isoformat(),
            "has_sessions": True,
            "top_windows": [_window_item(s, w) for s, w in items],
        },
    )


def no_good_session(local_date: date) -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.DAILY_SUMMARY,
        title="Good morning!",
        body="No good session matches your preferences today",
        data={"date": local_date.isoformat(), "has_sessions": False, "top_windows": []},
    )


def special_alert(spot: SpotProfile, hour: ScoredHour) -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.SPECIAL_ALERT,
        title=f"Epic alert: {spot.name} scores {hour.score}",
        body=f"Peak at {hour.timestamp.strftime('%a %H:%M')}",
        data={"spot_id": spot.id, "spot_name": spot.name, **hour.to_dict()},
    )


def fixed_time_alert(
    local_date: date,
    snapshot: dict[str, Any] | None,
    current: tuple[SpotProfile, Window] | None,
) -> NotificationPayload:
    """
    Today's best window next to the stored next-day snapshot.
    delta = next-day score - today's score, when both exist.
    """
    current_item = _window_item(*current) if current else None
    delta = None
    if snapshot is not None and current_item is not None:
        delta = int(snapshot.get("score") or 0) - current_item["score"]
    if current_item is None:
        title = "No good session today"
        body = "Nothing matches your preferences for today"
    else:
        title = f"{current_item['spot_name']}: score {current_item['score']}"
        body = f"Best window {_hhmm(current[1].start)}-{_hhmm(current[1].end)}"
    if snapshot is not None:
        body += f" | Tomorrow: {snapshot.get('spot_name')} {snapshot.get('score')} at {snapshot.get('time')}"
    return NotificationPayload(
        type=NotificationType.FIXED_TIME,
        title=title,
        body=body,
        data={"date": local_date.isoformat(), "current": current_item, "next_day": snapshot, "delta": delta},
    )


def regional_comparison(
    region_name: str, slot: str, ranked: list[tuple[SpotProfile, ScoredHour]]
) -> NotificationPayload:
    top = [
        {"rank": i + 1, "spot_id": s.id, "spot_name": s.name, "score": h.score, "label": h.label.value,
         "time": h.timestamp.isoformat()}
        for i, (s, h) in enumerate(ranked)
    ]
    if top:
        body = " | ".join(f"{t['rank']}. {t['spot_name']} ({t['score']})" for t in top)
    else:
        body = "No forecast for this region right now"
    return NotificationPayload(
        type=NotificationType.REGIONAL_COMPARISON,
        title=f"{region_name}: best spot now",
        body=body,
        data={"region": region_name, "slot": slot, "ranking": top},
        slot=slot,
    )

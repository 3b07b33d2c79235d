"""
Scheduling CRUD: value objects in, rows out. Targets are checked against the spot
catalogue before anything is written.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from surfcheck.config import settings
from surfcheck.core.errors import InvalidTargetError, NotFoundError
from surfcheck.models.scheduling import Scheduling
from surfcheck.services.scheduling.types import (
    NotificationSettings,
    RegionalTarget,
    SchedulingPreferences,
    SchedulingSnapshot,
    SchedulingTarget,
    SingleTarget,
)
from surfcheck.services.spots import SpotProfile, require_spot, spots_in_region

logger = logging.getLogger(__name__)


def default_notification_settings() -> NotificationSettings:
    return NotificationSettings(timezone=settings.default_timezone)


def resolve_target_spots(target: SchedulingTarget) -> list[SpotProfile]:
    """
    Spots a target covers. Unknown spot/region -> NotFoundError; a regional subset with
    spots outside the region -> InvalidTargetError.
    """
    if isinstance(target, SingleTarget):
        return [require_spot(target.spot_id)]
    region_spots = spots_in_region(target.region_id)
    if not target.spot_ids:
        return region_spots
    by_id = {s.id: s for s in region_spots}
    outside = [sid for sid in target.spot_ids if sid not in by_id]
    if outside:
        raise InvalidTargetError(f"spots {outside} are not in region '{target.region_id}'")
    return [by_id[sid] for sid in dict.fromkeys(target.spot_ids)]


def _apply_target(row: Scheduling, target: SchedulingTarget) -> None:
    if isinstance(target, SingleTarget):
        row.target_kind = "single"
        row.spot_id = target.spot_id
        row.region_id = None
        row.spot_subset = []
    else:
        row.target_kind = "regional"
        row.spot_id = None
        row.region_id = target.region_id
        row.spot_subset = list(dict.fromkeys(target.spot_ids))


def target_of(row: Scheduling) -> SchedulingTarget:
    if row.target_kind == "regional":
        return RegionalTarget(region_id=row.region_id, spot_ids=tuple(row.spot_subset or ()))
    return SingleTarget(spot_id=row.spot_id)


def to_snapshot(row: Scheduling) -> SchedulingSnapshot:
    return SchedulingSnapshot(
        id=row.id,
        user_id=row.user_id,
        target=target_of(row),
        active=bool(row.active),
        preferences=SchedulingPreferences.model_validate(row.preferences or {}),
        notifications=NotificationSettings.model_validate(row.notification_settings or {}),
        next_day_forecast=row.next_day_forecast,
    )


def serialize(row: Scheduling) -> dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "target": target_of(row).model_dump(mode="json"),
        "active": bool(row.active),
        "preferences": row.preferences,
        "notifications": row.notification_settings,
        "next_day_forecast": row.next_day_forecast,
        "next_day_forecast_at": row.next_day_forecast_at.isoformat() if row.next_day_forecast_at else None,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def create_scheduling(
    db: Session,
    user_id: str,
    target: SchedulingTarget,
    preferences: SchedulingPreferences | None = None,
    notifications: NotificationSettings | None = None,
) -> Scheduling:
    resolve_target_spots(target)
    row = Scheduling(
        user_id=user_id,
        active=True,
        preferences=(preferences or SchedulingPreferences()).model_dump(mode="json"),
        notification_settings=(notifications or default_notification_settings()).model_dump(mode="json"),
        next_day_forecast=None,
    )
    _apply_target(row, target)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created scheduling %s for user %s (%s)", row.id, user_id, row.target_kind)
    return row


def get_scheduling(db: Session, scheduling_id: str, user_id: str | None = None) -> Scheduling:
    """Row by id (and owner when user_id is given); NotFoundError otherwise."""
    q = db.query(Scheduling).filter(Scheduling.id == scheduling_id)
    if user_id is not None:
        q = q.filter(Scheduling.user_id == user_id)
    row = q.first()
    if row is None:
        raise NotFoundError("scheduling", scheduling_id)
    return row


def list_schedulings(db: Session, user_id: str, active_only: bool = False) -> list[Scheduling]:
    q = db.query(Scheduling).filter(Scheduling.user_id == user_id)
    if active_only:
        q = q.filter(Scheduling.active.is_(True))
    return q.order_by(Scheduling.created_at.desc()).all()


def list_active_snapshots(db: Session) -> list[SchedulingSnapshot]:
    """Active schedulings for the notification tick. Rows that no longer validate are skipped."""
    snapshots = []
    for row in db.query(Scheduling).filter(Scheduling.active.is_(True)).order_by(Scheduling.created_at).all():
        try:
            snapshots.append(to_snapshot(row))
        except ValueError as e:
            logger.warning("Skipping scheduling %s with invalid stored data: %s", row.id, e)
    return snapshots


def update_scheduling(
    db: Session,
    scheduling_id: str,
    user_id: str,
    target: SchedulingTarget | None = None,
    preferences: SchedulingPreferences | None = None,
    notifications: NotificationSettings | None = None,
    active: bool | None = None,
) -> Scheduling:
    """Replace whichever parts are given. The next-day forecast is cleared when matching inputs change."""
    row = get_scheduling(db, scheduling_id, user_id)
    if target is not None:
        resolve_target_spots(target)
        _apply_target(row, target)
    if preferences is not None:
        row.preferences = preferences.model_dump(mode="json")
    if notifications is not None:
        row.notification_settings = notifications.model_dump(mode="json")
    if active is not None:
        row.active = active
    if target is not None or preferences is not None:
        row.next_day_forecast = None
        row.next_day_forecast_at = None
    row.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(row)
    return row


def delete_scheduling(db: Session, scheduling_id: str, user_id: str) -> None:
    """Hard delete. Notification history is kept (no FK)."""
    row = get_scheduling(db, scheduling_id, user_id)
    db.delete(row)
    db.commit()
    logger.info("Deleted scheduling %s", scheduling_id)


def save_next_day_forecast(
    db: Session, scheduling_id: str, forecast: dict[str, Any] | None, now: datetime | None = None
) -> bool:
    """Overwrite the stored next-day forecast as a whole. False if the scheduling is gone."""
    row = db.query(Scheduling).filter(Scheduling.id == scheduling_id).first()
    if row is None:
        return False
    row.next_day_forecast = forecast
    row.next_day_forecast_at = now or datetime.now(timezone.utc)
    db.commit()
    return True

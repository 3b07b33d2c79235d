"""
Notification history: list, mark read, and an on-demand scheduler tick.

User identified by X-User-Id header or ?user_id= (default 'default').
"""
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from surfcheck.api.dependencies import get_notification_scheduler, get_notifier, get_session_factory, get_user_id
from surfcheck.core.errors import NotFoundError, domain_error_to_http
from surfcheck.db.session import get_db
from surfcheck.models.notification_record import NotificationRecord
from surfcheck.scheduler.notification_job import run_notification_tick

router = APIRouter()
logger = logging.getLogger(__name__)


def _record_dict(r: NotificationRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "type": r.type,
        "scheduling_id": r.scheduling_id,
        "local_date": r.local_date.isoformat() if r.local_date else None,
        "title": r.title,
        "body": r.body,
        "data": r.payload or {},
        "read": r.read_at is not None,
        "read_at": r.read_at.isoformat() if r.read_at else None,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


# --- List ---


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    limit: int = Query(80, ge=1, le=200),
    unread_only: bool = Query(False),
) -> dict[str, Any]:
    """List the user's notifications, newest first."""
    q = db.query(NotificationRecord).filter(NotificationRecord.user_id == user_id)
    if unread_only:
        q = q.filter(NotificationRecord.read_at.is_(None))
    rows = q.order_by(NotificationRecord.created_at.desc(), NotificationRecord.id.desc()).limit(limit).all()
    unread_count = (
        db.query(NotificationRecord)
        .filter(NotificationRecord.user_id == user_id, NotificationRecord.read_at.is_(None))
        .count()
    )
    return {"notifications": [_record_dict(r) for r in rows], "unread_count": unread_count}


# --- Mark one read ---


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    row = (
        db.query(NotificationRecord)
        .filter(NotificationRecord.id == notification_id, NotificationRecord.user_id == user_id)
        .first()
    )
    if not row:
        raise domain_error_to_http(NotFoundError("notification", str(notification_id)))
    if row.read_at is None:
        row.read_at = datetime.now(timezone.utc)
        db.commit()
    return {"ok": True, "id": notification_id, "read_at": row.read_at.isoformat()}


# --- Mark all read ---


@router.post("/notifications/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    updated = (
        db.query(NotificationRecord)
        .filter(NotificationRecord.user_id == user_id, NotificationRecord.read_at.is_(None))
        .update({NotificationRecord.read_at: now}, synchronize_session=False)
    )
    db.commit()
    return {"ok": True, "user_id": user_id, "marked_count": updated}


# --- Run one tick (ops/debug) ---


@router.post("/notifications/run-tick")
def run_tick(
    scheduler=Depends(get_notification_scheduler),
    notifier=Depends(get_notifier),
    session_factory=Depends(get_session_factory),
) -> dict[str, Any]:
    report = run_notification_tick(scheduler=scheduler, notifier=notifier, session_factory=session_factory)
    return {
        "started_at": report.started_at.isoformat(),
        "evaluated": len(report.outcomes),
        "dispatched": len(report.dispatched_ids),
        "notification_ids": report.dispatched_ids,
        "failed": report.failed,
        "abandoned": report.abandoned,
    }

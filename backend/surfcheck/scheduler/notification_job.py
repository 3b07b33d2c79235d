"""
Notification tick job: run the scheduler over all active schedulings, then deliver what
it recorded to the users' registered devices. Delivery failures are logged, not retried.
Records that were never handed to delivery (sent_count NULL), e.g. committed by an
evaluation that outran the tick budget, are swept up by the next tick.
"""
import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from surfcheck.api.dependencies import get_notification_scheduler, get_notifier, get_session_factory
from surfcheck.models.notification_record import NotificationRecord
from surfcheck.models.push_token import PushToken
from surfcheck.services.notifications.notifier import Notifier
from surfcheck.services.notifications.payloads import NotificationPayload, NotificationType
from surfcheck.services.notifications.scheduler import NotificationScheduler, TickReport

logger = logging.getLogger(__name__)


def deliver(db: Session, notifier: Notifier, record_ids: list[int]) -> int:
    """Send each record to its user's devices; store per-record sent_count. Returns total sent."""
    if not record_ids:
        return 0
    rows = db.query(NotificationRecord).filter(NotificationRecord.id.in_(record_ids)).all()
    tokens_by_user: dict[str, list[str]] = {}
    total = 0
    for row in rows:
        if row.user_id not in tokens_by_user:
            tokens_by_user[row.user_id] = [
                t.device_token for t in db.query(PushToken).filter(PushToken.user_id == row.user_id).all()
            ]
        tokens = tokens_by_user[row.user_id]
        payload = NotificationPayload(
            type=NotificationType(row.type), title=row.title, body=row.body, data=row.payload or {}
        )
        try:
            sent = notifier.send(tokens, payload)
        except Exception as e:
            logger.exception("Delivery of notification %s failed: %s", row.id, e)
            sent = 0
        row.sent_count = sent
        total += sent
    db.commit()
    return total


def pending_delivery_ids(db: Session, since: date) -> list[int]:
    """Ids of records from local date `since` onward that delivery has not run for."""
    rows = (
        db.query(NotificationRecord.id)
        .filter(NotificationRecord.sent_count.is_(None), NotificationRecord.local_date >= since)
        .order_by(NotificationRecord.id)
        .all()
    )
    return [r.id for r in rows]


def run_notification_tick(
    now: datetime | None = None,
    scheduler: NotificationScheduler | None = None,
    notifier: Notifier | None = None,
    session_factory=None,
) -> TickReport:
    scheduler = scheduler or get_notification_scheduler()
    notifier = notifier or get_notifier()
    session_factory = session_factory or get_session_factory()
    report = scheduler.run_tick(now)
    db = session_factory()
    try:
        # yesterday covers every local date that is still "today" somewhere
        since = report.started_at.date() - timedelta(days=1)
        record_ids = sorted(set(report.dispatched_ids) | set(pending_delivery_ids(db, since)))
        if record_ids:
            sent = deliver(db, notifier, record_ids)
            logger.info("Delivered %s push(es) for %s notification(s)", sent, len(record_ids))
    except Exception as e:
        logger.exception("Notification delivery failed: %s", e)
        db.rollback()
    finally:
        db.close()
    return report


def run_notification_job() -> None:
    """APScheduler entry point."""
    try:
        run_notification_tick()
    except Exception as e:
        logger.exception("Notification job failed: %s", e)

"""
Notification scheduler: one tick evaluates every active scheduling and records what to push.

Per scheduling and tick: Idle -> Evaluating -> Suppressed | Dispatched -> Idle. Nothing
is persisted in between; a NotificationRecord with a unique dedupe key
({scheduling_id}|{type}|{local_date}) is what keeps a type to once per local day.

Rules, in order, each independent:
  1. advance alert      push_enabled, a qualifying window starts in (now, now + advance_hours]
  2. daily summary      daily_summary, local time >= 08:00; top windows of the day or "no good session"
  3. special alert      special_alerts, any upcoming hour of any target spot scores > 90
  4. fixed-time alert   local time in [fixed_time, fixed_time + 2 ticks); one late tick still fires
  5. regional comparison  regional targets, 06:00 and 18:00 local (same crossing rule)

Schedulings are evaluated in parallel (one DB session each). Work still pending when
the tick budget runs out is cancelled; evaluations already running record nothing
and are picked up by the next tick.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from surfcheck.config import settings
from surfcheck.core.constants import (
    DAILY_SUMMARY_AT,
    REGIONAL_COMPARISON_AT,
    REGIONAL_TOP_SPOTS,
    SPECIAL_ALERT_MIN_SCORE,
    SUMMARY_TOP_WINDOWS,
)
from surfcheck.core.errors import ForecastUnavailable
from surfcheck.models.notification_record import NotificationRecord
from surfcheck.services.forecast.matcher import match_windows
from surfcheck.services.forecast.service import ForecastResult, ForecastService
from surfcheck.services.forecast.types import ScoredHour, Window
from surfcheck.services.forecast.windows import current_hour, rank_windows
from surfcheck.services.notifications import payloads
from surfcheck.services.notifications.payloads import NotificationPayload
from surfcheck.services.scheduling.crud import list_active_snapshots, resolve_target_spots, save_next_day_forecast
from surfcheck.services.scheduling.next_day import compute_next_day
from surfcheck.services.scheduling.types import RegionalTarget, SchedulingSnapshot
from surfcheck.services.spots import SpotProfile

logger = logging.getLogger(__name__)


class EvaluationState(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    SUPPRESSED = "suppressed"
    DISPATCHED = "dispatched"


@dataclass
class SchedulingOutcome:
    scheduling_id: str
    state: EvaluationState = EvaluationState.IDLE
    dispatched: list[int] = field(default_factory=list)  # NotificationRecord ids
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class TickReport:
    started_at: datetime
    outcomes: list[SchedulingOutcome] = field(default_factory=list)
    abandoned: list[str] = field(default_factory=list)  # scheduling ids left for the next tick

    @property
    def dispatched_ids(self) -> list[int]:
        return [rid for o in self.outcomes for rid in o.dispatched]

    @property
    def failed(self) -> list[str]:
        return [o.scheduling_id for o in self.outcomes if o.failed]


class _TickForecasts:
    """Forecasts memoized per (spot, days) for one tick. Failures are memoized too."""

    def __init__(self, service: ForecastService, timeout: float | None):
        self._service = service
        self._timeout = timeout
        self._results: dict[tuple[str, int], ForecastResult] = {}
        self._locks: dict[tuple[str, int], threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, spot: SpotProfile, days: int) -> ForecastResult:
        """Raises ForecastUnavailable when the provider gave nothing."""
        key = (spot.id, days)
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            if key not in self._results:
                self._results[key] = self._service.forecast(spot, days, timeout=self._timeout)
            result = self._results[key]
        if not result.available:
            raise ForecastUnavailable(f"{spot.id}: {result.error}")
        return result


CROSSING_GRACE_TICKS = 2


def crossed_at(local_now: datetime, at: time, tick: timedelta) -> date | None:
    """
    Local date whose `at` wall-clock time falls in (local_now - 2 * tick, local_now], or None.

    Two ticks wide, so the tick after a missed one still fires; the dedupe key keeps it
    to one per local date. Checks yesterday too so a crossing just before midnight is
    not missed.
    """
    grace = tick * CROSSING_GRACE_TICKS
    for day in (local_now.date(), local_now.date() - timedelta(days=1)):
        target = datetime.combine(day, at, tzinfo=local_now.tzinfo)
        if target <= local_now < target + grace:
            return day
    return None


class NotificationScheduler:
    def __init__(
        self,
        forecasts: ForecastService,
        session_factory: Callable[[], Session] | None = None,
        tick_minutes: float | None = None,
        budget_seconds: float | None = None,
        max_workers: int | None = None,
        io_timeout: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if session_factory is None:
            from surfcheck.db.session import SessionLocal

            session_factory = SessionLocal
        self._forecasts = forecasts
        self._session_factory = session_factory
        self.tick = timedelta(minutes=tick_minutes or settings.notification_tick_minutes)
        self._budget = budget_seconds if budget_seconds is not None else settings.notification_tick_budget_seconds
        self._max_workers = max_workers or settings.notification_max_workers
        self._io_timeout = io_timeout if io_timeout is not None else settings.io_timeout_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- Rules ---

    def _advance_alert(
        self, snap: SchedulingSnapshot, spot_windows: list[tuple[SpotProfile, Window]], now: datetime
    ) -> NotificationPayload | None:
        if not snap.notifications.push_enabled:
            return None
        horizon = now + timedelta(hours=snap.notifications.advance_hours)
        upcoming = [(s, w) for s, w in spot_windows if now < w.start <= horizon]
        if not upcoming:
            return None
        # soonest start, then higher score
        spot, window = min(upcoming, key=lambda sw: (sw[1].start, -sw[1].avg_score))
        return payloads.advance_alert(spot, window, now)

    def _daily_summary(
        self, snap: SchedulingSnapshot, spot_windows: list[tuple[SpotProfile, Window]], local_now: datetime
    ) -> NotificationPayload | None:
        if not snap.notifications.daily_summary or local_now.time() < DAILY_SUMMARY_AT:
            return None
        today = local_now.date()
        todays = [(s, w) for s, w in spot_windows if w.start.astimezone(local_now.tzinfo).date() == today]
        ranked = rank_windows([w.with_spot(s.id) for s, w in todays])
        spots = {s.id: s for s, _ in todays}
        items = [(spots[w.spot_id], w) for w in ranked[:SUMMARY_TOP_WINDOWS]]
        return payloads.daily_summary(today, items)

    def _special_alert(
        self, snap: SchedulingSnapshot, forecasts: list[tuple[SpotProfile, ForecastResult]], now: datetime
    ) -> NotificationPayload | None:
        if not snap.notifications.special_alerts:
            return None
        hour_start = now.replace(minute=0, second=0, microsecond=0)
        best: tuple[SpotProfile, ScoredHour] | None = None
        for spot, result in forecasts:
            for h in result.hours:
                if h.timestamp < hour_start or h.score <= SPECIAL_ALERT_MIN_SCORE:
                    continue
                if best is None or h.score > best[1].score:
                    best = (spot, h)
        return payloads.special_alert(*best) if best else None

    def _fixed_time_alert(
        self,
        snap: SchedulingSnapshot,
        spot_windows: list[tuple[SpotProfile, Window]],
        local_now: datetime,
    ) -> tuple[date, NotificationPayload] | None:
        at_minutes = snap.notifications.fixed_time_minutes
        if at_minutes is None:
            return None
        day = crossed_at(local_now, time(at_minutes // 60, at_minutes % 60), self.tick)
        if day is None:
            return None
        todays = [(s, w) for s, w in spot_windows if w.start.astimezone(local_now.tzinfo).date() == day]
        ranked = rank_windows([w.with_spot(s.id) for s, w in todays])
        spots = {s.id: s for s, _ in todays}
        current = (spots[ranked[0].spot_id], ranked[0]) if ranked else None
        return day, payloads.fixed_time_alert(day, snap.next_day_forecast, current)

    def _regional_comparisons(
        self,
        snap: SchedulingSnapshot,
        forecasts: list[tuple[SpotProfile, ForecastResult]],
        now: datetime,
        local_now: datetime,
    ) -> list[tuple[date, NotificationPayload]]:
        if not isinstance(snap.target, RegionalTarget):
            return []
        region_name = next((s.region_name for s, _ in forecasts if s.region_name), snap.target.region_id)
        out = []
        for at in REGIONAL_COMPARISON_AT:
            day = crossed_at(local_now, at, self.tick)
            if day is None:
                continue
            scored = [(s, current_hour(r.hours, now)) for s, r in forecasts]
            scored = [(s, h) for s, h in scored if h is not None]
            # stable: equal scores keep target spot order
            ranked = sorted(scored, key=lambda sh: -sh[1].score)[:REGIONAL_TOP_SPOTS]
            out.append((day, payloads.regional_comparison(region_name, at.strftime("%H%M"), ranked)))
        return out

    def decide(
        self,
        snap: SchedulingSnapshot,
        forecasts: list[tuple[SpotProfile, ForecastResult]],
        now: datetime,
    ) -> list[tuple[date, NotificationPayload]]:
        """Everything the rules want to send now, with the local date each is deduped under."""
        local_now = now.astimezone(snap.notifications.tz)
        today = local_now.date()
        spot_windows = [(s, w) for s, r in forecasts for w in match_windows(snap.preferences, r.hours)]
        decided: list[tuple[date, NotificationPayload]] = []
        advance = self._advance_alert(snap, spot_windows, now)
        if advance:
            decided.append((today, advance))
        summary = self._daily_summary(snap, spot_windows, local_now)
        if summary:
            decided.append((today, summary))
        special = self._special_alert(snap, forecasts, now)
        if special:
            decided.append((today, special))
        fixed = self._fixed_time_alert(snap, spot_windows, local_now)
        if fixed:
            decided.append(fixed)
        decided.extend(self._regional_comparisons(snap, forecasts, now, local_now))
        return decided

    # --- Dispatch ---

    def _record(self, db: Session, snap: SchedulingSnapshot, local_date: date, payload: NotificationPayload) -> int | None:
        """Insert the record unless its dedupe key exists. Returns the new id, or None if suppressed."""
        key = payload.dedupe_key(snap.id, local_date)
        if db.query(NotificationRecord.id).filter(NotificationRecord.dedupe_key == key).first():
            return None
        row = NotificationRecord(
            dedupe_key=key,
            scheduling_id=snap.id,
            user_id=snap.user_id,
            type=payload.type.value,
            local_date=local_date,
            title=payload.title,
            body=payload.body,
            payload=payload.data,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # another worker recorded the same key first
            db.rollback()
            return None
        logger.info("Dispatched %s for scheduling %s (%s)", payload.type.value, snap.id, key)
        return row.id

    def _target_forecasts(
        self, snap: SchedulingSnapshot, memo: _TickForecasts
    ) -> list[tuple[SpotProfile, ForecastResult]]:
        """Available forecasts for the target spots. Raises ForecastUnavailable only when none are."""
        forecasts, missing = [], []
        for spot in resolve_target_spots(snap.target):
            try:
                forecasts.append((spot, memo.get(spot, snap.preferences.days_ahead)))
            except ForecastUnavailable as e:
                missing.append(str(e))
        if not forecasts:
            raise ForecastUnavailable("; ".join(missing))
        if missing:
            logger.warning("Scheduling %s: evaluating without %s", snap.id, "; ".join(missing))
        return forecasts

    def evaluate(
        self,
        snap: SchedulingSnapshot,
        now: datetime,
        memo: _TickForecasts,
        expired: threading.Event | None = None,
    ) -> SchedulingOutcome:
        """
        Evaluate one scheduling. Never raises; failures are reported on the outcome.
        Once `expired` is set (tick budget ran out) nothing is recorded: the run_tick caller
        has already moved on, so the next tick evaluates this scheduling instead.
        """
        outcome = SchedulingOutcome(scheduling_id=snap.id, state=EvaluationState.EVALUATING)
        try:
            forecasts = self._target_forecasts(snap, memo)
            decided = self.decide(snap, forecasts, now)
            if expired is not None and expired.is_set():
                logger.info("Scheduling %s finished after the tick budget; left for next tick", snap.id)
                outcome.state = EvaluationState.IDLE
                return outcome
            db = self._session_factory()
            try:
                for local_date, payload in decided:
                    rid = self._record(db, snap, local_date, payload)
                    if rid is not None:
                        outcome.dispatched.append(rid)
                today = now.astimezone(snap.notifications.tz).date()
                save_next_day_forecast(db, snap.id, compute_next_day(snap, forecasts, today, now=now), now=now)
            finally:
                db.close()
        except ForecastUnavailable as e:
            logger.warning("Skipping scheduling %s: %s", snap.id, e)
            outcome.error = str(e)
        except Exception as e:
            logger.exception("Scheduling %s evaluation failed: %s", snap.id, e)
            outcome.error = f"{type(e).__name__}: {e}"
        outcome.state = EvaluationState.DISPATCHED if outcome.dispatched else EvaluationState.SUPPRESSED
        return outcome

    def run_tick(self, now: datetime | None = None) -> TickReport:
        now = now or self._clock()
        report = TickReport(started_at=now)
        db = self._session_factory()
        try:
            snapshots = list_active_snapshots(db)
        finally:
            db.close()
        if not snapshots:
            return report
        memo = _TickForecasts(self._forecasts, self._io_timeout)
        expired = threading.Event()
        executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="notification_tick")
        try:
            futures = {executor.submit(self.evaluate, snap, now, memo, expired): snap.id for snap in snapshots}
            done, pending = wait(futures, timeout=self._budget)
            if pending:
                expired.set()
            for f in pending:
                f.cancel()
                report.abandoned.append(futures[f])
            # input order, not completion order
            report.outcomes.extend(f.result() for f in futures if f in done)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        if report.abandoned:
            logger.warning("Tick budget %.0fs exceeded; %s scheduling(s) left for next tick", self._budget, len(report.abandoned))
        logger.info(
            "Notification tick: %s evaluated, %s dispatched, %s failed",
            len(report.outcomes),
            len(report.dispatched_ids),
            len(report.failed),
        )
        return report

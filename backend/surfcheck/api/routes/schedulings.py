"""
Scheduling CRUD (user watches on a spot or region).

User identified by X-User-Id header or ?user_id= (default 'default').
Malformed preferences/settings are rejected by pydantic with one 422 error per field;
unknown spot/region/scheduling ids map to 404. Create and update queue a background
refresh of the next-day forecast.
"""
import logging
from typing import Any, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from surfcheck.api.dependencies import get_forecast_service, get_session_factory, get_user_id
from surfcheck.core.errors import SurfCheckError, domain_error_to_http
from surfcheck.db.session import get_db
from surfcheck.services.forecast.service import ForecastService
from surfcheck.services.scheduling import crud
from surfcheck.services.scheduling.next_day import refresh_next_day
from surfcheck.services.scheduling.types import NotificationSettings, SchedulingPreferences, SchedulingTarget

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateSchedulingBody(BaseModel):
    target: SchedulingTarget
    preferences: SchedulingPreferences = Field(default_factory=SchedulingPreferences)
    notifications: NotificationSettings | None = None


class UpdateSchedulingBody(BaseModel):
    target: SchedulingTarget | None = None
    preferences: SchedulingPreferences | None = None
    notifications: NotificationSettings | None = None
    active: bool | None = None


@router.post("/schedulings", status_code=201)
def create_scheduling(
    body: CreateSchedulingBody,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    forecasts: ForecastService = Depends(get_forecast_service),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> dict[str, Any]:
    try:
        row = crud.create_scheduling(db, user_id, body.target, body.preferences, body.notifications)
    except SurfCheckError as e:
        raise domain_error_to_http(e)
    background_tasks.add_task(refresh_next_day, session_factory, forecasts, row.id)
    return crud.serialize(row)


@router.get("/schedulings")
def list_schedulings(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    active_only: bool = Query(False),
) -> dict[str, Any]:
    rows = crud.list_schedulings(db, user_id, active_only=active_only)
    return {"schedulings": [crud.serialize(r) for r in rows], "count": len(rows)}


@router.get("/schedulings/{scheduling_id}")
def get_scheduling(
    scheduling_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    try:
        return crud.serialize(crud.get_scheduling(db, scheduling_id, user_id))
    except SurfCheckError as e:
        raise domain_error_to_http(e)


@router.patch("/schedulings/{scheduling_id}")
def update_scheduling(
    scheduling_id: str,
    body: UpdateSchedulingBody,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    forecasts: ForecastService = Depends(get_forecast_service),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> dict[str, Any]:
    try:
        row = crud.update_scheduling(
            db,
            scheduling_id,
            user_id,
            target=body.target,
            preferences=body.preferences,
            notifications=body.notifications,
            active=body.active,
        )
    except SurfCheckError as e:
        raise domain_error_to_http(e)
    if row.active:
        background_tasks.add_task(refresh_next_day, session_factory, forecasts, row.id)
    return crud.serialize(row)


@router.delete("/schedulings/{scheduling_id}")
def delete_scheduling(
    scheduling_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    try:
        crud.delete_scheduling(db, scheduling_id, user_id)
    except SurfCheckError as e:
        raise domain_error_to_http(e)
    return {"ok": True, "id": scheduling_id}

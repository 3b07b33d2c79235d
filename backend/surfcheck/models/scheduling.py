"""
User watch on a spot or a region.

target_kind: 'single' (spot_id set) or 'regional' (region_id set; spot_subset empty = all spots).
preferences / notification_settings: validated value objects dumped to JSON.
next_day_forecast: best qualifying window for tomorrow; replaced whole on every refresh.
"""
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from surfcheck.db.base import Base, JSONDocument


class Scheduling(Base):
    __tablename__ = "schedulings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), nullable=False, index=True)
    target_kind = Column(String(16), nullable=False, default="single")
    spot_id = Column(String(64), nullable=True, index=True)
    region_id = Column(String(64), nullable=True, index=True)
    spot_subset = Column(JSONDocument, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True, index=True)
    preferences = Column(JSONDocument, nullable=False)
    notification_settings = Column(JSONDocument, nullable=False)
    next_day_forecast = Column(JSONDocument, nullable=True)
    next_day_forecast_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

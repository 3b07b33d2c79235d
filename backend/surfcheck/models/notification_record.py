"""Dispatched notification. dedupe_key is unique: one row per (scheduling, type, local date[, slot]).

No foreign key to schedulings: history survives deleting the scheduling.
read_at: NULL = unread.
"""
from sqlalchemy import Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from surfcheck.db.base import Base, JSONDocument


class NotificationRecord(Base):
    __tablename__ = "notification_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dedupe_key = Column(String(192), nullable=False, unique=True, index=True)
    scheduling_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    local_date = Column(Date, nullable=False)
    title = Column(String(256), nullable=False)
    body = Column(Text, nullable=False, default="")
    payload = Column("data", JSONDocument, nullable=False, default=dict)
    sent_count = Column(Integer, nullable=True)  # NULL until delivery ran
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

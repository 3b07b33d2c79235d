"""Tide extremes per (spot, local day). Rows are replaced whole; expired rows count as absent."""
from sqlalchemy import Column, Date, DateTime, String

from surfcheck.config import settings
from surfcheck.db.base import Base, JSONDocument


class TideCache(Base):
    __tablename__ = settings.tide_cache_collection

    cache_key = Column(String(96), primary_key=True)  # {spot_id}_{YYYY-MM-DD}
    spot_id = Column(String(64), nullable=False, index=True)
    day = Column(Date, nullable=False)
    source = Column(String(32), nullable=False)
    events = Column(JSONDocument, nullable=False)  # [{time, type, height}, ...] ordered by time
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

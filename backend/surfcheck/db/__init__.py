from surfcheck.db.base import Base, JSONDocument
from surfcheck.db.session import get_db, engine, SessionLocal
from surfcheck.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "JSONDocument", "ALL_TABLE_NAMES"]

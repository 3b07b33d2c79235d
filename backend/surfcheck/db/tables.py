"""
Single source of truth for database tables that exist after migrations.

The tide cache table name is configurable (TIDE_CACHE_COLLECTION); migrations and models
both read it from settings.
"""
from surfcheck.config import settings

ALL_TABLE_NAMES = (
    settings.tide_cache_collection,
    "schedulings",
    "notification_records",
    "push_tokens",
)

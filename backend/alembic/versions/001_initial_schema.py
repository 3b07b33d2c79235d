"""Tide cache, schedulings, notification records and push tokens."""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from surfcheck.config import settings

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    tide_table = settings.tide_cache_collection
    op.create_table(
        tide_table,
        sa.Column("cache_key", sa.String(96), primary_key=True),
        sa.Column("spot_id", sa.String(64), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("events", JSONDocument, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(f"ix_{tide_table}_spot_id", tide_table, ["spot_id"])

    op.create_table(
        "schedulings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("target_kind", sa.String(16), nullable=False),
        sa.Column("spot_id", sa.String(64), nullable=True),
        sa.Column("region_id", sa.String(64), nullable=True),
        sa.Column("spot_subset", JSONDocument, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("preferences", JSONDocument, nullable=False),
        sa.Column("notification_settings", JSONDocument, nullable=False),
        sa.Column("next_day_forecast", JSONDocument, nullable=True),
        sa.Column("next_day_forecast_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_schedulings_user_id", "schedulings", ["user_id"])
    op.create_index("ix_schedulings_spot_id", "schedulings", ["spot_id"])
    op.create_index("ix_schedulings_region_id", "schedulings", ["region_id"])
    op.create_index("ix_schedulings_active", "schedulings", ["active"])

    # No FK to schedulings: history outlives the scheduling
    op.create_table(
        "notification_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("dedupe_key", sa.String(192), nullable=False),
        sa.Column("scheduling_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("local_date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("data", JSONDocument, nullable=False),
        sa.Column("sent_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notification_records_dedupe_key", "notification_records", ["dedupe_key"], unique=True)
    op.create_index("ix_notification_records_scheduling_id", "notification_records", ["scheduling_id"])
    op.create_index("ix_notification_records_user_id", "notification_records", ["user_id"])
    op.create_index("ix_notification_records_type", "notification_records", ["type"])

    op.create_table(
        "push_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("device_token", sa.String(256), nullable=False),
        sa.Column("platform", sa.String(16), nullable=False, server_default="ios"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_push_tokens_device_token", "push_tokens", ["device_token"], unique=True)
    op.create_index("ix_push_tokens_user_id", "push_tokens", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_push_tokens_user_id", table_name="push_tokens")
    op.drop_index("ix_push_tokens_device_token", table_name="push_tokens")
    op.drop_table("push_tokens")
    op.drop_index("ix_notification_records_type", table_name="notification_records")
    op.drop_index("ix_notification_records_user_id", table_name="notification_records")
    op.drop_index("ix_notification_records_scheduling_id", table_name="notification_records")
    op.drop_index("ix_notification_records_dedupe_key", table_name="notification_records")
    op.drop_table("notification_records")
    op.drop_index("ix_schedulings_active", table_name="schedulings")
    op.drop_index("ix_schedulings_region_id", table_name="schedulings")
    op.drop_index("ix_schedulings_spot_id", table_name="schedulings")
    op.drop_index("ix_schedulings_user_id", table_name="schedulings")
    op.drop_table("schedulings")
    tide_table = settings.tide_cache_collection
    op.drop_index(f"ix_{tide_table}_spot_id", table_name=tide_table)
    op.drop_table(tide_table)

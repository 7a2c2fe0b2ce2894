"""Create stream, lineup, event and clip tables

Revision ID: 001_stream_tables
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001_stream_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the streams table and its dependents."""

    op.create_table(
        "streams",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("shop", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("recurring_frequency", sa.String(length=50), nullable=True),
        sa.Column("multicast_facebook", sa.Boolean(), nullable=False),
        sa.Column("multicast_instagram", sa.Boolean(), nullable=False),
        sa.Column("multicast_tiktok", sa.Boolean(), nullable=False),
        sa.Column("use_obs", sa.Boolean(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("live_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mux_stream_id", sa.String(length=128), nullable=True),
        sa.Column("mux_playback_id", sa.String(length=128), nullable=True),
        sa.Column("mux_rtmp_url", sa.Text(), nullable=True),
        sa.Column("mux_latency_mode", sa.String(length=20), nullable=True),
        sa.Column("mux_asset_id", sa.String(length=128), nullable=True),
        sa.Column("mux_asset_playback_id", sa.String(length=128), nullable=True),
        sa.Column("mux_asset_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shopify_video_id", sa.String(length=255), nullable=True),
        sa.Column("shopify_video_url", sa.Text(), nullable=True),
        sa.Column("migrated_to_shopify_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("mux_stream_id"),
    )
    op.create_index(op.f("ix_streams_shop"), "streams", ["shop"], unique=False)
    op.create_index(op.f("ix_streams_status"), "streams", ["status"], unique=False)
    op.create_index(
        op.f("ix_streams_mux_asset_created_at"),
        "streams",
        ["mux_asset_created_at"],
        unique=False,
    )

    op.create_table(
        "stream_products",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("stream_id", sa.String(length=64), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("variant_id", sa.String(length=255), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("featured_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["stream_id"], ["streams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stream_id", "product_id"),
    )
    op.create_index(
        op.f("ix_stream_products_stream_id"),
        "stream_products",
        ["stream_id"],
        unique=False,
    )

    op.create_table(
        "stream_events",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("stream_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["stream_id"], ["streams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_stream_events_stream_id"), "stream_events", ["stream_id"], unique=False
    )
    op.create_index(
        op.f("ix_stream_events_type"), "stream_events", ["type"], unique=False
    )

    op.create_table(
        "stream_clips",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("stream_id", sa.String(length=64), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=True),
        sa.Column("mux_clip_id", sa.String(length=128), nullable=True),
        sa.Column("mux_clip_playback_id", sa.String(length=128), nullable=True),
        sa.Column("start_time", sa.Integer(), nullable=False),
        sa.Column("end_time", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("shopify_video_id", sa.String(length=255), nullable=True),
        sa.Column("shopify_video_url", sa.Text(), nullable=True),
        sa.Column("migrated_to_shopify_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["stream_id"], ["streams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_stream_clips_stream_id"), "stream_clips", ["stream_id"], unique=False
    )


def downgrade() -> None:
    """Drop all stream tables."""
    op.drop_index(op.f("ix_stream_clips_stream_id"), table_name="stream_clips")
    op.drop_table("stream_clips")
    op.drop_index(op.f("ix_stream_events_type"), table_name="stream_events")
    op.drop_index(op.f("ix_stream_events_stream_id"), table_name="stream_events")
    op.drop_table("stream_events")
    op.drop_index(op.f("ix_stream_products_stream_id"), table_name="stream_products")
    op.drop_table("stream_products")
    op.drop_index(op.f("ix_streams_mux_asset_created_at"), table_name="streams")
    op.drop_index(op.f("ix_streams_status"), table_name="streams")
    op.drop_index(op.f("ix_streams_shop"), table_name="streams")
    op.drop_table("streams")

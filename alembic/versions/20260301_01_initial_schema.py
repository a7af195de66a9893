"""Create users, news, records, locations and articles tables.

Revision ID: 20260301_01
Revises:
Create Date: 2026-03-01 00:00:00
"""

# pylint: disable=invalid-name,missing-module-docstring

from __future__ import annotations

import sqlalchemy as sa
from fastapi_users_db_sqlalchemy.generics import GUID

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260301_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _owner(column: str) -> sa.Column:
    return sa.Column(
        column,
        GUID(),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", GUID(), primary_key=True),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("hashed_password", sa.String(length=1024), nullable=False),
            sa.Column(
                "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
            ),
            sa.Column(
                "is_superuser",
                sa.Boolean(),
                nullable=False,
                server_default=sa.false(),
            ),
            sa.Column(
                "is_verified",
                sa.Boolean(),
                nullable=False,
                server_default=sa.false(),
            ),
            sa.Column("name", sa.String(length=100), nullable=False, server_default=""),
            sa.Column(
                "role", sa.String(length=20), nullable=False, server_default="EDITOR"
            ),
            sa.Column("verification_token", sa.String(length=64), nullable=True),
            sa.Column(
                "verification_expires", sa.DateTime(timezone=True), nullable=True
            ),
            sa.Column("reset_token", sa.String(length=64), nullable=True),
            sa.Column(
                "reset_token_expires", sa.DateTime(timezone=True), nullable=True
            ),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            ),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index(
            "ix_users_verification_token", "users", ["verification_token"]
        )
        op.create_index("ix_users_reset_token", "users", ["reset_token"])

    if not inspector.has_table("news"):
        op.create_table(
            "news",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("categories", sa.JSON(), nullable=False),
            sa.Column("priority", sa.String(length=20), nullable=True),
            sa.Column("is_member_only", sa.Boolean(), nullable=False),
            sa.Column("author", sa.String(length=50), nullable=False),
            sa.Column("attachments", sa.JSON(), nullable=False),
            sa.Column("download_stats", sa.JSON(), nullable=False),
            sa.Column(
                "status",
                sa.String(length=20),
                nullable=False,
                server_default="published",
            ),
            _owner("creator_id"),
            *_timestamps(),
        )
        op.create_index("ix_news_id", "news", ["id"])
        op.create_index("ix_news_date", "news", ["date"])
        op.create_index("ix_news_status", "news", ["status"])

    if not inspector.has_table("records"):
        op.create_table(
            "records",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("location", sa.String(length=100), nullable=False),
            sa.Column("datetime", sa.String(length=100), nullable=False),
            sa.Column("event_date", sa.Date(), nullable=False),
            sa.Column("weather", sa.String(length=200), nullable=False),
            sa.Column("participants", sa.String(length=500), nullable=False),
            sa.Column("reporter", sa.String(length=100), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("near_miss", sa.Text(), nullable=True),
            sa.Column("equipment", sa.String(length=500), nullable=True),
            sa.Column("remarks", sa.Text(), nullable=True),
            sa.Column("categories", sa.JSON(), nullable=False),
            sa.Column("images", sa.JSON(), nullable=False),
            sa.Column("is_draft", sa.Boolean(), nullable=False),
            _owner("creator_id"),
            *_timestamps(),
        )
        op.create_index("ix_records_id", "records", ["id"])
        op.create_index("ix_records_event_date", "records", ["event_date"])
        op.create_index("ix_records_is_draft", "records", ["is_draft"])

    if not inspector.has_table("locations"):
        text_columns = [
            "activity_details",
            "field_characteristics",
            "access",
            "facilities",
            "schedule",
            "requirements",
            "notes",
            "other",
            "meeting_additional_info",
        ]
        op.create_table(
            "locations",
            sa.Column("id", sa.String(length=50), primary_key=True),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("position", sa.JSON(), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("activities", sa.String(length=200), nullable=True),
            sa.Column("image", sa.String(length=255), nullable=True),
            sa.Column("address", sa.String(length=200), nullable=True),
            sa.Column("has_detail", sa.Boolean(), nullable=False),
            sa.Column("is_draft", sa.Boolean(), nullable=False),
            *[sa.Column(name, sa.Text(), nullable=True) for name in text_columns],
            sa.Column("participation_fee", sa.String(length=200), nullable=True),
            sa.Column("contact", sa.String(length=200), nullable=True),
            sa.Column("organizer", sa.String(length=100), nullable=True),
            sa.Column("started_date", sa.String(length=50), nullable=True),
            sa.Column("meeting_address", sa.String(length=200), nullable=True),
            sa.Column("meeting_time", sa.String(length=100), nullable=True),
            sa.Column("meeting_map_url", sa.String(length=500), nullable=True),
            sa.Column("images", sa.JSON(), nullable=False),
            sa.Column("attachments", sa.JSON(), nullable=False),
            sa.Column("upcoming_dates", sa.JSON(), nullable=False),
            sa.Column("download_stats", sa.JSON(), nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_locations_type", "locations", ["type"])
        op.create_index("ix_locations_is_draft", "locations", ["is_draft"])

    if not inspector.has_table("articles"):
        op.create_table(
            "articles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("slug", sa.String(length=200), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=True),
            sa.Column("featured_image", sa.String(length=255), nullable=True),
            sa.Column("images", sa.JSON(), nullable=False),
            sa.Column("attachments", sa.JSON(), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=False),
            sa.Column("category", sa.String(length=50), nullable=True),
            sa.Column(
                "status", sa.String(length=20), nullable=False, server_default="draft"
            ),
            sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("seo_description", sa.String(length=300), nullable=True),
            sa.Column("seo_keywords", sa.String(length=300), nullable=True),
            sa.Column("is_member_only", sa.Boolean(), nullable=False),
            sa.Column(
                "view_count", sa.Integer(), nullable=False, server_default="0"
            ),
            sa.Column("download_stats", sa.JSON(), nullable=False),
            _owner("author_id"),
            *_timestamps(),
        )
        op.create_index("ix_articles_id", "articles", ["id"])
        op.create_index("ix_articles_slug", "articles", ["slug"], unique=True)
        op.create_index("ix_articles_category", "articles", ["category"])
        op.create_index("ix_articles_status", "articles", ["status"])
        op.create_index("ix_articles_published_at", "articles", ["published_at"])
        op.create_index("ix_articles_created_at", "articles", ["created_at"])


def downgrade():
    op.drop_table("articles")
    op.drop_table("locations")
    op.drop_table("records")
    op.drop_table("news")
    op.drop_index("ix_users_reset_token", table_name="users")
    op.drop_index("ix_users_verification_token", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

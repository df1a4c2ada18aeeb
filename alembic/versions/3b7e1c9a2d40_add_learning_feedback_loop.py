"""add learning feedback loop tables

Revision ID: 3b7e1c9a2d40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9a2d40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "blog_posts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("locale", sa.String(length=10), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("target_keyword", sa.String(length=255), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("locale", "slug", name="blog_posts_locale_slug_unique"),
    )
    for column in ("slug", "locale", "category", "status"):
        op.create_index(op.f(f"ix_blog_posts_{column}"), "blog_posts", [column], unique=False)

    op.create_table(
        "content_performance",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("blog_post_id", sa.String(length=36), nullable=False),
        sa.Column("gsc_impressions", sa.Integer(), nullable=False),
        sa.Column("gsc_clicks", sa.Integer(), nullable=False),
        sa.Column("gsc_ctr", sa.Float(), nullable=False),
        sa.Column("gsc_position", sa.Float(), nullable=False),
        sa.Column("date_range_start", sa.Date(), nullable=False),
        sa.Column("date_range_end", sa.Date(), nullable=False),
        sa.Column("is_high_performer", sa.Boolean(), nullable=False),
        sa.Column("performance_tier", sa.String(length=10), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["blog_post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "blog_post_id",
            "date_range_start",
            "date_range_end",
            name="content_performance_blog_date_unique",
        ),
        sa.CheckConstraint(
            "performance_tier IN ('top', 'mid', 'low')",
            name="content_performance_tier_check",
        ),
    )
    for column in ("blog_post_id", "date_range_end", "is_high_performer"):
        op.create_index(
            op.f(f"ix_content_performance_{column}"),
            "content_performance",
            [column],
            unique=False,
        )

    op.create_table(
        "performance_alerts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("blog_post_id", sa.String(length=36), nullable=False),
        sa.Column("alert_type", sa.String(length=30), nullable=False),
        sa.Column("previous_value", sa.String(length=50), nullable=True),
        sa.Column("current_value", sa.String(length=50), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["blog_post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_performance_alerts_blog_post_id"), "performance_alerts", ["blog_post_id"])
    op.create_index(op.f("ix_performance_alerts_alert_type"), "performance_alerts", ["alert_type"])

    op.create_table(
        "llm_learning_data",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("source_type", sa.String(length=30), nullable=False),
        sa.Column("blog_post_id", sa.String(length=36), nullable=True),
        sa.Column("feedback_type", sa.String(length=20), nullable=True),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("content_excerpt", sa.Text(), nullable=True),
        sa.Column("title_pattern", sa.String(length=255), nullable=True),
        sa.Column("writing_style_notes", sa.Text(), nullable=True),
        sa.Column("seo_patterns", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("performance_score", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["blog_post_id"], ["blog_posts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("source_type", "blog_post_id", "locale", "category", "performance_score"):
        op.create_index(op.f(f"ix_llm_learning_data_{column}"), "llm_learning_data", [column])

    op.create_table(
        "admin_feedback_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("blog_post_id", sa.String(length=36), nullable=False),
        sa.Column("feedback_type", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("learning_data_id", sa.String(length=36), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["blog_post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("admin_id", "blog_post_id", "feedback_type"):
        op.create_index(op.f(f"ix_admin_feedback_logs_{column}"), "admin_feedback_logs", [column])

    op.create_table(
        "cron_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("job_name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("result_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_cron_logs_job_name"), "cron_logs", ["job_name"])
    op.create_index(op.f("ix_cron_logs_status"), "cron_logs", ["status"])


def downgrade() -> None:
    op.drop_table("cron_logs")
    op.drop_table("admin_feedback_logs")
    op.drop_table("llm_learning_data")
    op.drop_table("performance_alerts")
    op.drop_table("content_performance")
    op.drop_table("blog_posts")

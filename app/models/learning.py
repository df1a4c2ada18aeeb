"""Learning data, admin feedback audit entries and scheduled-job logs."""

from __future__ import annotations

from typing import Any

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, UUIDMixin


class LearningData(Base, UUIDMixin, CreatedAtMixin):
    """Reusable knowledge extracted from a high performer or admin feedback."""

    __tablename__ = "llm_learning_data"

    source_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    blog_post_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("blog_posts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    feedback_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    locale: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    content_excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    title_pattern: Mapped[str | None] = mapped_column(String(255), nullable=True)
    writing_style_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    seo_patterns: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    performance_score: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<LearningData {self.source_type} post={self.blog_post_id}>"


class AdminFeedbackLog(Base, UUIDMixin, CreatedAtMixin):
    """Audit record of who gave feedback on which article."""

    __tablename__ = "admin_feedback_logs"

    admin_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    blog_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    feedback_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    learning_data_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class CronLog(Base, UUIDMixin, CreatedAtMixin):
    """Summary of a scheduled job run."""

    __tablename__ = "cron_logs"

    job_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    result_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

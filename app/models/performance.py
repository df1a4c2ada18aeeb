"""Search performance records and tier-change alerts."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.blog_post import BlogPost


class ContentPerformance(Base, UUIDMixin, TimestampMixin):
    """One measurement of an article's search performance over a date range."""

    __tablename__ = "content_performance"
    __table_args__ = (
        UniqueConstraint(
            "blog_post_id",
            "date_range_start",
            "date_range_end",
            name="content_performance_blog_date_unique",
        ),
        CheckConstraint(
            "performance_tier IN ('top', 'mid', 'low')",
            name="content_performance_tier_check",
        ),
    )

    blog_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    gsc_impressions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gsc_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gsc_ctr: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    gsc_position: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    date_range_start: Mapped[date] = mapped_column(Date, nullable=False)
    date_range_end: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    is_high_performer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    performance_tier: Mapped[str] = mapped_column(String(10), nullable=False, default="low")

    blog_post: Mapped[BlogPost] = relationship("BlogPost", back_populates="performance_records")

    def __repr__(self) -> str:
        return (
            f"<ContentPerformance post={self.blog_post_id} "
            f"{self.date_range_start}..{self.date_range_end} tier={self.performance_tier}>"
        )


class PerformanceAlert(Base, UUIDMixin, CreatedAtMixin):
    """Tier movement between two consecutive measurement windows."""

    __tablename__ = "performance_alerts"

    blog_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    alert_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    previous_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

"""Published blog articles (content items)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.performance import ContentPerformance


class BlogPost(Base, UUIDMixin, TimestampMixin):
    """A localized article. Authored elsewhere; read-only for the learning loop."""

    __tablename__ = "blog_posts"
    __table_args__ = (UniqueConstraint("locale", "slug", name="blog_posts_locale_slug_unique"),)

    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    locale: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    target_keyword: Mapped[str | None] = mapped_column(String(255), nullable=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    performance_records: Mapped[list[ContentPerformance]] = relationship(
        "ContentPerformance",
        back_populates="blog_post",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<BlogPost {self.locale}/{self.slug}>"

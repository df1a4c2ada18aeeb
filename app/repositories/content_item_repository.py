"""Repository for published blog posts."""

from __future__ import annotations

import logging

from sqlalchemy import select

from app.core.database import SessionFactory
from app.core.db_retry import run_with_transient_db_retry
from app.models.blog_post import BlogPost
from app.repositories.records import ContentItem

logger = logging.getLogger(__name__)

PUBLISHED_STATUS = "published"


def _to_item(post: BlogPost) -> ContentItem:
    return ContentItem(
        id=str(post.id),
        slug=post.slug,
        locale=post.locale,
        category=post.category,
        title=post.title,
        target_keyword=post.target_keyword,
        excerpt=post.excerpt,
        content=post.content,
        published_at=post.published_at,
    )


class SqlContentItemRepository:
    """Reads BlogPost rows via short-lived sessions."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def list_published(self) -> list[ContentItem]:
        async def _load() -> list[ContentItem]:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(BlogPost.id, BlogPost.slug, BlogPost.locale, BlogPost.category).where(
                        BlogPost.status == PUBLISHED_STATUS
                    )
                )
                return [
                    ContentItem(id=str(row.id), slug=row.slug, locale=row.locale, category=row.category)
                    for row in result
                ]

        return await run_with_transient_db_retry(_load, operation_name="content_items_list_published")

    async def get(self, content_item_id: str) -> ContentItem | None:
        async def _load() -> ContentItem | None:
            async with self._session_factory() as session:
                post = await session.get(BlogPost, content_item_id)
                return _to_item(post) if post is not None else None

        return await run_with_transient_db_retry(
            _load,
            operation_name="content_item_get",
            log_context={"content_item_id": content_item_id},
        )

    async def get_many(self, content_item_ids: list[str]) -> dict[str, ContentItem]:
        if not content_item_ids:
            return {}

        async def _load() -> dict[str, ContentItem]:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(BlogPost).where(BlogPost.id.in_(content_item_ids))
                )
                return {str(post.id): _to_item(post) for post in result.scalars()}

        return await run_with_transient_db_retry(_load, operation_name="content_items_get_many")

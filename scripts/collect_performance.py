"""Run Search Console collection and the learning pass from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from app.config import settings
from app.core.database import close_db, create_engine, create_session_factory
from app.core.logging import setup_logging
from app.core.redis import close_redis, create_redis_client
from app.dependencies import (
    get_cron_log_repository,
    get_learning_extractor,
    get_performance_collector,
)
from app.repositories.content_item_repository import SqlContentItemRepository
from app.services.scheduled_jobs import run_daily_collection

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days-ago",
        type=int,
        default=settings.performance_days_ago,
        help="Length of the reporting window in days (default: %(default)s)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--item",
        action="append",
        dest="items",
        metavar="CONTENT_ITEM_ID",
        help="Collect only these items (repeatable)",
    )
    mode.add_argument(
        "--all-published",
        action="store_true",
        help="Collect every published item one page at a time, in chunks",
    )
    mode.add_argument(
        "--learn-only",
        action="store_true",
        help="Skip collection and only learn from stored high performers",
    )
    return parser.parse_args()


def _print_progress(processed: int, total: int) -> None:
    print(f"  {processed}/{total} items")


async def _run(args: argparse.Namespace) -> int:
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    redis = create_redis_client(settings.redis_url) if settings.redis_url else None
    try:
        collector = get_performance_collector(settings, session_factory)
        extractor = get_learning_extractor(settings, session_factory, redis)

        if args.learn_only:
            learning = await extractor.learn_from_high_performers()
            print(json.dumps(learning.as_dict(), indent=2))
            return 0 if not learning.errors else 1

        if args.items or args.all_published:
            if args.items:
                item_ids = list(args.items)
            else:
                published = await SqlContentItemRepository(session_factory).list_published()
                item_ids = [item.id for item in published]
            batch = await collector.collect_for_items(item_ids, args.days_ago, on_progress=_print_progress)
            print(
                json.dumps(
                    {
                        "total": batch.total,
                        "collected": batch.collected,
                        "skipped": batch.skipped,
                        "errors": batch.errors,
                    },
                    indent=2,
                )
            )
            return 0 if not batch.errors else 1

        result = await run_daily_collection(
            collector=collector,
            extractor=extractor,
            cron_logs=get_cron_log_repository(session_factory),
            days_ago=args.days_ago,
        )
        print(json.dumps(result.as_dict(), indent=2))
        return 0 if result.success else 1
    finally:
        await close_redis(redis)
        await close_db(engine)


def main() -> int:
    args = parse_args()
    setup_logging(settings.log_level)
    if args.days_ago < 1:
        logger.error("--days-ago must be at least 1")
        return 2
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())

"""Helpers for secondary side effects whose failure must not fail the caller."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


async def run_best_effort(
    operation: Awaitable[_ResultT],
    *,
    operation_name: str,
    log_context: Mapping[str, Any] | None = None,
) -> _ResultT | None:
    """Await a non-critical operation, logging and swallowing any failure.

    Used for audit-log inserts, cron logs, alerts and cache writes.
    """
    try:
        return await operation
    except Exception as exc:
        logger.warning(
            "Best-effort operation failed; continuing",
            extra={
                **dict(log_context or {}),
                "operation": operation_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return None

"""Retry helpers for transient database connection failures.

SQLAlchemy wraps asyncpg errors, so detection walks the wrapped cause chain
and recognises asyncpg's connection-loss and server-availability errors
(SQLSTATE classes 08, 53300, 57P01, 57P03) as well as the wrapper types.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any, TypeVar

from asyncpg import exceptions as pg_errors
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")

_TRANSIENT_DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    pg_errors.PostgresConnectionError,
    pg_errors.CannotConnectNowError,
    pg_errors.AdminShutdownError,
    pg_errors.TooManyConnectionsError,
    ConnectionResetError,
    ConnectionRefusedError,
)

_CONNECTION_ERROR_MARKERS = (
    "connection is closed",
    "connection was closed in the middle of operation",
    "server closed the connection unexpectedly",
    "connection reset by peer",
)

_MAX_CAUSE_DEPTH = 5


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """The exception, then its DBAPI `orig` / `__cause__` ancestors."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen and len(seen) < _MAX_CAUSE_DEPTH:
        seen.add(id(current))
        yield current
        orig = getattr(current, "orig", None)
        current = orig if isinstance(orig, BaseException) else current.__cause__


def is_transient_connection_error(exc: Exception) -> bool:
    """Return True when an exception likely came from a dropped or refused DB connection."""
    for error in _cause_chain(exc):
        if isinstance(error, _TRANSIENT_DRIVER_ERRORS):
            return True
        if isinstance(error, DBAPIError) and error.connection_invalidated:
            return True
        if isinstance(error, (InterfaceError, OperationalError)):
            return True
        lowered = str(error).lower()
        if any(marker in lowered for marker in _CONNECTION_ERROR_MARKERS):
            return True
    return False


async def run_with_transient_db_retry(
    operation: Callable[[], Awaitable[_ResultT]],
    *,
    operation_name: str,
    attempts: int = 3,
    base_delay_seconds: float = 0.2,
    log_context: Mapping[str, Any] | None = None,
) -> _ResultT:
    """Run a repository operation, retrying only connection-level failures.

    Each attempt must open its own session; constraint and programming
    errors propagate on the first attempt.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    context = {**(log_context or {}), "operation": operation_name, "max_attempts": attempts}
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if not is_transient_connection_error(exc):
                raise
            if attempt == attempts:
                logger.error(
                    "Database connection retries exhausted",
                    extra={**context, "attempt": attempt, "error": str(exc)},
                )
                raise
            logger.warning(
                "Transient database connection error; retrying",
                extra={**context, "attempt": attempt, "error": type(exc).__name__},
            )
            await asyncio.sleep(base_delay_seconds * attempt)

    raise RuntimeError(f"Retry loop exhausted unexpectedly for operation: {operation_name}")

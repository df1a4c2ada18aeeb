"""Unit tests for best-effort side effects, DB retry, the learning cache and tokens."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from asyncpg import exceptions as pg_errors
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from app.core.best_effort import run_best_effort
from app.core.db_retry import is_transient_connection_error, run_with_transient_db_retry
from app.core.exceptions import InvalidTokenError
from app.core.logging import JSONExtrasFormatter, setup_logging
from app.core.redis import (
    HIGH_PERFORMERS_KEY,
    LAST_RUN_KEY,
    PROCESSED_ITEMS_KEY,
    HighPerformerCache,
)
from app.core.security import create_access_token, decode_token


@pytest.mark.asyncio
async def test_best_effort_returns_result_on_success() -> None:
    async def _ok() -> int:
        return 7

    assert await run_best_effort(_ok(), operation_name="ok") == 7


@pytest.mark.asyncio
async def test_best_effort_swallows_and_logs_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = MagicMock()
    monkeypatch.setattr("app.core.best_effort.logger", logger)

    async def _boom() -> None:
        raise RuntimeError("audit insert failed")

    result = await run_best_effort(_boom(), operation_name="audit", log_context={"content_item_id": "x"})

    assert result is None
    logger.warning.assert_called_once()
    extra = logger.warning.call_args.kwargs["extra"]
    assert extra["operation"] == "audit"
    assert extra["content_item_id"] == "x"
    assert extra["error_type"] == "RuntimeError"


def test_transient_error_detection() -> None:
    assert is_transient_connection_error(OperationalError("select", {}, Exception("gone")))
    assert is_transient_connection_error(RuntimeError("connection is closed"))
    assert not is_transient_connection_error(IntegrityError("insert", {}, Exception("duplicate key")))
    assert not is_transient_connection_error(ValueError("bad input"))


@pytest.mark.asyncio
async def test_db_retry_retries_transient_errors_then_succeeds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.core.db_retry.asyncio.sleep", AsyncMock())
    operation = AsyncMock(side_effect=[RuntimeError("connection reset by peer"), "ok"])

    assert await run_with_transient_db_retry(operation, operation_name="load") == "ok"
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_db_retry_raises_non_transient_errors_immediately(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.core.db_retry.asyncio.sleep", AsyncMock())
    operation = AsyncMock(side_effect=ValueError("bad input"))

    with pytest.raises(ValueError):
        await run_with_transient_db_retry(operation, operation_name="load")
    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_db_retry_gives_up_after_attempts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.core.db_retry.asyncio.sleep", AsyncMock())
    operation = AsyncMock(side_effect=RuntimeError("connection is closed"))

    with pytest.raises(RuntimeError):
        await run_with_transient_db_retry(operation, operation_name="load", attempts=2)
    assert operation.await_count == 2


def test_transient_detection_unwraps_driver_errors() -> None:
    dropped = DBAPIError("select", {}, pg_errors.ConnectionDoesNotExistError("connection was closed"))
    refused = DBAPIError("select", {}, pg_errors.CannotConnectNowError("the database system is starting up"))
    duplicate = DBAPIError("insert", {}, pg_errors.UniqueViolationError("duplicate key value"))

    assert is_transient_connection_error(dropped)
    assert is_transient_connection_error(refused)
    assert not is_transient_connection_error(duplicate)


def test_transient_detection_follows_explicit_causes() -> None:
    try:
        try:
            raise ConnectionResetError("peer went away")
        except ConnectionResetError as e:
            raise RuntimeError("upsert failed") from e
    except RuntimeError as wrapped:
        assert is_transient_connection_error(wrapped)


@pytest.mark.asyncio
async def test_db_retry_logs_when_retries_are_exhausted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.core.db_retry.asyncio.sleep", AsyncMock())
    fake_logger = MagicMock()
    monkeypatch.setattr("app.core.db_retry.logger", fake_logger)
    operation = AsyncMock(side_effect=pg_errors.TooManyConnectionsError("too many clients"))

    with pytest.raises(pg_errors.TooManyConnectionsError):
        await run_with_transient_db_retry(operation, operation_name="load", attempts=3)

    assert fake_logger.warning.call_count == 2
    fake_logger.error.assert_called_once()
    assert fake_logger.error.call_args.kwargs["extra"]["operation"] == "load"


@pytest.mark.asyncio
async def test_high_performer_cache_reads_and_writes_keys() -> None:
    client = AsyncMock()
    client.get.side_effect = lambda key: {
        HIGH_PERFORMERS_KEY: json.dumps(["a", "b"]),
        LAST_RUN_KEY: "2026-10-18T00:00:00+00:00",
    }.get(key)
    client.smembers.return_value = {"a"}
    cache = HighPerformerCache(client, ttl_seconds=60)

    await cache.set_high_performers(["a", "b"])
    await cache.mark_processed("a")
    await cache.record_run(datetime(2026, 10, 18, tzinfo=timezone.utc))

    client.set.assert_any_await(HIGH_PERFORMERS_KEY, json.dumps(["a", "b"]), ex=60)
    client.sadd.assert_awaited_once_with(PROCESSED_ITEMS_KEY, "a")
    client.set.assert_any_await(LAST_RUN_KEY, "2026-10-18T00:00:00+00:00")
    assert await cache.get_high_performers() == ["a", "b"]
    assert await cache.processed_ids() == {"a"}
    assert await cache.last_run() == "2026-10-18T00:00:00+00:00"


@pytest.mark.asyncio
async def test_high_performer_cache_handles_missing_values() -> None:
    client = AsyncMock()
    client.get.return_value = None
    cache = HighPerformerCache(client)

    assert await cache.get_high_performers() == []
    assert await cache.last_run() is None


def test_access_token_round_trip_keeps_role() -> None:
    token = create_access_token("admin-1", role="admin")

    payload = decode_token(token)

    assert payload["sub"] == "admin-1"
    assert payload["role"] == "admin"


def test_expired_or_garbage_tokens_are_rejected() -> None:
    expired = create_access_token("admin-1", role="admin", expires_delta=timedelta(seconds=-5))

    with pytest.raises(InvalidTokenError):
        decode_token(expired)
    with pytest.raises(InvalidTokenError):
        decode_token("not-a-token")


def test_log_formatter_appends_extras_as_json() -> None:
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "Collected", None, None)
    record.new_records = 3

    line = JSONExtrasFormatter().format(record)

    assert line.endswith('| INFO     | app.test | Collected {"new_records": 3}')


def test_setup_logging_is_idempotent() -> None:
    first = setup_logging("DEBUG")
    handlers = list(first.handlers)

    second = setup_logging("WARNING")

    assert second is first
    assert second.handlers == handlers
    assert second.level == logging.WARNING

"""Google Search Console integration for page-level search performance.

Uses the Search Analytics query endpoint with an OAuth2 refresh token.
Only finalized data is requested, so ranges must end at least a couple of
days before today.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any
from urllib.parse import quote

import httpx

from app.config import Settings
from app.core.exceptions import ExternalAPIError, RateLimitExceededError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
WEBMASTERS_BASE_URL = "https://www.googleapis.com/webmasters/v3"

ALLOWED_DIMENSIONS = frozenset({"query", "page", "country", "device", "date"})
DEFAULT_REPORTING_LAG_DAYS = 2
SINGLE_PAGE_ROW_LIMIT = 100


@dataclass(slots=True)
class SearchPerformanceRow:
    """One row of Search Analytics output."""

    page: str | None
    query: str | None
    clicks: int
    impressions: int
    ctr: float
    position: float


@dataclass(slots=True)
class QueryPerformance:
    query: str
    clicks: int
    impressions: int
    ctr: float
    position: float


@dataclass(slots=True)
class PagePerformance:
    """Aggregated performance for a single page across its queries."""

    page: str
    clicks: int
    impressions: int
    ctr: float
    position: float
    queries: list[QueryPerformance] = field(default_factory=list)


def reporting_date_range(
    days_ago: int,
    today: date | None = None,
    lag_days: int = DEFAULT_REPORTING_LAG_DAYS,
) -> tuple[date, date]:
    """Return (start, end) covering `days_ago` days and ending `lag_days` before today."""
    if days_ago < 1:
        raise ValueError("days_ago must be at least 1")
    end = (today or date.today()) - timedelta(days=lag_days)
    start = end - timedelta(days=days_ago)
    return start, end


def weighted_position(rows: list[tuple[int, float]]) -> float:
    """Impression-weighted mean position of (impressions, position) pairs.

    Falls back to the plain mean when nothing has impressions.
    """
    if not rows:
        return 0.0
    total_impressions = sum(impressions for impressions, _ in rows)
    if total_impressions <= 0:
        return sum(position for _, position in rows) / len(rows)
    return sum(impressions * position for impressions, position in rows) / total_impressions


def _json_body(response: httpx.Response, context: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as e:
        logger.warning("Search Console returned a non-JSON body", extra={"context": context, "error": str(e)})
        raise ExternalAPIError("Search Console", f"invalid JSON from {context}") from e
    if not isinstance(payload, dict):
        raise ExternalAPIError("Search Console", f"unexpected payload from {context}")
    return payload


def _row_from_payload(payload: dict[str, Any], dimensions: list[str]) -> SearchPerformanceRow:
    keys = payload.get("keys") or []
    by_dimension = dict(zip(dimensions, keys))
    return SearchPerformanceRow(
        page=by_dimension.get("page"),
        query=by_dimension.get("query"),
        clicks=int(payload.get("clicks", 0) or 0),
        impressions=int(payload.get("impressions", 0) or 0),
        ctr=float(payload.get("ctr", 0.0) or 0.0),
        position=float(payload.get("position", 0.0) or 0.0),
    )


class SearchConsoleClient:
    """Client for the Search Console Search Analytics API.

    Provides methods for:
    - Page x query performance rows
    - Per-page aggregates across all queries
    - A single page's summary with its query breakdown
    - Listing verified sites
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        site_url: str,
        timeout: float = 60.0,
        reporting_lag_days: int = DEFAULT_REPORTING_LAG_DAYS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.site_url = site_url
        self.timeout = timeout
        self.reporting_lag_days = reporting_lag_days
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._access_token: str | None = None
        self._token_lock = asyncio.Lock()

    async def __aenter__(self) -> "SearchConsoleClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
        self._client = None
        self._access_token = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def _ensure_access_token(self) -> str:
        if self._access_token:
            return self._access_token

        # Concurrent callers share one refresh-token grant.
        async with self._token_lock:
            if self._access_token:
                return self._access_token

            try:
                response = await self.client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning("Search Console token refresh failed", extra={"error": str(e)})
                raise ExternalAPIError("Search Console", f"token refresh failed: {e}") from e

            token = _json_body(response, "token refresh").get("access_token")
            if not token:
                raise ExternalAPIError("Search Console", "token refresh returned no access_token")
            self._access_token = str(token)
            return self._access_token

    async def _request(
        self,
        method: str,
        url: str,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = await self._ensure_access_token()
        try:
            response = await self.client.request(
                method,
                url,
                json=json_body,
                headers={"Authorization": f"Bearer {token}"},
            )

            if response.status_code == 429:
                logger.warning("Search Console rate limit hit", extra={"url": url})
                raise RateLimitExceededError("Search Console")

            response.raise_for_status()
            return _json_body(response, url)

        except httpx.HTTPError as e:
            logger.warning("Search Console HTTP error", extra={"url": url, "error": str(e)})
            raise ExternalAPIError("Search Console", str(e)) from e

    def _validate_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValueError("start_date must be on or before end_date")
        latest_final = date.today() - timedelta(days=self.reporting_lag_days)
        if end_date > latest_final:
            raise ValueError(
                f"end_date must be at least {self.reporting_lag_days} days before today "
                f"(latest allowed {latest_final.isoformat()})"
            )

    async def query(
        self,
        start_date: date,
        end_date: date,
        *,
        dimensions: list[str],
        row_limit: int = 1000,
        dimension_filter_groups: list[dict[str, Any]] | None = None,
    ) -> list[SearchPerformanceRow]:
        """Run a Search Analytics query and return typed rows."""
        self._validate_range(start_date, end_date)
        unknown = [dimension for dimension in dimensions if dimension not in ALLOWED_DIMENSIONS]
        if unknown:
            raise ValueError(f"Unsupported dimensions: {', '.join(unknown)}")

        body: dict[str, Any] = {
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "dimensions": dimensions,
            "rowLimit": row_limit,
            "dataState": "final",
        }
        if dimension_filter_groups:
            body["dimensionFilterGroups"] = dimension_filter_groups

        site = quote(self.site_url, safe="")
        url = f"{WEBMASTERS_BASE_URL}/sites/{site}/searchAnalytics/query"
        logger.info(
            "Search Console query",
            extra={
                "start_date": body["startDate"],
                "end_date": body["endDate"],
                "dimensions": dimensions,
                "row_limit": row_limit,
            },
        )
        result = await self._request("POST", url, body)
        return [_row_from_payload(row, dimensions) for row in result.get("rows", [])]

    async def fetch_page_performance(
        self,
        start_date: date,
        end_date: date,
        *,
        dimensions: list[str] | None = None,
        row_limit: int = 1000,
    ) -> list[SearchPerformanceRow]:
        """Page x query rows (or the given dimensions) for the range."""
        return await self.query(
            start_date,
            end_date,
            dimensions=dimensions or ["page", "query"],
            row_limit=row_limit,
        )

    async def fetch_all_pages_performance(
        self,
        start_date: date,
        end_date: date,
        *,
        row_limit: int = 1000,
    ) -> list[SearchPerformanceRow]:
        """One row per page, aggregated across queries by the API."""
        return await self.query(start_date, end_date, dimensions=["page"], row_limit=row_limit)

    async def fetch_performance_for_single_page(
        self,
        page_url: str,
        start_date: date,
        end_date: date,
    ) -> PagePerformance | None:
        """Summarize one page across its queries; None when the page has no data."""
        rows = await self.query(
            start_date,
            end_date,
            dimensions=["query"],
            row_limit=SINGLE_PAGE_ROW_LIMIT,
            dimension_filter_groups=[
                {
                    "filters": [
                        {"dimension": "page", "operator": "equals", "expression": page_url},
                    ]
                }
            ],
        )
        if not rows:
            return None

        clicks = sum(row.clicks for row in rows)
        impressions = sum(row.impressions for row in rows)
        return PagePerformance(
            page=page_url,
            clicks=clicks,
            impressions=impressions,
            ctr=clicks / impressions if impressions > 0 else 0.0,
            position=weighted_position([(row.impressions, row.position) for row in rows]),
            queries=[
                QueryPerformance(
                    query=row.query or "",
                    clicks=row.clicks,
                    impressions=row.impressions,
                    ctr=row.ctr,
                    position=row.position,
                )
                for row in rows
            ],
        )

    async def list_sites(self) -> list[str]:
        """Site URLs the credentials can read."""
        result = await self._request("GET", f"{WEBMASTERS_BASE_URL}/sites")
        return [entry["siteUrl"] for entry in result.get("siteEntry", []) if entry.get("siteUrl")]


def create_search_console_client(settings: Settings) -> SearchConsoleClient | None:
    """Build a client from settings, or None when credentials are missing."""
    if not settings.search_console_configured:
        logger.info("Search Console not configured; skipping")
        return None
    return SearchConsoleClient(
        client_id=settings.gsc_client_id or "",
        client_secret=settings.gsc_client_secret or "",
        refresh_token=settings.gsc_refresh_token or "",
        site_url=settings.gsc_site_url or "",
        timeout=settings.gsc_timeout_seconds,
        reporting_lag_days=settings.performance_reporting_lag_days,
    )

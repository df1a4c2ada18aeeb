"""FastAPI dependencies: admin auth, cron auth and service construction."""

import logging
import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from app.config import Settings, get_settings
from app.core.database import SessionFactory
from app.core.exceptions import InvalidTokenError
from app.core.redis import HighPerformerCache
from app.core.security import decode_token
from app.integrations.search_console import create_search_console_client
from app.repositories.content_item_repository import SqlContentItemRepository
from app.repositories.learning_repository import (
    SqlCronLogRepository,
    SqlFeedbackLogRepository,
    SqlLearningDataRepository,
)
from app.repositories.performance_repository import (
    SqlPerformanceAlertRepository,
    SqlPerformanceRecordRepository,
)
from app.services.feedback_processor import ManualFeedbackProcessor
from app.services.learning_extractor import LearningDataExtractor
from app.services.performance_collector import PerformanceCollector
from app.services.prompt_builder import PromptAssembler

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

UNAUTHORIZED_DETAIL = "Unauthorized"
FORBIDDEN_DETAIL = "Forbidden"


@dataclass(slots=True)
class AdminPrincipal:
    user_id: str
    role: str


AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_admin_user(
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
) -> AdminPrincipal:
    """Require a valid access token whose role claim is the admin role."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL)

    try:
        payload = decode_token(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL) from e

    user_id = str(payload["sub"])
    role = str(payload.get("role") or "")
    if role != settings.admin_role:
        logger.warning("Non-admin access attempt", extra={"user_id": user_id, "role": role})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)

    return AdminPrincipal(user_id=user_id, role=role)


AdminUser = Annotated[AdminPrincipal, Depends(get_admin_user)]


async def require_cron_secret(
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>`."""
    if not settings.cron_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron secret is not configured",
        )
    candidate = credentials.credentials if credentials else ""
    if not secrets.compare_digest(candidate.encode(), settings.cron_secret.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_DETAIL)


def get_session_factory(request: Request) -> SessionFactory:
    return request.app.state.session_factory


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)


Sessions = Annotated[SessionFactory, Depends(get_session_factory)]
RedisClient = Annotated[Redis | None, Depends(get_redis)]


def get_performance_collector(settings: AppSettings, session_factory: Sessions) -> PerformanceCollector:
    return PerformanceCollector(
        metrics_source=create_search_console_client(settings),
        content_items=SqlContentItemRepository(session_factory),
        performance_records=SqlPerformanceRecordRepository(session_factory),
        alerts=SqlPerformanceAlertRepository(session_factory),
        site_base_url=settings.normalized_site_base_url,
        row_limit=settings.performance_row_limit,
        batch_size=settings.performance_batch_size,
        batch_delay_seconds=settings.performance_batch_delay_seconds,
        reporting_lag_days=settings.performance_reporting_lag_days,
    )


def get_learning_extractor(
    settings: AppSettings,
    session_factory: Sessions,
    redis: RedisClient,
) -> LearningDataExtractor:
    return LearningDataExtractor(
        content_items=SqlContentItemRepository(session_factory),
        performance_records=SqlPerformanceRecordRepository(session_factory),
        learning_data=SqlLearningDataRepository(session_factory),
        cache=HighPerformerCache(redis, ttl_seconds=settings.cache_ttl_seconds) if redis is not None else None,
        min_category_pool=settings.learning_min_category_pool,
        top_k=settings.learning_top_k,
        candidate_limit=settings.learning_candidate_limit,
    )


def get_feedback_processor(session_factory: Sessions) -> ManualFeedbackProcessor:
    return ManualFeedbackProcessor(
        content_items=SqlContentItemRepository(session_factory),
        learning_data=SqlLearningDataRepository(session_factory),
        feedback_logs=SqlFeedbackLogRepository(session_factory),
    )


def get_cron_log_repository(session_factory: Sessions) -> SqlCronLogRepository:
    return SqlCronLogRepository(session_factory)


Collector = Annotated[PerformanceCollector, Depends(get_performance_collector)]
Extractor = Annotated[LearningDataExtractor, Depends(get_learning_extractor)]
FeedbackProcessor = Annotated[ManualFeedbackProcessor, Depends(get_feedback_processor)]
CronLogs = Annotated[SqlCronLogRepository, Depends(get_cron_log_repository)]


def get_prompt_assembler(extractor: Extractor) -> PromptAssembler:
    # No factual-context provider is wired in this service; the block is omitted.
    return PromptAssembler(learning_extractor=extractor)


Assembler = Annotated[PromptAssembler, Depends(get_prompt_assembler)]

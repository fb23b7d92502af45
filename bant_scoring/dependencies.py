import logging
from typing import Callable, Optional

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from bant_scoring.core.cache import CacheService
from bant_scoring.core.config import settings
from bant_scoring.core.database import AsyncSessionLocal, get_db
from bant_scoring.repositories.analytics_repository import AnalyticsRepository
from bant_scoring.repositories.unit_of_work import ScoringUnitOfWork, unit_of_work_factory
from bant_scoring.services.analytics import ScoringAnalyticsService
from bant_scoring.services.lead_scoring import LeadScoringService

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Shared Redis client, or ``None`` when Redis does not answer a ping.

    The client owns a connection pool, so one instance serves the whole
    process.  A failed ping is retried on the next request.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await _redis_client.ping()
    except Exception:
        logger.warning("Redis unavailable, analytics caching disabled for this request")
        return None
    return _redis_client


async def close_redis_client() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def get_uow_factory() -> Callable[[], ScoringUnitOfWork]:
    """Units of work open their own sessions so they outlive the request."""
    return unit_of_work_factory(AsyncSessionLocal)


async def get_analytics_repo(
    db: AsyncSession = Depends(get_db),
) -> AnalyticsRepository:
    return AnalyticsRepository(db)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


async def get_scoring_service(
    uow_factory: Callable[[], ScoringUnitOfWork] = Depends(get_uow_factory),
    cache: CacheService = Depends(get_cache_service),
) -> LeadScoringService:
    return LeadScoringService(uow_factory=uow_factory, cache=cache)


async def get_analytics_service(
    analytics_repo: AnalyticsRepository = Depends(get_analytics_repo),
    cache: CacheService = Depends(get_cache_service),
) -> ScoringAnalyticsService:
    """Build a :class:`ScoringAnalyticsService` over a request-scoped session."""
    return ScoringAnalyticsService(repo=analytics_repo, cache=cache)

"""API-layer dependency functions.

Re-exports the dependency factories from ``bant_scoring.dependencies`` so
that endpoint modules only need to import from ``bant_scoring.api.deps``.
"""

from bant_scoring.dependencies import (
    # Repository factories
    get_analytics_repo,
    get_uow_factory,
    # Service factories
    get_scoring_service,
    get_analytics_service,
    # Redis
    get_cache_service,
    get_redis_client,
)

__all__ = [
    "get_analytics_repo",
    "get_uow_factory",
    "get_scoring_service",
    "get_analytics_service",
    "get_cache_service",
    "get_redis_client",
]

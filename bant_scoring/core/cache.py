import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bumped on every score write; analytics keys embed the current value so
# a write makes every cached summary unreachable without a key scan.
SCORES_GENERATION_KEY = "bant:scores:generation"


class CacheService:
    """Async Redis wrapper for analytics summaries and the score generation.

    With no client (Redis unreachable) every call is a no-op, and a
    failing Redis command is logged and treated as a miss.  Cache
    trouble therefore degrades to a recomputation, never to an error.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    async def _guarded(
        self, command: str, key: str, call: Callable[[Redis], Awaitable[T]]
    ) -> Optional[T]:
        if self._redis is None:
            return None
        try:
            return await call(self._redis)
        except Exception:
            logger.warning("Redis %s failed for key %s", command, key)
            return None

    async def get(self, key: str) -> Optional[str]:
        return await self._guarded("GET", key, lambda r: r.get(key))

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store a raw string value, expiring after *ttl* seconds when given."""
        if ttl:
            await self._guarded("SETEX", key, lambda r: r.setex(key, ttl, value))
        else:
            await self._guarded("SET", key, lambda r: r.set(key, value))

    async def incr(self, key: str) -> Optional[int]:
        return await self._guarded("INCR", key, lambda r: r.incr(key))

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set_json(
        self, key: str, data: Dict[str, Any], ttl: int | None = None
    ) -> None:
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError):
            logger.warning("Cannot serialise value for cache key %s", key)
            return
        await self.set(key, payload, ttl=ttl)

    async def current_generation(self) -> int:
        """Current score generation; 0 when unset or Redis is down."""
        raw = await self.get(SCORES_GENERATION_KEY)
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            return 0

    async def bump_generation(self, **context: Any) -> None:
        """Advance the score generation after a score write.

        *context* (lead id, reason) only feeds the warning logged when
        Redis is configured but the increment fails: summaries cached
        under the current generation stay reachable until their TTL.
        """
        if self._redis is None:
            return
        if await self.incr(SCORES_GENERATION_KEY) is None:
            logger.warning(
                "Score generation not advanced after write (%s); cached "
                "analytics may be stale until they expire",
                ", ".join(f"{k}={v}" for k, v in sorted(context.items())) or "no context",
            )

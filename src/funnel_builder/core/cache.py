"""JSON cache over Redis.

Values are stored as JSON strings.  Keys are namespaced ``<prefix>:<key>``
when a prefix is given, matching the layout the API layer reads:

- ``user:<user_id>:...``   - per-user listings (workspaces, funnels, folders)
- ``workspace:slug:<slug>`` - workspace resolved from its slug
- ``workspace:<id>:...``   - per-workspace data

Redis errors propagate; callers that treat the cache as best effort catch
:class:`redis.exceptions.RedisError` themselves.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

_SCAN_BATCH_SIZE = 500


def _format_key(key: str, prefix: str | None) -> str:
    return f"{prefix}:{key}" if prefix else key


class CacheService:
    """Thin JSON get/set/delete wrapper with pattern invalidation.

    Args:
        client: An async Redis client created with ``decode_responses=True``.
        default_ttl: TTL in seconds applied by :meth:`set` when none is given.
    """

    def __init__(self, client: aioredis.Redis, default_ttl: int = 3600) -> None:
        self._client = client
        self._default_ttl = default_ttl

    @classmethod
    def from_url(cls, redis_url: str, default_ttl: int = 3600) -> CacheService:
        """Build a service with its own client for *redis_url*."""
        return cls(aioredis.from_url(redis_url, decode_responses=True), default_ttl)

    async def get(self, key: str, prefix: str | None = None) -> Any:
        """Return the decoded value at *key*, or ``None`` when absent."""
        raw = await self._client.get(_format_key(key, prefix))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        prefix: str | None = None,
    ) -> None:
        """Store *value* as JSON.  ``ttl=0`` stores without expiry."""
        ttl = self._default_ttl if ttl is None else ttl
        await self._client.set(
            _format_key(key, prefix),
            json.dumps(value, default=str),
            ex=ttl or None,
        )

    async def delete(self, key: str, prefix: str | None = None) -> None:
        await self._client.delete(_format_key(key, prefix))

    async def exists(self, key: str, prefix: str | None = None) -> bool:
        return bool(await self._client.exists(_format_key(key, prefix)))

    async def invalidate_pattern(self, pattern: str, prefix: str | None = None) -> int:
        """Delete every key matching the glob *pattern*.

        Uses ``SCAN`` rather than ``KEYS`` so large keyspaces do not block
        the server.

        Returns:
            Number of keys deleted.
        """
        formatted = _format_key(pattern, prefix)
        batch: list[str] = []
        deleted = 0
        async for key in self._client.scan_iter(match=formatted, count=_SCAN_BATCH_SIZE):
            batch.append(key)
            if len(batch) >= _SCAN_BATCH_SIZE:
                deleted += await self._client.delete(*batch)
                batch.clear()
        if batch:
            deleted += await self._client.delete(*batch)
        logger.debug("cache: invalidated pattern", extra={"pattern": formatted, "deleted": deleted})
        return deleted

    # ------------------------------------------------------------------
    # Domain helpers
    # ------------------------------------------------------------------

    async def invalidate_user_cache(self, user_id: int) -> int:
        """Drop every cached entry scoped to *user_id*."""
        return await self.invalidate_pattern("*", prefix=f"user:{user_id}")

    async def invalidate_workspace_by_slug(self, slug: str) -> None:
        """Drop the slug -> workspace lookup for *slug*."""
        await self.delete(f"slug:{slug}", prefix="workspace")

    async def aclose(self) -> None:
        await self._client.aclose()

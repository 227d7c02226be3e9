"""Shared FastAPI dependencies.

Provides:
- ``require_internal_token``: rejects requests whose ``X-Internal-Token``
  header does not match the ``internal_api_token`` setting.
- ``get_cache``: per-request :class:`CacheService` over Redis.
- ``get_clone_service``: a :class:`CloneWorkspaceService` wired to the
  application session factory and the request's cache.
"""

from __future__ import annotations

import secrets
from collections.abc import AsyncGenerator
from typing import Annotated, Optional

import redis.asyncio as aioredis
from fastapi import Depends, Header, HTTPException, status

from funnel_builder.config.settings import get_settings
from funnel_builder.core.cache import CacheService
from funnel_builder.core.database import AsyncSessionLocal
from funnel_builder.workspace_clone.service import CloneWorkspaceService


# ---------------------------------------------------------------------------
# Internal-route authentication
# ---------------------------------------------------------------------------


async def require_internal_token(
    x_internal_token: Annotated[Optional[str], Header()] = None,
) -> None:
    """Allow the request only when ``X-Internal-Token`` matches the configured secret.

    An empty ``internal_api_token`` setting disables every internal route.

    Raises:
        HTTPException 401: If the header is missing, wrong, or no token is configured.
    """
    expected = get_settings().internal_api_token
    if (
        not expected
        or x_internal_token is None
        or not secrets.compare_digest(x_internal_token.encode(), expected.encode())
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing internal token.",
        )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


async def get_cache() -> AsyncGenerator[CacheService, None]:
    """Yield a per-request :class:`CacheService` and close its client on teardown.

    The Redis connection is opened lazily on first I/O.
    """
    settings = get_settings()
    client: aioredis.Redis = aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
    )
    try:
        yield CacheService(client, default_ttl=settings.cache_default_ttl_seconds)
    finally:
        await client.aclose()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


async def get_clone_service(
    cache: Annotated[CacheService, Depends(get_cache)],
) -> CloneWorkspaceService:
    """Return a :class:`CloneWorkspaceService` for the current request."""
    return CloneWorkspaceService(AsyncSessionLocal, cache=cache, settings=get_settings())

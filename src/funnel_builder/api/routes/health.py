"""Health check route handlers.

``GET /api/health``
    Verifies the process can reach the database (``SELECT 1``) and Redis
    (``PING``).  Always returns HTTP 200; the ``status`` field is ``"ok"``
    or ``"degraded"``.

The shallow liveness probe ``GET /health`` lives in ``api/main.py``.
"""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
import sqlalchemy as sa
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from funnel_builder.config.settings import get_settings
from funnel_builder.core.database import AsyncSessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_database() -> str:
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(sa.text("SELECT 1"))
        return "ok"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return "error"


async def _check_redis() -> str:
    client: aioredis.Redis = aioredis.from_url(get_settings().redis_url)
    try:
        await client.ping()
        return "ok"
    except RedisError:
        logger.exception("Health check: redis unreachable")
        return "error"
    finally:
        await client.aclose()


@router.get("/health")
async def deep_health() -> JSONResponse:
    """Return database and Redis reachability.

    Returns:
        ``{"status": "ok"|"degraded", "database": ..., "redis": ...}``
    """
    database, redis_status = await asyncio.gather(_check_database(), _check_redis())
    overall = "ok" if database == "ok" and redis_status == "ok" else "degraded"
    return JSONResponse({"status": overall, "database": database, "redis": redis_status})

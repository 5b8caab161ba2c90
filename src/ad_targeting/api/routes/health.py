"""Health check route handlers.

``GET /api/health``
    Verifies the process can reach the database (``SELECT 1``).  Always
    returns HTTP 200; the ``status`` field distinguishes ``"ok"`` from
    ``"degraded"``.

The process-level liveness probe (``GET /health``) lives in ``api/main.py``.
These endpoints are diagnostic — they must never raise HTTP 5xx errors.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

import sqlalchemy as sa
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ad_targeting import __version__
from ad_targeting.api.dependencies import get_session_factory

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["system"])


async def _check_database(session_factory: async_sessionmaker[AsyncSession]) -> str:
    """Run ``SELECT 1`` against the configured database.

    Returns:
        ``"ok"`` if the query succeeds, ``"error"`` otherwise.
    """
    try:
        async with session_factory() as session:
            await session.execute(sa.text("SELECT 1"))
        return "ok"
    except (SQLAlchemyError, OSError):
        logger.exception("health_check_database_unreachable")
        return "error"


@router.get("/api/health", include_in_schema=True)
async def system_health(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> JSONResponse:
    """Return process-level health including database connectivity.

    Returns:
        JSON with keys: ``status``, ``version``, ``database``, ``timestamp``.
    """
    db_status = await _check_database(session_factory)

    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "version": __version__,
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    logger.info("system_health_check", health=payload)
    return JSONResponse(payload)

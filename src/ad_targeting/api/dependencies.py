"""FastAPI dependency injection providers.

Storage components are built per request from the session factory the
startup handler stores on ``app.state``.  Tests replace
``app.state.session_factory`` (or override these dependencies) to point
the routes at a test database.

Dependency graph::

    get_session_factory  ─┬─ get_graph_writer
                          └─ get_read_executor
    get_list_filter      (query parameters → ListFilter)
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ad_targeting.config.settings import Settings, get_settings
from ad_targeting.core.exceptions import FilterValidationError
from ad_targeting.core.schemas.advertisement import ListFilterParams
from ad_targeting.storage.graph_writer import GraphWriter
from ad_targeting.storage.read_executor import ReadExecutor
from ad_targeting.targeting.compiler import ListFilter


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Return the session factory created by the startup handler."""
    return request.app.state.session_factory


async def get_graph_writer(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> GraphWriter:
    return GraphWriter(session_factory, timeout=settings.db_operation_timeout_seconds)


async def get_read_executor(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ReadExecutor:
    return ReadExecutor(session_factory, timeout=settings.db_operation_timeout_seconds)


async def get_list_filter(
    settings: Annotated[Settings, Depends(get_settings)],
    offset: Annotated[Optional[str], Query()] = None,
    limit: Annotated[Optional[str], Query()] = None,
    age: Annotated[Optional[str], Query()] = None,
    gender: Annotated[Optional[str], Query()] = None,
    country: Annotated[Optional[str], Query()] = None,
    platform: Annotated[Optional[str], Query()] = None,
) -> ListFilter:
    """Parse the list query parameters into a :class:`ListFilter`.

    Parameters arrive as raw strings so that every parsing failure is
    reported uniformly as ``invalid <param>``.  ``offset`` is 1-based on
    the wire and zero-based in the returned filter.

    Raises:
        FilterValidationError: Naming the first invalid parameter.
    """
    raw = {
        "offset": offset,
        "limit": limit if limit is not None else settings.list_default_limit,
        "age": age,
        "gender": gender,
        "country": country,
        "platform": platform,
    }
    try:
        params = ListFilterParams.model_validate(
            {key: value for key, value in raw.items() if value is not None}
        )
    except ValidationError as exc:
        param = str(exc.errors()[0]["loc"][0])
        raise FilterValidationError(param) from exc

    return ListFilter(
        offset=params.offset - 1,
        limit=params.limit,
        age=params.age,
        gender=params.gender.value if params.gender else None,
        country=params.country,
        platform=params.platform.value if params.platform else None,
        match_unlimited_country=settings.match_unlimited_country,
    )

"""Advertisement routes.

Routes:
    POST   /api/v1/ad   — register an advertisement with its targeting conditions
    GET    /api/v1/ad   — list active advertisements matching audience filters

Error bodies keep the service's established wire contract rather than
FastAPI's ``{"detail": …}`` shape:

- validation / encoding failures → 400 ``{"error": "<message>"}``
- graph write failures           → 500 ``{"error(<stage>)": "<message>"}``
- list query failures            → 500 ``{"error": "Failed to fetch advertisements"}``
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ad_targeting.api.dependencies import get_graph_writer, get_list_filter, get_read_executor
from ad_targeting.api.metrics import (
    advertisement_list_results,
    advertisement_write_failures_total,
    advertisements_created_total,
)
from ad_targeting.core.exceptions import (
    AdvertisementReadError,
    GraphWriteError,
    TargetingEncodingError,
)
from ad_targeting.core.schemas.advertisement import (
    ActiveAdvertisementList,
    AdvertisementCreate,
    AdvertisementCreated,
)
from ad_targeting.storage.graph_writer import GraphWriter
from ad_targeting.storage.read_executor import ReadExecutor
from ad_targeting.targeting.compiler import ListFilter

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/ad", tags=["advertisements"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AdvertisementCreated)
async def create_advertisement(
    payload: AdvertisementCreate,
    writer: Annotated[GraphWriter, Depends(get_graph_writer)],
) -> JSONResponse:
    """Persist an advertisement together with its conditions and countries.

    The whole graph is written in one transaction; on failure nothing is
    stored and the response names the write stage that failed.
    """
    try:
        ad_id = await writer.create(payload)
    except TargetingEncodingError as exc:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})
    except GraphWriteError as exc:
        advertisement_write_failures_total.labels(stage=exc.stage.value).inc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={f"error({exc.stage.value})": exc.message},
        )

    advertisements_created_total.inc()
    logger.info("advertisement_registered", advertisement_id=ad_id, title=payload.title)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=AdvertisementCreated().model_dump(),
    )


@router.get("", response_model=ActiveAdvertisementList)
async def list_active_advertisements(
    filters: Annotated[ListFilter, Depends(get_list_filter)],
    executor: Annotated[ReadExecutor, Depends(get_read_executor)],
) -> JSONResponse:
    """List advertisements active now, soonest-ending first.

    Every supplied filter must be satisfied by the same condition of an
    advertisement.  ``items`` is ``null`` when nothing matches.
    """
    try:
        items = await executor.list_active(filters)
    except AdvertisementReadError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    advertisement_list_results.observe(len(items))
    body = ActiveAdvertisementList(items=items or None)
    return JSONResponse(content=body.model_dump(mode="json", by_alias=True))

"""Pydantic request/response schemas.

Re-exports the advertisement schemas so callers can write::

    from ad_targeting.core.schemas import AdvertisementCreate
"""

from __future__ import annotations

from ad_targeting.core.schemas.advertisement import (
    ActiveAdvertisement,
    ActiveAdvertisementList,
    AdvertisementCreate,
    AdvertisementCreated,
    ConditionCreate,
    ListFilterParams,
)

__all__ = [
    "ActiveAdvertisement",
    "ActiveAdvertisementList",
    "AdvertisementCreate",
    "AdvertisementCreated",
    "ConditionCreate",
    "ListFilterParams",
]

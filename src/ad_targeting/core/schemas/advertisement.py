"""Pydantic request/response schemas for advertisements.

These schemas are used by the advertisement API routes for validation,
serialisation, and OpenAPI documentation generation.  They are kept
separate from the SQLAlchemy ORM models in ``core/models/advertisement.py``
to avoid coupling transport concerns to persistence concerns.

The JSON wire format uses camelCase (``startAt``, ``ageStart`` …); the
Python attributes use snake_case.  Both spellings are accepted on input.

Country codes
-------------
Country codes are ISO 3166-1 alpha-2 codes checked against ``pycountry``.
They are upper-cased and de-duplicated (first occurrence wins) so that a
condition never produces two identical ``condition_country`` rows.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

import pycountry
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ad_targeting.targeting.encoder import Gender, Platform

AGE_MIN = 1
AGE_MAX = 100
LIMIT_MAX = 100


def normalise_country_code(code: str) -> str:
    """Return the upper-cased ISO 3166-1 alpha-2 form of *code*.

    Raises:
        ValueError: If *code* is not an assigned alpha-2 country code.
    """
    candidate = code.strip().upper()
    if len(candidate) != 2 or pycountry.countries.get(alpha_2=candidate) is None:
        raise ValueError(f"invalid country code: {code!r}")
    return candidate


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _dedupe(values: list) -> list:
    seen: set = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ConditionCreate(_CamelModel):
    """One audience rule set of a new advertisement.

    Attributes:
        age_start: Youngest targeted age (1-100).  Missing or null means 1.
        age_end: Oldest targeted age (1-100).  Missing or null means 100.
            Not checked against ``age_start``.
        gender: Targeted genders.  Empty means both.
        country: Targeted countries.  Empty means any country.
        platform: Targeted platforms.  Empty means all platforms.
    """

    age_start: int = Field(default=AGE_MIN, ge=AGE_MIN, le=AGE_MAX)
    age_end: int = Field(default=AGE_MAX, ge=AGE_MIN, le=AGE_MAX)
    gender: list[Gender] = Field(default_factory=list, max_length=2)
    country: list[str] = Field(default_factory=list)
    platform: list[Platform] = Field(default_factory=list)

    @field_validator("age_start", "age_end", mode="before")
    @classmethod
    def _null_age_is_default(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            return AGE_MIN if info.field_name == "age_start" else AGE_MAX
        return value

    @field_validator("gender")
    @classmethod
    def _unique_genders(cls, value: list[Gender]) -> list[Gender]:
        if len(set(value)) != len(value):
            raise ValueError("gender entries must be unique")
        return value

    @field_validator("country")
    @classmethod
    def _valid_countries(cls, value: list[str]) -> list[str]:
        return _dedupe([normalise_country_code(code) for code in value])

    @field_validator("platform")
    @classmethod
    def _unique_platforms(cls, value: list[Platform]) -> list[Platform]:
        return _dedupe(value)


class AdvertisementCreate(_CamelModel):
    """Payload for ``POST /api/v1/ad``.

    ``end_at`` must be strictly later than ``start_at``.  Naive timestamps
    are interpreted as UTC when stored.
    """

    title: str = Field(..., min_length=1, max_length=255)
    start_at: datetime
    end_at: datetime
    conditions: list[ConditionCreate] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def _null_conditions(cls, value: object) -> object:
        return [] if value is None else value

    @model_validator(mode="after")
    def _end_after_start(self) -> AdvertisementCreate:
        if as_utc(self.end_at) <= as_utc(self.start_at):
            raise ValueError("endAt must be later than startAt")
        return self


class AdvertisementCreated(BaseModel):
    """Response body for a successful ``POST /api/v1/ad``."""

    message: str = "Advertisement created successfully"


class ActiveAdvertisement(_CamelModel):
    """One row of a list response."""

    title: str
    end_at: datetime


class ActiveAdvertisementList(BaseModel):
    """Response body for ``GET /api/v1/ad``.

    ``items`` is ``None`` rather than an empty list when nothing matches.
    """

    items: Optional[list[ActiveAdvertisement]] = None


class ListFilterParams(BaseModel):
    """Query parameters of ``GET /api/v1/ad`` after parsing.

    ``offset`` is 1-based here; :class:`ListFilter` carries the zero-based
    value handed to the query compiler.
    """

    offset: int = Field(default=1, ge=1)
    limit: int = Field(default=5, ge=1, le=LIMIT_MAX)
    age: Optional[int] = Field(default=None, ge=AGE_MIN, le=AGE_MAX)
    gender: Optional[Gender] = None
    country: Optional[str] = None
    platform: Optional[Platform] = None

    @field_validator("gender", "country", "platform", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and value == "":
            return None
        return value

    @field_validator("country")
    @classmethod
    def _valid_country(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalise_country_code(value)

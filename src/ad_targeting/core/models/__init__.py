"""SQLAlchemy ORM models for the ad targeting service.

All models are imported here so that:
1. Alembic autogenerate can discover them via Base.metadata.
2. Application code can do `from ad_targeting.core.models import Advertisement`
   without knowing which sub-module a model lives in.
"""

from __future__ import annotations

from ad_targeting.core.models.advertisement import (
    Advertisement,
    AdvertisementCondition,
    ConditionCountry,
)
from ad_targeting.core.models.base import Base

__all__ = [
    "Base",
    "Advertisement",
    "AdvertisementCondition",
    "ConditionCountry",
]

"""Factory Boy factories for test data generation.

Available factories
-------------------
AdvertisementPayloadFactory  — ``POST /api/v1/ad`` body, active right now
ConditionPayloadFactory      — one targeting condition (ages 18-65, no other limits)
"""

from __future__ import annotations

from tests.factories.advertisements import (
    AdvertisementPayloadFactory,
    ConditionPayloadFactory,
)

__all__ = [
    "AdvertisementPayloadFactory",
    "ConditionPayloadFactory",
]

"""Factory Boy factories for advertisement request payloads.

Payloads use the camelCase wire format accepted by ``POST /api/v1/ad``.

Usage::

    from tests.factories.advertisements import (
        AdvertisementPayloadFactory,
        ConditionPayloadFactory,
    )

    payload = AdvertisementPayloadFactory.build(
        conditions=[ConditionPayloadFactory.build(country=["TW", "JP"])],
    )
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import factory


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class ConditionPayloadFactory(factory.Factory):
    """Factory for one targeting condition dict.

    Defaults to an 18-65 age band with every other dimension unrestricted.
    """

    class Meta:
        model = dict

    ageStart = 18  # noqa: N815
    ageEnd = 65  # noqa: N815
    gender = factory.LazyFunction(list)
    country = factory.LazyFunction(list)
    platform = factory.LazyFunction(list)


class AdvertisementPayloadFactory(factory.Factory):
    """Factory for advertisement payload dicts.

    The active window spans one day either side of the current time, so
    the advertisement is listed as soon as it is stored.
    """

    class Meta:
        model = dict

    title = factory.Sequence(lambda n: f"Test advertisement {n}")
    startAt = factory.LazyFunction(lambda: (_now() - timedelta(days=1)).isoformat())  # noqa: N815
    endAt = factory.LazyFunction(lambda: (_now() + timedelta(days=1)).isoformat())  # noqa: N815
    conditions = factory.LazyFunction(list)

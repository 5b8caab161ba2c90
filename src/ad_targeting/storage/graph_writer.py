"""Transactional writer for the advertisement targeting graph.

An advertisement is persisted as three levels of rows::

    advertisement
    └── advertisement_condition   (advertisement_id → advertisement.id)
        └── condition_country     (condition_id → advertisement_condition.id)

:class:`GraphWriter` inserts the whole graph inside one transaction.  Each
level references the identity generated by the insert directly above it:
every condition row carries the advertisement's new id, and every country
row carries the new id of *its own* condition row (captured from that
condition insert's ``RETURNING`` clause).

Either all rows of an advertisement become visible or none do.  A failure
at any step rolls the transaction back and raises :class:`GraphWriteError`
tagged with the :class:`WriteStage` that failed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import sqlalchemy as sa
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ad_targeting.core.exceptions import GraphWriteError, WriteStage
from ad_targeting.core.models import Advertisement, AdvertisementCondition, ConditionCountry
from ad_targeting.core.schemas.advertisement import (
    AdvertisementCreate,
    ConditionCreate,
    as_utc,
)
from ad_targeting.targeting.encoder import encode_gender, encode_platforms

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EncodedCondition:
    """A condition in its stored representation."""

    age_start: int
    age_end: int
    gender: str
    platform: int
    unlimited_country: bool
    countries: tuple[str, ...]

    @classmethod
    def from_schema(cls, condition: ConditionCreate) -> EncodedCondition:
        """Encode *condition*.

        Raises:
            TargetingEncodingError: If a gender letter or platform name has
                no encoding.
        """
        countries = tuple(condition.country)
        return cls(
            age_start=condition.age_start,
            age_end=condition.age_end,
            gender=encode_gender(condition.gender),
            platform=encode_platforms(condition.platform),
            unlimited_country=not countries,
            countries=countries,
        )


class GraphWriter:
    """Persist advertisement aggregates atomically.

    Args:
        session_factory: Pool handle owned by the composition layer.  One
            session is borrowed per :meth:`create` call.
        timeout: Deadline in seconds for a whole write, including
            connection acquisition.  ``None`` disables it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout

    async def create(self, advertisement: AdvertisementCreate) -> int:
        """Insert *advertisement* with all its conditions and countries.

        Conditions are encoded before any storage interaction, so an
        encoding failure never opens a transaction.

        Args:
            advertisement: A validated advertisement aggregate.

        Returns:
            The generated advertisement identity.

        Raises:
            TargetingEncodingError: If a condition cannot be encoded.
            GraphWriteError: If any insert or the commit fails, or the
                deadline expires.  Nothing has been persisted.
        """
        conditions = [EncodedCondition.from_schema(c) for c in advertisement.conditions]

        stage = WriteStage.INSERT_ADVERTISEMENT
        try:
            async with asyncio.timeout(self._timeout):
                async with self._session_factory() as session:
                    async with session.begin():
                        ad_id = await self._insert_advertisement(session, advertisement)

                        for condition in conditions:
                            stage = WriteStage.INSERT_CONDITION
                            condition_id = await self._insert_condition(session, ad_id, condition)

                            stage = WriteStage.INSERT_COUNTRY
                            for country_code in condition.countries:
                                await self._insert_country(session, condition_id, country_code)

                        # Leaving the ``begin()`` block commits.
                        stage = WriteStage.COMMIT
        except TimeoutError as exc:
            logger.warning(
                "advertisement_write_timed_out",
                stage=stage,
                title=advertisement.title,
                timeout=self._timeout,
            )
            raise GraphWriteError(stage, f"timed out after {self._timeout}s") from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.warning(
                "advertisement_write_failed",
                stage=stage,
                title=advertisement.title,
                error=str(exc),
            )
            raise GraphWriteError(stage, str(exc)) from exc

        logger.info(
            "advertisement_created",
            advertisement_id=ad_id,
            conditions=len(conditions),
            countries=sum(len(c.countries) for c in conditions),
        )
        return ad_id

    # ------------------------------------------------------------------
    # Row inserts
    # ------------------------------------------------------------------

    @staticmethod
    async def _insert_advertisement(
        session: AsyncSession, advertisement: AdvertisementCreate
    ) -> int:
        stmt = (
            sa.insert(Advertisement)
            .values(
                title=advertisement.title,
                start_at=as_utc(advertisement.start_at),
                end_at=as_utc(advertisement.end_at),
            )
            .returning(Advertisement.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def _insert_condition(
        session: AsyncSession, ad_id: int, condition: EncodedCondition
    ) -> int:
        stmt = (
            sa.insert(AdvertisementCondition)
            .values(
                advertisement_id=ad_id,
                age_start=condition.age_start,
                age_end=condition.age_end,
                gender=condition.gender,
                unlimited_country=condition.unlimited_country,
                platform=condition.platform,
            )
            .returning(AdvertisementCondition.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def _insert_country(session: AsyncSession, condition_id: int, country_code: str) -> None:
        await session.execute(
            sa.insert(ConditionCountry).values(
                condition_id=condition_id,
                country_code=country_code,
            )
        )

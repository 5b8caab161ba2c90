"""Execute compiled list queries and map rows to response items."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ad_targeting.core.exceptions import AdvertisementReadError
from ad_targeting.core.schemas.advertisement import ActiveAdvertisement, as_utc
from ad_targeting.targeting.compiler import ListFilter, compile_list_query

logger = structlog.get_logger(__name__)


class ReadExecutor:
    """Run list queries against the injected session factory.

    Args:
        session_factory: Pool handle owned by the composition layer.  One
            session is borrowed per :meth:`list_active` call.
        timeout: Deadline in seconds for one query, including connection
            acquisition.  ``None`` disables it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout

    async def list_active(self, filters: ListFilter) -> list[ActiveAdvertisement]:
        """Return active advertisements matching *filters*, soonest ending first.

        Raises:
            TargetingEncodingError: If ``filters.platform`` is unknown.
            AdvertisementReadError: If the query fails, a row cannot be
                decoded, or the deadline expires.  No partial result is
                returned.
        """
        compiled = compile_list_query(filters)

        try:
            async with asyncio.timeout(self._timeout):
                async with self._session_factory() as session:
                    result = await session.execute(compiled.statement())
                    rows = result.all()
            items = [
                ActiveAdvertisement(title=row.title, end_at=as_utc(row.end_at))
                for row in rows
            ]
        except TimeoutError as exc:
            logger.error("advertisement_list_timed_out", timeout=self._timeout)
            raise AdvertisementReadError("Failed to fetch advertisements") from exc
        except (SQLAlchemyError, OSError, ValueError, TypeError) as exc:
            logger.error("advertisement_list_failed", error=str(exc), sql=compiled.sql)
            raise AdvertisementReadError("Failed to fetch advertisements") from exc

        logger.debug(
            "advertisements_listed",
            count=len(items),
            offset=filters.offset,
            limit=filters.limit,
        )
        return items

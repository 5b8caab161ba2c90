"""Unit tests for GraphWriter and ReadExecutor failure handling.

The session factory is mocked, so these tests exercise stage tracking,
deadline handling and error mapping without a database.  Behaviour against
a real database is covered in ``tests/integration``.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from ad_targeting.core.exceptions import (
    AdvertisementReadError,
    GraphWriteError,
    TargetingEncodingError,
    WriteStage,
)
from ad_targeting.core.schemas.advertisement import AdvertisementCreate, ConditionCreate
from ad_targeting.storage.graph_writer import EncodedCondition, GraphWriter
from ad_targeting.storage.read_executor import ReadExecutor
from ad_targeting.targeting.compiler import ListFilter
from tests.factories import AdvertisementPayloadFactory, ConditionPayloadFactory


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _async_cm(enter: Any = None, exit_error: BaseException | None = None) -> MagicMock:
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=enter)
    if exit_error is not None:
        cm.__aexit__ = AsyncMock(side_effect=exit_error)
    else:
        cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def _mock_session_factory(
    *,
    execute: AsyncMock | None = None,
    commit_error: BaseException | None = None,
) -> tuple[MagicMock, MagicMock]:
    """Return ``(session_factory, session)`` mocks.

    ``session.execute`` returns a result whose ``scalar_one()`` is 1 unless
    *execute* is given.  Leaving ``session.begin()`` raises *commit_error*.
    """
    session = MagicMock()
    if execute is None:
        result = MagicMock()
        result.scalar_one.return_value = 1
        execute = AsyncMock(return_value=result)
    session.execute = execute
    session.begin = MagicMock(return_value=_async_cm(exit_error=commit_error))

    factory = MagicMock(return_value=_async_cm(enter=session))
    return factory, session


def _advertisement(*conditions: dict) -> AdvertisementCreate:
    return AdvertisementCreate.model_validate(
        AdvertisementPayloadFactory.build(conditions=list(conditions))
    )


def _integrity_error() -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception("constraint failed"))


# ---------------------------------------------------------------------------
# EncodedCondition
# ---------------------------------------------------------------------------


class TestEncodedCondition:
    def test_unrestricted_condition(self) -> None:
        encoded = EncodedCondition.from_schema(ConditionCreate())

        assert encoded.gender == "MF"
        assert encoded.platform == 7
        assert encoded.unlimited_country is True
        assert encoded.countries == ()
        assert (encoded.age_start, encoded.age_end) == (1, 100)

    def test_restricted_condition(self) -> None:
        condition = ConditionCreate.model_validate(
            ConditionPayloadFactory.build(gender=["F"], country=["TW", "JP"], platform=["ios", "web"])
        )
        encoded = EncodedCondition.from_schema(condition)

        assert encoded.gender == "F"
        assert encoded.platform == 6
        assert encoded.unlimited_country is False
        assert encoded.countries == ("TW", "JP")


# ---------------------------------------------------------------------------
# GraphWriter
# ---------------------------------------------------------------------------


class TestGraphWriterStages:
    async def test_success_returns_advertisement_id(self) -> None:
        factory, session = _mock_session_factory()
        writer = GraphWriter(factory)

        ad_id = await writer.create(
            _advertisement(ConditionPayloadFactory.build(country=["TW", "JP"]))
        )

        assert ad_id == 1
        # advertisement + condition + two countries
        assert session.execute.await_count == 4
        factory.assert_called_once()

    async def test_encoding_failure_never_opens_a_session(self) -> None:
        factory, _ = _mock_session_factory()
        bad = ConditionCreate.model_construct(
            age_start=1, age_end=100, gender=[], country=[], platform=["blackberry"]
        )
        advertisement = _advertisement().model_copy(update={"conditions": [bad]})

        with pytest.raises(TargetingEncodingError):
            await GraphWriter(factory).create(advertisement)

        factory.assert_not_called()

    @pytest.mark.parametrize(
        ("failing_call", "stage"),
        [
            (1, WriteStage.INSERT_ADVERTISEMENT),
            (2, WriteStage.INSERT_CONDITION),
            (3, WriteStage.INSERT_COUNTRY),
        ],
    )
    async def test_failing_insert_reports_its_stage(self, failing_call: int, stage: WriteStage) -> None:
        result = MagicMock()
        result.scalar_one.return_value = 1
        side_effect: list[Any] = [result] * (failing_call - 1) + [_integrity_error()]
        factory, _ = _mock_session_factory(execute=AsyncMock(side_effect=side_effect))

        with pytest.raises(GraphWriteError) as exc_info:
            await GraphWriter(factory).create(
                _advertisement(ConditionPayloadFactory.build(country=["TW"]))
            )

        assert exc_info.value.stage is stage

    async def test_commit_failure_reports_commit_stage(self) -> None:
        factory, _ = _mock_session_factory(
            commit_error=OperationalError("COMMIT", {}, Exception("disk I/O error"))
        )

        with pytest.raises(GraphWriteError) as exc_info:
            await GraphWriter(factory).create(_advertisement(ConditionPayloadFactory.build()))

        assert exc_info.value.stage is WriteStage.COMMIT
        assert "disk I/O error" in exc_info.value.message

    async def test_deadline_expiry_is_a_write_error(self) -> None:
        async def _slow(*args: Any, **kwargs: Any) -> None:
            await asyncio.sleep(1)

        factory, _ = _mock_session_factory(execute=AsyncMock(side_effect=_slow))

        with pytest.raises(GraphWriteError) as exc_info:
            await GraphWriter(factory, timeout=0.01).create(_advertisement())

        assert exc_info.value.stage is WriteStage.INSERT_ADVERTISEMENT
        assert "timed out" in exc_info.value.message

    async def test_refused_connection_is_a_write_error(self) -> None:
        factory, _ = _mock_session_factory(
            execute=AsyncMock(side_effect=ConnectionRefusedError(111, "Connect call failed"))
        )

        with pytest.raises(GraphWriteError) as exc_info:
            await GraphWriter(factory).create(_advertisement(ConditionPayloadFactory.build()))

        assert exc_info.value.stage is WriteStage.INSERT_ADVERTISEMENT
        assert "Connect call failed" in exc_info.value.message


# ---------------------------------------------------------------------------
# ReadExecutor
# ---------------------------------------------------------------------------


class TestReadExecutorErrors:
    async def test_query_failure_is_a_read_error(self) -> None:
        factory, _ = _mock_session_factory(
            execute=AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))
        )

        with pytest.raises(AdvertisementReadError, match="Failed to fetch advertisements"):
            await ReadExecutor(factory).list_active(ListFilter())

    async def test_refused_connection_is_a_read_error(self) -> None:
        factory, session = _mock_session_factory()
        factory.return_value.__aenter__.side_effect = ConnectionRefusedError(111, "Connect call failed")

        with pytest.raises(AdvertisementReadError, match="Failed to fetch advertisements"):
            await ReadExecutor(factory).list_active(ListFilter(age=30))

        session.execute.assert_not_awaited()

    async def test_undecodable_row_is_a_read_error(self) -> None:
        result = MagicMock()
        result.all.side_effect = ValueError("Couldn't parse datetime string: 'garbage'")
        factory, _ = _mock_session_factory(execute=AsyncMock(return_value=result))

        with pytest.raises(AdvertisementReadError):
            await ReadExecutor(factory).list_active(ListFilter())

    async def test_unknown_platform_is_an_encoding_error(self) -> None:
        factory, _ = _mock_session_factory()

        with pytest.raises(TargetingEncodingError):
            await ReadExecutor(factory).list_active(ListFilter(platform="blackberry"))

        factory.assert_not_called()

    async def test_deadline_expiry_is_a_read_error(self) -> None:
        async def _slow(*args: Any, **kwargs: Any) -> None:
            await asyncio.sleep(1)

        factory, _ = _mock_session_factory(execute=AsyncMock(side_effect=_slow))

        with pytest.raises(AdvertisementReadError):
            await ReadExecutor(factory, timeout=0.01).list_active(ListFilter())

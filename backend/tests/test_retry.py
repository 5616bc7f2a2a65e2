import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import exc as sa_exc

from compendium.core.errors import (
    PermanentStorageError,
    TransientStorageError,
    classify_storage_error,
)
from compendium.services.rate_limiting import retry_async, retry_with_backoff


async def test_retry_stops_on_success():
    func = AsyncMock(side_effect=[TransientStorageError("pool"), "ok"])
    sleep = AsyncMock()

    assert await retry_async(func, max_attempts=3, delay=2.0, sleep=sleep) == "ok"
    assert func.await_count == 2
    sleep.assert_awaited_once_with(2.0)


async def test_retry_does_not_retry_other_errors():
    func = AsyncMock(side_effect=PermanentStorageError("bad row"))

    with pytest.raises(PermanentStorageError):
        await retry_async(func, max_attempts=3, delay=0, sleep=AsyncMock())
    assert func.await_count == 1


async def test_decorator_backoff_is_capped():
    sleep = AsyncMock()
    calls = []

    @retry_with_backoff(max_retries=3, base_delay=10, max_delay=25, exponential_base=2.0, sleep=sleep)
    async def flaky():
        calls.append(1)
        raise TransientStorageError("pool")

    with pytest.raises(TransientStorageError):
        await flaky()
    assert len(calls) == 4
    assert [c.args[0] for c in sleep.await_args_list] == [10, 20, 25]


class FakePrismaError(Exception):
    code = "P2024"


class TooManyConnectionsError(Exception):
    pass


def test_classify_storage_error():
    assert isinstance(classify_storage_error(sa_exc.TimeoutError("QueuePool limit")), TransientStorageError)
    assert isinstance(classify_storage_error(asyncio.TimeoutError()), TransientStorageError)
    assert isinstance(classify_storage_error(FakePrismaError("timed out")), TransientStorageError)
    assert isinstance(classify_storage_error(TooManyConnectionsError()), TransientStorageError)
    assert isinstance(
        classify_storage_error(RuntimeError("Timed out fetching a new connection from the connection pool")),
        TransientStorageError,
    )

    wrapped = sa_exc.OperationalError("INSERT", {}, TooManyConnectionsError("too many"))
    assert isinstance(classify_storage_error(wrapped), TransientStorageError)

    permanent = classify_storage_error(sa_exc.IntegrityError("INSERT", {}, Exception("unique")))
    assert isinstance(permanent, PermanentStorageError)
    assert permanent.original is not None

    already = TransientStorageError("x")
    assert classify_storage_error(already) is already

import asyncio

import pytest

from kisansetu.core.cancellation import CancellationToken, run_with_timeout
from kisansetu.core.exceptions import OperationCancelled, ProcessingTimeout


async def _answer_after(delay, value="done"):
    await asyncio.sleep(delay)
    return value


async def test_result_is_returned_before_timeout():
    token = CancellationToken()
    result = await run_with_timeout(
        _answer_after(0), timeout=1, token=token, operation="inference"
    )
    assert result == "done"
    assert not token.cancelled


async def test_timeout_raises_and_cancels_the_token():
    token = CancellationToken()

    with pytest.raises(ProcessingTimeout) as exc_info:
        await run_with_timeout(_answer_after(5), timeout=0.05, token=token, operation="inference")

    assert token.cancelled
    assert exc_info.value.operation == "inference"
    assert str(exc_info.value) == "inference timed out after 0.05s"


async def test_cancelling_the_token_stops_the_wait():
    token = CancellationToken()
    waiter = asyncio.create_task(
        run_with_timeout(_answer_after(5), timeout=10, token=token, operation="speech")
    )
    await asyncio.sleep(0.01)

    token.cancel()

    with pytest.raises(OperationCancelled):
        await waiter


async def test_errors_from_the_call_propagate():
    async def _boom():
        raise ValueError("bad audio")

    with pytest.raises(ValueError):
        await run_with_timeout(_boom(), timeout=1, token=CancellationToken(), operation="x")


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(OperationCancelled):
        token.raise_if_cancelled("speech")

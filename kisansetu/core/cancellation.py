import asyncio
from typing import Awaitable, TypeVar

from .exceptions import OperationCancelled, ProcessingTimeout

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal handed to long-running calls.

    Calls that accept a token check ``cancelled`` between steps or await
    ``wait()``; the holder calls ``cancel()`` to ask them to stop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self.cancelled:
            raise OperationCancelled(f"{operation} was cancelled")


async def run_with_timeout(
    awaitable: Awaitable[T],
    *,
    timeout: float,
    token: CancellationToken,
    operation: str,
) -> T:
    """
    Awaits `awaitable` until it settles, the token is cancelled or `timeout`
    seconds pass, whichever comes first.

    On timeout the token is cancelled so the call can observe it, the task is
    cancelled and ProcessingTimeout is raised. On cancellation
    OperationCancelled is raised. A result that settles together with either
    signal wins.
    """
    task = asyncio.ensure_future(awaitable)
    cancel_waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait(
            {task, cancel_waiter},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        cancel_waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    if token.cancelled:
        raise OperationCancelled(f"{operation} was cancelled")

    token.cancel()
    raise ProcessingTimeout(operation, timeout)

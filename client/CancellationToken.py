"""Cooperative cancellation for in-flight catalog requests.

Each request gets its own token. Superseding a request cancels its token;
whoever awaits the request checks the token before touching shared state, so a
late response of a cancelled request can never be applied.
"""

import asyncio
from typing import Awaitable, TypeVar

from shared.errors.CatalogErrors import RequestCancelled

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal scoped to a single request."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelled(f"Request {self.label!r} was superseded.")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token is cancelled first.

        On cancellation the underlying task is told to abort and RequestCancelled
        is raised; a result or error that arrives after cancellation is discarded.

        Raises:
            RequestCancelled: If the token was or becomes cancelled.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if self.cancelled:
            if task.done() and not task.cancelled():
                # consume the late outcome so it is not reported as unretrieved
                task.exception()
            raise RequestCancelled(f"Request {self.label!r} was superseded.")
        return task.result()

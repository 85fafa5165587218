from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from orderboard.realtime.events import ChangeEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class FeedListener:
    """One subscriber's ordered view of a feed.

    Registered with its feed as soon as it is created, so nothing published
    after ``listen()`` returns is missed.
    """

    def __init__(self, feed: LocalFeed):
        self._feed = feed
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._exhausted = False

    def __aiter__(self) -> FeedListener:
        return self

    async def __anext__(self) -> ChangeEvent | dict[str, Any]:
        if self._exhausted:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._exhausted = True
            self._queue.task_done()
            raise StopAsyncIteration
        return item

    def push(self, event: ChangeEvent | dict[str, Any]) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed.detach(self)
        self._queue.put_nowait(_CLOSED)


class OrderFeed(Protocol):
    def listen(self) -> FeedListener:
        ...


class LocalFeed:
    """In-process fan-out of change events, one queue per listener."""

    def __init__(self) -> None:
        self._listeners: set[FeedListener] = set()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def listen(self) -> FeedListener:
        listener = FeedListener(self)
        self._listeners.add(listener)
        return listener

    def detach(self, listener: FeedListener) -> None:
        self._listeners.discard(listener)

    def publish(self, event: ChangeEvent | dict[str, Any]) -> None:
        for listener in list(self._listeners):
            listener.push(event)


class FeedSubscription:
    """Pumps a feed listener into a dispatch callable until closed."""

    def __init__(
        self,
        listener: FeedListener,
        dispatch: Callable[[ChangeEvent | dict[str, Any]], Awaitable[Any]],
        name: str = "order-feed",
    ):
        self.listener = listener
        self._dispatch = dispatch
        self._task: asyncio.Task[None] = asyncio.create_task(self._run(), name=name)

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def _run(self) -> None:
        async for event in self.listener:
            try:
                await self._dispatch(event)
            except Exception:
                # An exception escaping here would end the subscription.
                logger.exception("feed event dispatch failed; event dropped")
            finally:
                self.listener.task_done()

    async def drain(self) -> None:
        """Wait until every event delivered so far has been dispatched."""
        await self.listener.join()

    async def close(self) -> None:
        self.listener.close()
        if not self._task.done():
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

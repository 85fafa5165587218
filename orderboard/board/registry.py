from __future__ import annotations

import asyncio
import logging
from typing import Any

from orderboard.backend.base import OrderBackend
from orderboard.board.board import OrderBoard
from orderboard.notifications import NotificationSink
from orderboard.realtime.events import ChangeEvent, parse_event
from orderboard.realtime.reconciler import ReconcileOutcome

logger = logging.getLogger(__name__)


class BoardRegistry:
    """Live boards keyed by restaurant scope; ``None`` is the super-admin view."""

    def __init__(
        self,
        backend: OrderBackend,
        notifier: NotificationSink | None = None,
        revenue_excluded_statuses: tuple[str, ...] = (),
    ):
        self.backend = backend
        self.notifier = notifier
        self.revenue_excluded_statuses = revenue_excluded_statuses
        self._boards: dict[str | None, OrderBoard] = {}
        self._lock = asyncio.Lock()

    def scopes(self) -> list[str | None]:
        return list(self._boards)

    async def get(self, restaurant_id: str | None) -> OrderBoard:
        board = self._boards.get(restaurant_id)
        if board is not None:
            return board
        async with self._lock:
            board = self._boards.get(restaurant_id)
            if board is not None:
                return board
            board = OrderBoard(
                self.backend,
                restaurant_id=restaurant_id,
                notifier=self.notifier,
                revenue_excluded_statuses=self.revenue_excluded_statuses,
            )
            feed = getattr(self.backend, "feed", None)
            if feed is not None:
                # Subscribe before loading so nothing between the two is lost.
                board.attach(feed)
            try:
                await board.refresh()
            except Exception:
                await board.close()
                raise
            self._boards[restaurant_id] = board
            logger.info("order board opened: restaurant_id=%s", restaurant_id)
            return board

    async def broadcast(self, event: ChangeEvent | dict[str, Any]) -> list[ReconcileOutcome]:
        parsed = parse_event(event)
        outcomes: list[ReconcileOutcome] = []
        for board in list(self._boards.values()):
            outcomes.append(await board.dispatch(parsed))
        return outcomes

    async def release(self, restaurant_id: str | None) -> None:
        board = self._boards.pop(restaurant_id, None)
        if board is not None:
            await board.close()
            logger.info("order board released: restaurant_id=%s", restaurant_id)

    async def close(self) -> None:
        for scope in list(self._boards):
            await self.release(scope)

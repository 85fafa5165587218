from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from orderboard import notifications
from orderboard.backend.base import BackendError, OrderBackend
from orderboard.board.controller import StatusTransitionController, TransitionResult
from orderboard.domain.orders.models import Order
from orderboard.domain.orders.stats import EMPTY_STATS, StatsSnapshot, compute_stats
from orderboard.domain.orders.store import OrderStore
from orderboard.notifications import LoggingNotifier, NotificationSink
from orderboard.realtime.events import ChangeEvent
from orderboard.realtime.feed import FeedSubscription, OrderFeed
from orderboard.realtime.reconciler import EventReconciler, ReconcileOutcome

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Order, ...], StatsSnapshot], None]


class BulkLoadError(RuntimeError):
    """Bulk load failed; the board kept its last known orders. Safe to retry."""


class OrderBoard:
    """Order list and stats for one restaurant scope (``None`` = all restaurants).

    ``dispatch`` is the single entry point for change events. UI layers
    ``subscribe`` to be told about each committed change.
    """

    def __init__(
        self,
        backend: OrderBackend,
        restaurant_id: str | None = None,
        notifier: NotificationSink | None = None,
        revenue_excluded_statuses: Iterable[str] = (),
    ):
        self.backend = backend
        self.restaurant_id = restaurant_id
        self.notifier = notifier or LoggingNotifier()
        self.revenue_excluded_statuses = tuple(revenue_excluded_statuses)
        self.store = OrderStore(restaurant_id)
        self._stats = EMPTY_STATS
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()
        self._subscription: FeedSubscription | None = None
        self._closed = False
        self.loaded = False
        self.reconciler = EventReconciler(self.store, backend, self.notifier, on_commit=self._recompute)
        self.controller = StatusTransitionController(
            self.store, backend, self.notifier, on_commit=self._recompute, lock=self._lock
        )

    @property
    def stats(self) -> StatsSnapshot:
        return self._stats

    @property
    def closed(self) -> bool:
        return self._closed

    def orders(self) -> tuple[Order, ...]:
        return self.store.orders()

    def get(self, order_id: str) -> Order | None:
        return self.store.get(order_id)

    def filter(self, search: str | None = None, status: str | None = None, order_type: str | None = None) -> list[Order]:
        return self.store.filter(search=search, status=status, order_type=order_type)

    def _recompute(self) -> None:
        self._stats = compute_stats(self.store.orders(), self.revenue_excluded_statuses)
        snapshot = self.store.orders()
        for listener in list(self._listeners):
            try:
                listener(snapshot, self._stats)
            except Exception:
                logger.exception("order board listener failed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self) -> StatsSnapshot:
        async with self._lock:
            try:
                orders = await self.backend.fetch_orders(self.restaurant_id)
            except BackendError as exc:
                logger.warning("bulk load failed: restaurant_id=%s error=%s", self.restaurant_id, exc)
                self.notifier.notify(notifications.load_failed())
                raise BulkLoadError(str(exc)) from exc
            self.store.load(orders)
            self.loaded = True
            self._recompute()
            logger.info("orders loaded: restaurant_id=%s count=%s", self.restaurant_id, len(self.store))
            return self._stats

    async def dispatch(self, event: ChangeEvent | dict[str, Any]) -> ReconcileOutcome:
        if self._closed:
            return ReconcileOutcome(applied=False, reason="closed")
        async with self._lock:
            return await self.reconciler.handle(event)

    async def transition(self, order_id: str, status: str) -> TransitionResult:
        return await self.controller.transition(order_id, status)

    def attach(self, feed: OrderFeed) -> FeedSubscription:
        if self._subscription is not None:
            raise RuntimeError("order board already attached to a feed")
        self._subscription = FeedSubscription(feed.listen(), self.dispatch, name=f"order-feed:{self.restaurant_id}")
        return self._subscription

    @property
    def subscription(self) -> FeedSubscription | None:
        return self._subscription

    async def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
        self._listeners.clear()

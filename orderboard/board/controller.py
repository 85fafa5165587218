from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from orderboard import notifications
from orderboard.backend.base import BackendError, OrderBackend
from orderboard.domain.orders.models import Order
from orderboard.domain.orders.store import OrderStore
from orderboard.domain.orders.transitions import (
    IllegalTransitionError,
    OrderNotFoundError,
    TransitionInFlightError,
    can_transition,
)
from orderboard.notifications import NotificationSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    order_id: str
    from_status: str
    to_status: str
    applied: bool
    order: Order | None = None
    error: str | None = None


class StatusTransitionController:
    """Issues user-initiated status changes, one in flight per order id."""

    def __init__(
        self,
        store: OrderStore,
        backend: OrderBackend,
        notifier: NotificationSink,
        on_commit: Callable[[], None],
        lock: asyncio.Lock | None = None,
    ):
        self.store = store
        self.backend = backend
        self.notifier = notifier
        self._on_commit = on_commit
        # Shared with the owning board so direct applies queue behind loads and events.
        self._lock = lock or asyncio.Lock()
        self._in_flight: set[str] = set()

    def in_flight(self, order_id: str) -> bool:
        return order_id in self._in_flight

    def check(self, order_id: str, target: str) -> Order:
        """Client-side validation; raises before any network call is made."""
        order = self.store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not can_transition(order.status, target):
            raise IllegalTransitionError(order_id, order.status, target)
        if order_id in self._in_flight:
            raise TransitionInFlightError(order_id, order.status, target)
        return order

    async def transition(self, order_id: str, target: str) -> TransitionResult:
        order = self.check(order_id, target)
        self._in_flight.add(order_id)
        try:
            try:
                record = await self.backend.update_order_status(order_id, target)
            except BackendError as exc:
                logger.warning("status change failed: order_id=%s target=%s error=%s", order_id, target, exc)
                self.notifier.notify(notifications.status_change_failed(order_id))
                return TransitionResult(
                    order_id=order_id,
                    from_status=order.status,
                    to_status=target,
                    applied=False,
                    error=str(exc),
                )

            # The echoed feed event carries the same row; applying both in
            # either order ends in the same state.
            patch = record.to_patch() if record is not None else {}
            patch.setdefault("status", target)
            async with self._lock:
                updated = self.store.replace(order_id, patch)
                if updated is not None:
                    self._on_commit()
            if updated is None:
                logger.info("order %s left the board while its status change was in flight", order_id)
            else:
                self.notifier.notify(notifications.status_changed(order_id, target))
            return TransitionResult(
                order_id=order_id,
                from_status=order.status,
                to_status=target,
                applied=True,
                order=updated,
            )
        finally:
            self._in_flight.discard(order_id)

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from orderboard.backend.base import BackendError, OrderBackend
from orderboard import notifications
from orderboard.notifications import Notification, NotificationSink
from orderboard.domain.orders.models import Order, OrderItem, OrderItemRecord, OrderRecord
from orderboard.domain.orders.store import OrderStore
from orderboard.realtime.events import ChangeEvent, MalformedEventError, parse_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileOutcome:
    applied: bool
    reason: str
    order_id: str | None = None


class EventReconciler:
    """Applies one change event at a time to an order store.

    Network work (item re-fetches) happens first; the store mutation and the
    ``on_commit`` callback then run synchronously back to back.
    """

    def __init__(
        self,
        store: OrderStore,
        backend: OrderBackend,
        notifier: NotificationSink,
        on_commit: Callable[[], None],
    ):
        self.store = store
        self.backend = backend
        self.notifier = notifier
        self._on_commit = on_commit

    def _commit(self, notification: Notification | None = None) -> None:
        self._on_commit()
        if notification is not None:
            self.notifier.notify(notification)

    async def handle(self, raw: ChangeEvent | dict[str, Any]) -> ReconcileOutcome:
        try:
            event = parse_event(raw)
            if event.entity == "order":
                return await self._handle_order(event)
            return await self._handle_item(event)
        except (MalformedEventError, ValidationError) as exc:
            logger.warning("malformed change event dropped: %s", exc)
            return ReconcileOutcome(applied=False, reason="malformed")

    async def _handle_order(self, event: ChangeEvent) -> ReconcileOutcome:
        record = OrderRecord.model_validate(event.row)
        if not record.id:
            raise MalformedEventError(f"{event.entity}.{event.operation} without id")
        order_id = record.id

        if record.restaurant_id is not None and not self.store.in_scope(record.restaurant_id):
            return ReconcileOutcome(applied=False, reason="out_of_scope", order_id=order_id)

        if event.operation == "insert":
            return await self._insert_order(event, record)

        if event.operation == "update":
            updated = self.store.replace(order_id, record.to_patch())
            if updated is None:
                return ReconcileOutcome(applied=False, reason="unknown_order", order_id=order_id)
            self._commit(notifications.order_updated(order_id, updated.status))
            return ReconcileOutcome(applied=True, reason="updated", order_id=order_id)

        removed = self.store.remove(order_id)
        if removed is None:
            return ReconcileOutcome(applied=False, reason="unknown_order", order_id=order_id)
        self._commit(notifications.order_removed(order_id))
        return ReconcileOutcome(applied=True, reason="removed", order_id=order_id)

    async def _insert_order(self, event: ChangeEvent, record: OrderRecord) -> ReconcileOutcome:
        if not record.restaurant_id:
            raise MalformedEventError(f"order insert {record.id} without restaurant_id")
        row = dict(event.row)
        if record.items is None:
            row["items"] = await self._lookup_items(record.id)
        order = Order.model_validate(row)

        self.store.insert(order)
        self._commit(notifications.new_order_received(order.id, order.customer_name))
        return ReconcileOutcome(applied=True, reason="inserted", order_id=order.id)

    async def _lookup_items(self, order_id: str) -> list[OrderItem]:
        known = self.store.get(order_id)
        try:
            return await self.backend.fetch_order_items(order_id)
        except BackendError as exc:
            logger.warning("item lookup failed for new order %s: %s", order_id, exc)
            return list(known.items) if known is not None else []

    def _parent_id(self, event: ChangeEvent) -> str | None:
        for row in (event.after, event.before):
            if row and row.get("order_id"):
                return str(row["order_id"])
        item_id = event.row.get("id")
        if item_id:
            parent = self.store.find_item_parent(str(item_id))
            if parent is not None:
                return parent.id
        return None

    async def _handle_item(self, event: ChangeEvent) -> ReconcileOutcome:
        OrderItemRecord.model_validate(event.row)
        parent_id = self._parent_id(event)
        if parent_id is None:
            if not event.row.get("id"):
                raise MalformedEventError(f"order_item.{event.operation} without id or order_id")
            return ReconcileOutcome(applied=False, reason="unknown_order")
        if parent_id not in self.store:
            return ReconcileOutcome(applied=False, reason="unknown_order", order_id=parent_id)

        try:
            items = await self.backend.fetch_order_items(parent_id)
        except BackendError as exc:
            logger.warning(
                "item refresh failed, keeping stale items: order_id=%s event=%s error=%s",
                parent_id,
                event.describe(),
                exc,
            )
            return ReconcileOutcome(applied=False, reason="item_fetch_failed", order_id=parent_id)

        # The parent may have been removed while the fetch was in flight.
        if self.store.replace(parent_id, {"items": items}) is None:
            return ReconcileOutcome(applied=False, reason="unknown_order", order_id=parent_id)
        self._commit()
        return ReconcileOutcome(applied=True, reason="items_refreshed", order_id=parent_id)

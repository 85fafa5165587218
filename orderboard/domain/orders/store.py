from __future__ import annotations

import logging
from typing import Any, Iterable

from orderboard.domain.orders.models import Order

logger = logging.getLogger(__name__)

ALL = "all"


class OrderStore:
    """Restaurant-scoped, de-duplicated list of orders, newest first.

    The store only holds state. Callers that mutate it are expected to
    recompute stats right after, without awaiting in between.
    """

    def __init__(self, restaurant_id: str | None = None):
        self.scope = restaurant_id
        self._orders: list[Order] = []

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return self._index(order_id) is not None

    def _index(self, order_id: object) -> int | None:
        for idx, order in enumerate(self._orders):
            if order.id == order_id:
                return idx
        return None

    def in_scope(self, restaurant_id: str | None) -> bool:
        if self.scope is None or restaurant_id is None:
            return True
        return restaurant_id == self.scope

    def orders(self) -> tuple[Order, ...]:
        return tuple(self._orders)

    def get(self, order_id: str) -> Order | None:
        idx = self._index(order_id)
        return None if idx is None else self._orders[idx]

    def find_item_parent(self, item_id: str) -> Order | None:
        for order in self._orders:
            if any(item.id == item_id for item in order.items):
                return order
        return None

    def load(self, orders: Iterable[Order]) -> None:
        seen: set[str] = set()
        loaded: list[Order] = []
        for order in orders:
            if order.id in seen:
                continue
            seen.add(order.id)
            loaded.append(order)
        self._orders = loaded

    def insert(self, order: Order) -> Order:
        idx = self._index(order.id)
        if idx is not None:
            # Bulk load and the feed can both introduce the same row.
            self._orders[idx] = order
            return order
        self._orders.insert(0, order)
        return order

    def replace(self, order_id: str, patch: dict[str, Any]) -> Order | None:
        idx = self._index(order_id)
        if idx is None:
            logger.info("replace skipped, order not loaded: order_id=%s", order_id)
            return None
        updated = self._orders[idx].merged(patch)
        self._orders[idx] = updated
        return updated

    def remove(self, order_id: str) -> Order | None:
        idx = self._index(order_id)
        if idx is None:
            return None
        return self._orders.pop(idx)

    def filter(
        self,
        search: str | None = None,
        status: str | None = None,
        order_type: str | None = None,
    ) -> list[Order]:
        needle = (search or "").strip().lower()
        out: list[Order] = []
        for order in self._orders:
            if needle:
                haystack = (
                    (order.customer_name or "").lower(),
                    order.id.lower(),
                    (order.customer_email or "").lower(),
                )
                if not any(needle in value for value in haystack):
                    continue
            if status and status != ALL and order.status != status:
                continue
            if order_type and order_type != ALL and order.order_type != order_type:
                continue
            out.append(order)
        return out

from __future__ import annotations

from typing import Protocol

from orderboard.domain.orders.models import CreateOrderData, Order, OrderItem, OrderRecord
from orderboard.realtime.feed import OrderFeed


class BackendError(RuntimeError):
    """A request to the order backend failed (transport, timeout or HTTP error)."""


class OrderBackend(Protocol):
    backend_name: str
    feed: OrderFeed | None

    async def fetch_orders(self, restaurant_id: str | None) -> list[Order]:
        """Every order in scope, newest first, items resolved."""
        ...

    async def fetch_orders_by_status(self, restaurant_id: str | None, status: str) -> list[Order]:
        ...

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        ...

    async def update_order_status(self, order_id: str, status: str) -> OrderRecord | None:
        """Persist a status change and return the updated row, without items."""
        ...

    async def create_order(self, restaurant_id: str, data: CreateOrderData) -> Order:
        ...

    async def aclose(self) -> None:
        ...

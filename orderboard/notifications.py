from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

from orderboard.domain.orders.models import utcnow

logger = logging.getLogger(__name__)

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Variant = "default"
    order_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant,
            "order_id": self.order_id,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
        }


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None:
        ...


class LoggingNotifier:
    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.variant == "destructive" else logging.INFO
        logger.log(level, "%s: %s", notification.title, notification.description)


class CollectingNotifier:
    """Keeps the most recent notifications for the back-office to poll."""

    def __init__(self, maxlen: int = 200):
        self._items: deque[Notification] = deque(maxlen=maxlen)

    def notify(self, notification: Notification) -> None:
        logger.debug("notification: %s", notification.title)
        self._items.append(notification)

    def recent(self, limit: int | None = None) -> list[Notification]:
        items = list(self._items)
        items.reverse()
        return items if limit is None else items[:limit]

    def titles(self) -> list[str]:
        return [item.title for item in self._items]

    def clear(self) -> None:
        self._items.clear()


def new_order_received(order_id: str, customer_name: str | None) -> Notification:
    return Notification(
        title="New Order Received",
        description=f"Order {order_id} from {customer_name or 'guest'}",
        order_id=order_id,
    )


def order_updated(order_id: str, status: str) -> Notification:
    return Notification(title="Order Updated", description=f"Order {order_id} is now {status}", order_id=order_id)


def order_removed(order_id: str) -> Notification:
    return Notification(title="Order Removed", description=f"Order {order_id} was removed", order_id=order_id)


def status_changed(order_id: str, status: str) -> Notification:
    return Notification(
        title="Order Status Updated",
        description=f"Order {order_id} status changed to {status}.",
        order_id=order_id,
    )


def status_change_failed(order_id: str) -> Notification:
    return Notification(
        title="Error",
        description="Failed to update order status. Please try again.",
        variant="destructive",
        order_id=order_id,
    )


def load_failed() -> Notification:
    return Notification(
        title="Error",
        description="Failed to load orders. Please try again.",
        variant="destructive",
    )

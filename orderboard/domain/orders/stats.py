from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from orderboard.domain.orders.models import ORDER_STATUSES, Order


@dataclass(frozen=True)
class StatsSnapshot:
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    preparing: int = 0
    ready: int = 0
    completed: int = 0
    cancelled: int = 0
    total_revenue: Decimal = Decimal("0")
    average_order_value: Decimal = Decimal("0")

    def count(self, status: str) -> int:
        if status not in ORDER_STATUSES:
            raise KeyError(status)
        return int(getattr(self, status))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "confirmed": self.confirmed,
            "preparing": self.preparing,
            "ready": self.ready,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "totalRevenue": float(self.total_revenue),
            "averageOrderValue": float(self.average_order_value),
        }


EMPTY_STATS = StatsSnapshot()


def compute_stats(
    orders: Iterable[Order],
    revenue_excluded_statuses: Iterable[str] = (),
) -> StatsSnapshot:
    excluded = frozenset(revenue_excluded_statuses)
    counts = dict.fromkeys(ORDER_STATUSES, 0)
    total = 0
    revenue = Decimal("0")
    revenue_orders = 0
    for order in orders:
        total += 1
        if order.status in counts:
            counts[order.status] += 1
        if order.status in excluded:
            continue
        revenue += order.total_amount
        revenue_orders += 1

    average = revenue / revenue_orders if revenue_orders else Decimal("0")
    return StatsSnapshot(
        total=total,
        total_revenue=revenue,
        average_order_value=average,
        **counts,
    )

from __future__ import annotations

from decimal import Decimal

from orderboard.domain.orders.stats import compute_stats
from orderboard.domain.orders.store import OrderStore


def test_empty_input_has_zero_average():
    stats = compute_stats([])

    assert stats.total == 0
    assert stats.total_revenue == 0
    assert stats.average_order_value == 0


def test_counts_revenue_and_average(make_order):
    orders = [
        make_order("A", "pending", 10),
        make_order("B", "confirmed", 20),
        make_order("C", "completed", 30),
        make_order("D", "pending", 15),
    ]

    stats = compute_stats(orders)

    assert stats.total == 4
    assert stats.pending == 2
    assert stats.confirmed == 1
    assert stats.completed == 1
    assert stats.cancelled == 0
    assert stats.total_revenue == Decimal("75")
    assert stats.average_order_value == Decimal("18.75")
    assert stats.to_dict()["averageOrderValue"] == 18.75


def test_unknown_status_counts_only_toward_total(make_order):
    stats = compute_stats([make_order("A", "pending", 10), make_order("B", "on_hold", 30)])

    assert stats.total == 2
    assert sum(stats.count(s) for s in ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")) == 1
    assert stats.total_revenue == Decimal("40")


def test_cancelled_orders_count_toward_revenue_by_default(make_order):
    stats = compute_stats([make_order("A", "cancelled", 50), make_order("B", "completed", 10)])

    assert stats.total_revenue == Decimal("60")


def test_revenue_exclusion_keeps_counts(make_order):
    orders = [make_order("A", "cancelled", 50), make_order("B", "completed", 10)]

    stats = compute_stats(orders, revenue_excluded_statuses={"cancelled"})

    assert stats.total == 2
    assert stats.cancelled == 1
    assert stats.total_revenue == Decimal("10")
    assert stats.average_order_value == Decimal("10")


def test_stats_after_mutations_match_recompute_from_scratch(make_order):
    store = OrderStore("r1")
    store.load([make_order("A", "pending", 10), make_order("B", "confirmed", 20)])
    store.insert(make_order("C", "pending", 7))
    store.replace("A", {"status": "confirmed"})
    store.insert(make_order("C", "preparing", 9))
    store.remove("B")
    store.replace("missing", {"status": "ready"})
    store.insert(make_order("D", "cancelled", 4))

    incremental = compute_stats(store.orders())
    rebuilt = OrderStore("r1")
    rebuilt.load([o.model_copy() for o in store.orders()])

    assert incremental == compute_stats(rebuilt.orders())
    assert incremental.total == 3
    assert incremental.total_revenue == Decimal("23")

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from orderboard.board.board import BulkLoadError, OrderBoard
from orderboard.domain.orders.models import OrderItem
from orderboard.notifications import CollectingNotifier
from orderboard.realtime.events import ChangeEvent, MalformedEventError, from_webhook_payload, parse_event


def _row(order, **changes):
    row = order.model_dump(mode="json", exclude={"items"})
    row.update(changes)
    return row


async def _loaded_board(fake_backend, orders, restaurant_id="r1"):
    fake_backend.orders = list(orders)
    notifier = CollectingNotifier()
    board = OrderBoard(fake_backend, restaurant_id=restaurant_id, notifier=notifier)
    await board.refresh()
    return board, notifier


def test_new_order_arrives_mid_session(fake_backend, make_order):
    async def scenario():
        board, notifier = await _loaded_board(
            fake_backend,
            [
                make_order("C", "completed", 30, minutes=3),
                make_order("B", "confirmed", 20, minutes=2),
                make_order("A", "pending", 10, minutes=1),
            ],
        )
        new_order = make_order("D", "pending", 15, minutes=4)

        outcome = await board.dispatch(
            {"entity": "order", "operation": "insert", "after": new_order.model_dump(mode="json")}
        )

        assert outcome.applied
        assert board.orders()[0].id == "D"
        assert board.stats.total == 4
        assert board.stats.pending == 2
        assert board.stats.total_revenue == Decimal("75")
        assert board.stats.average_order_value == Decimal("18.75")
        assert notifier.titles() == ["New Order Received"]
        assert "Guest D" in notifier.recent(1)[0].description

    asyncio.run(scenario())


def test_insert_without_items_looks_them_up(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [])
        fake_backend.items["N"] = [OrderItem(id="N-i1", order_id="N", menu_item_name="Pie", quantity=2, price=4)]

        await board.dispatch(
            {"entity": "order", "operation": "insert", "after": _row(make_order("N", total=8))}
        )

        assert [item.menu_item_name for item in board.get("N").items] == ["Pie"]

    asyncio.run(scenario())


def test_insert_with_failed_item_lookup_still_shows_order(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [])
        fake_backend.fail_items = True

        outcome = await board.dispatch(
            {"entity": "order", "operation": "insert", "after": _row(make_order("N"))}
        )

        assert outcome.applied
        assert board.get("N").items == []

    asyncio.run(scenario())


def test_duplicate_insert_from_load_race_is_an_upsert(fake_backend, make_order):
    async def scenario():
        order = make_order("A", "pending", 10)
        board, _ = await _loaded_board(fake_backend, [order])

        await board.dispatch({"entity": "order", "operation": "insert", "after": order.model_dump(mode="json")})

        assert [o.id for o in board.orders()] == ["A"]
        assert board.stats.total == 1

    asyncio.run(scenario())


def test_update_is_idempotent(fake_backend, make_order):
    async def scenario():
        order = make_order("A", "pending", 10)
        board, notifier = await _loaded_board(fake_backend, [order, make_order("B", "pending", 5)])
        event = {"entity": "order", "operation": "update", "after": _row(order, status="confirmed")}

        await board.dispatch(event)
        once = (board.orders(), board.stats)
        await board.dispatch(event)

        assert (board.orders(), board.stats) == once
        assert board.stats.pending == 1
        assert board.stats.confirmed == 1
        assert len(board.get("A").items) == 1
        assert notifier.recent(1)[0].description == "Order A is now confirmed"

    asyncio.run(scenario())


def test_update_for_unloaded_order_is_a_noop(fake_backend, make_order):
    async def scenario():
        board, notifier = await _loaded_board(fake_backend, [make_order("A")])

        outcome = await board.dispatch(
            {"entity": "order", "operation": "update", "after": {"id": "Z", "status": "ready"}}
        )

        assert not outcome.applied
        assert outcome.reason == "unknown_order"
        assert notifier.titles() == []

    asyncio.run(scenario())


def test_delete_for_unknown_id_leaves_store_unchanged(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A"), make_order("B")])

        outcome = await board.dispatch({"entity": "order", "operation": "delete", "before": {"id": "C"}})

        assert not outcome.applied
        assert [o.id for o in board.orders()] == ["A", "B"]

    asyncio.run(scenario())


def test_delete_removes_and_recomputes(fake_backend, make_order):
    async def scenario():
        board, notifier = await _loaded_board(fake_backend, [make_order("A", total=10), make_order("B", total=5)])

        await board.dispatch({"entity": "order", "operation": "delete", "before": {"id": "A"}})

        assert [o.id for o in board.orders()] == ["B"]
        assert board.stats.total_revenue == Decimal("5")
        assert notifier.titles() == ["Order Removed"]

    asyncio.run(scenario())


def _converged_state(backend, make_order, echo_first: bool):
    async def scenario():
        backend.orders = [make_order("A", "pending", 10), make_order("B", "ready", 5)]
        board = OrderBoard(backend, restaurant_id="r1", notifier=CollectingNotifier())
        await board.refresh()
        write = backend.update_order_status
        echoes: list[dict] = []

        async def write_with_echo(order_id, status):
            record = await write(order_id, status)
            echoes.append(
                {"entity": "order", "operation": "update", "after": record.model_dump(mode="json", exclude_unset=True)}
            )
            if echo_first:
                await board.dispatch(echoes[-1])
            return record

        backend.update_order_status = write_with_echo
        result = await board.transition("A", "confirmed")
        if not echo_first:
            await board.dispatch(echoes[-1])

        assert result.applied
        return board.orders(), board.stats

    return asyncio.run(scenario())


def test_echo_and_direct_apply_converge_in_either_order(fake_backend, make_order):
    echo_first = _converged_state(fake_backend, make_order, echo_first=True)
    echo_last = _converged_state(type(fake_backend)(), make_order, echo_first=False)

    assert echo_first == echo_last
    orders, stats = echo_first
    assert orders[0].status == "confirmed"
    assert orders[0].updated_at.hour == 13
    assert (stats.pending, stats.confirmed, stats.ready) == (0, 1, 1)


def test_item_event_refetches_parent_items(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A")])
        fake_backend.items["A"] = [
            OrderItem(id="A-i1", order_id="A", menu_item_name="Soup", quantity=1, price=10),
            OrderItem(id="A-i2", order_id="A", menu_item_name="Bread", quantity=2, price=1),
        ]

        outcome = await board.dispatch(
            {"entity": "order_item", "operation": "insert", "after": {"id": "A-i2", "order_id": "A"}}
        )

        assert outcome.applied
        assert [item.id for item in board.get("A").items] == ["A-i1", "A-i2"]

    asyncio.run(scenario())


def test_item_delete_finds_parent_from_loaded_items(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A")])
        fake_backend.items["A"] = []

        outcome = await board.dispatch({"entity": "order_item", "operation": "delete", "before": {"id": "A-i1"}})

        assert outcome.applied
        assert board.get("A").items == []

    asyncio.run(scenario())


def test_item_refetch_failure_keeps_stale_items(fake_backend, make_order):
    async def scenario():
        board, notifier = await _loaded_board(fake_backend, [make_order("A")])
        fake_backend.fail_items = True

        outcome = await board.dispatch(
            {"entity": "order_item", "operation": "update", "after": {"id": "A-i1", "order_id": "A"}}
        )

        assert not outcome.applied
        assert outcome.reason == "item_fetch_failed"
        assert [item.id for item in board.get("A").items] == ["A-i1"]
        assert notifier.titles() == []

    asyncio.run(scenario())


def test_item_event_for_unloaded_parent_skips_fetch(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A")])

        outcome = await board.dispatch(
            {"entity": "order_item", "operation": "insert", "after": {"id": "X-i1", "order_id": "X"}}
        )

        assert not outcome.applied
        assert fake_backend.network_calls("fetch_order_items") == []

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "raw",
    [
        {"entity": "order", "operation": "insert"},
        {"entity": "order", "operation": "update", "after": {"status": "ready"}},
        {"entity": "order", "operation": "insert", "after": {"id": "N"}},
        {"entity": "order", "operation": "upsert", "after": {"id": "N"}},
        {"entity": "order", "operation": "update", "after": {"id": "A", "total_amount": -1}},
        {"entity": "order_item", "operation": "insert", "after": {"quantity": 1}},
        ["not", "a", "dict"],
    ],
)
def test_malformed_events_are_dropped(fake_backend, make_order, raw):
    async def scenario():
        board, notifier = await _loaded_board(fake_backend, [make_order("A")])
        before = board.orders()

        outcome = await board.dispatch(raw)

        assert not outcome.applied
        assert outcome.reason == "malformed"
        assert board.orders() == before
        assert notifier.titles() == []

    asyncio.run(scenario())


def test_rows_for_other_restaurants_are_ignored(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A")])
        foreign = make_order("F", restaurant_id="r2")

        outcome = await board.dispatch({"entity": "order", "operation": "insert", "after": foreign.model_dump(mode="json")})

        assert outcome.reason == "out_of_scope"
        assert len(board.orders()) == 1

    asyncio.run(scenario())


def test_super_admin_board_accepts_every_restaurant(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(
            fake_backend,
            [make_order("A", restaurant_id="r1"), make_order("B", restaurant_id="r2")],
            restaurant_id=None,
        )
        await board.dispatch(
            {"entity": "order", "operation": "insert", "after": make_order("C", restaurant_id="r3").model_dump(mode="json")}
        )
        assert board.stats.total == 3

    asyncio.run(scenario())


def test_failed_bulk_load_keeps_last_known_orders(fake_backend, make_order):
    async def scenario():
        board, notifier = await _loaded_board(fake_backend, [make_order("A"), make_order("B")])
        fake_backend.fail_load = True

        with pytest.raises(BulkLoadError):
            await board.refresh()

        assert [o.id for o in board.orders()] == ["A", "B"]
        assert board.stats.total == 2
        assert notifier.recent(1)[0].description == "Failed to load orders. Please try again."

    asyncio.run(scenario())


def test_listeners_see_each_commit_and_can_unsubscribe(fake_backend, make_order):
    async def scenario():
        board, _ = await _loaded_board(fake_backend, [make_order("A")])
        seen: list[int] = []

        def broken(orders, stats):
            raise RuntimeError("render failed")

        board.subscribe(broken)
        unsubscribe = board.subscribe(lambda orders, stats: seen.append(stats.total))

        await board.dispatch({"entity": "order", "operation": "insert", "after": make_order("B").model_dump(mode="json")})
        unsubscribe()
        await board.dispatch({"entity": "order", "operation": "delete", "before": {"id": "B"}})

        assert seen == [2]
        assert board.stats.total == 1

    asyncio.run(scenario())


def test_webhook_payload_translation():
    event = from_webhook_payload(
        {"type": "UPDATE", "table": "orders", "record": {"id": "A", "status": "ready"}, "old_record": {"id": "A"}}
    )
    assert (event.entity, event.operation) == ("order", "update")
    assert event.row["status"] == "ready"

    deleted = parse_event({"type": "DELETE", "table": "order_items", "record": None, "old_record": {"id": "i1"}})
    assert (deleted.entity, deleted.operation, deleted.row) == ("order_item", "delete", {"id": "i1"})

    with pytest.raises(MalformedEventError):
        from_webhook_payload({"type": "INSERT", "table": "menu_items", "record": {"id": "m1"}})

    assert isinstance(parse_event(event), ChangeEvent)

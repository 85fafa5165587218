from __future__ import annotations

import asyncio

from orderboard.backend.sql import SqlOrderBackend
from orderboard.board.board import OrderBoard
from orderboard.demo.sample_orders import sample_order, seed_sample_orders
from orderboard.notifications import CollectingNotifier
from orderboard.realtime.feed import FeedSubscription, LocalFeed


async def _attached_board(restaurant_id="r1"):
    backend = SqlOrderBackend()
    notifier = CollectingNotifier()
    board = OrderBoard(backend, restaurant_id=restaurant_id, notifier=notifier)
    subscription = board.attach(backend.feed)
    await board.refresh()
    return backend, board, subscription, notifier


def test_created_order_reaches_board_with_items():
    async def scenario():
        backend, board, subscription, notifier = await _attached_board()
        data = sample_order(2)

        order = await backend.create_order("r1", data)
        await subscription.drain()

        live = board.get(order.id)
        assert live is not None
        assert [item.menu_item_name for item in live.items] == [item.menu_item_name for item in data.items]
        assert board.stats.total == 1
        assert board.stats.pending == 1
        assert board.stats.total_revenue == data.total_amount
        assert notifier.titles() == ["New Order Received"]
        await board.close()

    asyncio.run(scenario())


def test_orders_for_other_restaurants_stay_off_the_board():
    async def scenario():
        backend, board, subscription, _ = await _attached_board()

        await backend.create_order("r2", sample_order(0))
        await subscription.drain()

        assert board.orders() == ()
        await board.close()

    asyncio.run(scenario())


def test_status_change_and_its_echo_leave_one_consistent_row():
    async def scenario():
        backend, board, subscription, notifier = await _attached_board()
        (order,) = await seed_sample_orders(backend, "r1", count=1)
        await subscription.drain()

        result = await board.transition(order.id, "confirmed")
        await subscription.drain()

        assert result.applied
        assert board.get(order.id).status == "confirmed"
        assert (board.stats.pending, board.stats.confirmed) == (0, 1)
        assert "Order Status Updated" in notifier.titles()
        assert len(board.orders()) == 1

        fresh = await backend.fetch_orders("r1")
        assert fresh[0].status == "confirmed"
        assert board.get(order.id).updated_at == fresh[0].updated_at
        await board.close()

    asyncio.run(scenario())


def test_deleted_order_leaves_board():
    async def scenario():
        backend, board, subscription, notifier = await _attached_board()
        first, second = await seed_sample_orders(backend, "r1", count=2)
        await subscription.drain()

        assert await backend.delete_order(first.id)
        await subscription.drain()

        assert [o.id for o in board.orders()] == [second.id]
        assert notifier.titles()[-1] == "Order Removed"
        await board.close()

    asyncio.run(scenario())


def test_closed_board_stops_applying_events():
    async def scenario():
        backend, board, subscription, _ = await _attached_board()
        await seed_sample_orders(backend, "r1", count=1)
        await subscription.drain()
        assert backend.feed.listener_count == 1

        await board.close()
        await backend.create_order("r1", sample_order(5))

        assert backend.feed.listener_count == 0
        assert not subscription.active
        assert board.stats.total == 1
        assert (await board.dispatch({"entity": "order", "operation": "delete", "before": {"id": "x"}})).reason == "closed"

    asyncio.run(scenario())


def test_subscription_survives_a_failing_dispatch():
    async def scenario():
        feed = LocalFeed()
        seen: list[str] = []

        async def dispatch(event):
            if event["id"] == "bad":
                raise RuntimeError("handler crashed")
            seen.append(event["id"])

        subscription = FeedSubscription(feed.listen(), dispatch)
        for event_id in ("a", "bad", "b"):
            feed.publish({"id": event_id})
        await subscription.drain()

        assert seen == ["a", "b"]
        assert subscription.active
        await subscription.close()
        assert feed.listener_count == 0

    asyncio.run(scenario())


def test_each_listener_sees_events_in_publish_order():
    async def scenario():
        feed = LocalFeed()
        first, second = feed.listen(), feed.listen()
        for n in range(3):
            feed.publish({"n": n})
        first.close()
        feed.publish({"n": 3})
        second.close()

        assert [event["n"] async for event in first] == [0, 1, 2]
        assert [event["n"] async for event in second] == [0, 1, 2, 3]

    asyncio.run(scenario())

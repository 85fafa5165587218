from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from orderboard.api.deps import get_board, get_notifier
from orderboard.board.board import OrderBoard
from orderboard.domain.orders.models import Order, OrderStatus
from orderboard.domain.orders.transitions import OrderNotFoundError, next_statuses
from orderboard.notifications import CollectingNotifier

router = APIRouter(tags=["orders"])


class StatusChangeRequest(BaseModel):
    status: OrderStatus


def _order_json(order: Order) -> dict:
    payload = order.model_dump(mode="json")
    payload["next_statuses"] = sorted(next_statuses(order.status))
    return payload


@router.get("/orders")
async def list_orders(
    search: str | None = Query(default=None),
    status: str | None = Query(default=None),
    order_type: str | None = Query(default=None),
    board: OrderBoard = Depends(get_board),
):
    rows = board.filter(search=search, status=status, order_type=order_type)
    return {
        "restaurant_id": board.restaurant_id,
        "count": len(rows),
        "orders": [_order_json(order) for order in rows],
    }


@router.get("/orders/stats")
async def order_stats(board: OrderBoard = Depends(get_board)):
    return {"restaurant_id": board.restaurant_id, "stats": board.stats.to_dict()}


@router.post("/orders/refresh")
async def refresh_orders(board: OrderBoard = Depends(get_board)):
    stats = await board.refresh()
    return {"restaurant_id": board.restaurant_id, "count": stats.total, "stats": stats.to_dict()}


@router.get("/orders/{order_id}")
async def get_order(order_id: str, board: OrderBoard = Depends(get_board)):
    order = board.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="order not found")
    return _order_json(order)


@router.post("/orders/{order_id}/status")
async def change_order_status(
    order_id: str,
    body: StatusChangeRequest,
    board: OrderBoard = Depends(get_board),
):
    result = await board.transition(order_id, body.status)
    if not result.applied:
        raise HTTPException(status_code=502, detail=result.error or "status update failed")
    if result.order is None:
        # Written remotely, but the order left this board before it could be applied.
        raise OrderNotFoundError(order_id)
    return {
        "order_id": order_id,
        "from_status": result.from_status,
        "to_status": result.to_status,
        "order": _order_json(result.order),
        "stats": board.stats.to_dict(),
    }


@router.get("/notifications")
async def list_notifications(
    limit: int = Query(default=50, ge=1, le=500),
    notifier: CollectingNotifier = Depends(get_notifier),
):
    items = notifier.recent(limit)
    return {"count": len(items), "notifications": [item.to_dict() for item in items]}

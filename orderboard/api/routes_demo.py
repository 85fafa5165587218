from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from orderboard.api.deps import get_registry
from orderboard.backend.sql import SqlOrderBackend
from orderboard.board.registry import BoardRegistry
from orderboard.core.config import get_settings
from orderboard.demo.sample_orders import seed_sample_orders

router = APIRouter(tags=["demo"])


@router.post("/demo/seed")
async def demo_seed(
    count: int = Query(default=8, ge=1, le=100),
    restaurant_id: str | None = Query(default=None),
    registry: BoardRegistry = Depends(get_registry),
):
    backend = registry.backend
    if not isinstance(backend, SqlOrderBackend):
        raise HTTPException(status_code=409, detail="demo seeding requires the sql backend")
    target = restaurant_id or get_settings().staff_restaurant_id
    created = await seed_sample_orders(backend, target, count=count)
    return {
        "restaurant_id": target,
        "created": len(created),
        "order_ids": [order.id for order in created],
    }

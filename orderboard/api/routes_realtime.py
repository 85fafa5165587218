from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from orderboard.api.deps import get_registry
from orderboard.board.registry import BoardRegistry
from orderboard.core.security import verify_webhook_secret
from orderboard.realtime.events import parse_event

router = APIRouter(tags=["realtime"])


@router.post("/realtime/webhook", dependencies=[Depends(verify_webhook_secret)])
async def ingest_change(
    payload: dict[str, Any] = Body(...),
    registry: BoardRegistry = Depends(get_registry),
):
    event = parse_event(payload)
    outcomes = await registry.broadcast(event)
    return {
        "event": event.describe(),
        "boards": len(outcomes),
        "applied": sum(1 for outcome in outcomes if outcome.applied),
        "outcomes": [
            {"applied": outcome.applied, "reason": outcome.reason, "order_id": outcome.order_id}
            for outcome in outcomes
        ],
    }

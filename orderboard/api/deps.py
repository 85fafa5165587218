from __future__ import annotations

from fastapi import Depends, Request

from orderboard.board.board import OrderBoard
from orderboard.board.registry import BoardRegistry
from orderboard.core.security import Actor, get_actor
from orderboard.notifications import CollectingNotifier


def get_registry(request: Request) -> BoardRegistry:
    return request.app.state.registry


def get_notifier(request: Request) -> CollectingNotifier:
    return request.app.state.notifier


async def get_board(
    actor: Actor = Depends(get_actor),
    registry: BoardRegistry = Depends(get_registry),
) -> OrderBoard:
    return await registry.get(actor.scope)

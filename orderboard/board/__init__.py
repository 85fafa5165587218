from orderboard.board.board import BulkLoadError, OrderBoard
from orderboard.board.controller import StatusTransitionController, TransitionResult
from orderboard.board.registry import BoardRegistry

__all__ = [
    "BoardRegistry",
    "BulkLoadError",
    "OrderBoard",
    "StatusTransitionController",
    "TransitionResult",
]

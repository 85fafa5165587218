from __future__ import annotations

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"preparing"}),
    "preparing": frozenset({"ready"}),
    "ready": frozenset({"completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


class OrderNotFoundError(KeyError):
    def __init__(self, order_id: str):
        super().__init__(order_id)
        self.order_id = order_id

    def __str__(self) -> str:
        return f"order not found: {self.order_id}"


class TransitionRejectedError(ValueError):
    def __init__(self, order_id: str, current: str, target: str, reason: str):
        super().__init__(reason)
        self.order_id = order_id
        self.current = current
        self.target = target


class IllegalTransitionError(TransitionRejectedError):
    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(order_id, current, target, f"illegal transition {current} -> {target} for order {order_id}")


class TransitionInFlightError(TransitionRejectedError):
    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(order_id, current, target, f"status change already in flight for order {order_id}")


def next_statuses(current: str) -> frozenset[str]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def can_transition(current: str, target: str) -> bool:
    return target in next_statuses(current)

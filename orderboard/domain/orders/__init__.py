from orderboard.domain.orders.models import (
    ORDER_STATUSES,
    ORDER_TYPES,
    CreateOrderData,
    CreateOrderItem,
    Order,
    OrderItem,
    OrderItemRecord,
    OrderRecord,
)
from orderboard.domain.orders.stats import EMPTY_STATS, StatsSnapshot, compute_stats
from orderboard.domain.orders.store import OrderStore
from orderboard.domain.orders.transitions import (
    ALLOWED_TRANSITIONS,
    IllegalTransitionError,
    OrderNotFoundError,
    TransitionInFlightError,
    TransitionRejectedError,
    can_transition,
    next_statuses,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "EMPTY_STATS",
    "ORDER_STATUSES",
    "ORDER_TYPES",
    "CreateOrderData",
    "CreateOrderItem",
    "IllegalTransitionError",
    "Order",
    "OrderItem",
    "OrderItemRecord",
    "OrderNotFoundError",
    "OrderRecord",
    "OrderStore",
    "StatsSnapshot",
    "TransitionInFlightError",
    "TransitionRejectedError",
    "can_transition",
    "compute_stats",
    "next_statuses",
]

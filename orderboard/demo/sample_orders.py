from __future__ import annotations

from decimal import Decimal

from orderboard.backend.sql import SqlOrderBackend
from orderboard.domain.orders.models import CreateOrderData, CreateOrderItem, Order

SAMPLE_MENU: tuple[tuple[str, str, Decimal], ...] = (
    ("menu-margherita", "Margherita Pizza", Decimal("12.50")),
    ("menu-carbonara", "Spaghetti Carbonara", Decimal("14.00")),
    ("menu-caesar", "Caesar Salad", Decimal("9.75")),
    ("menu-tiramisu", "Tiramisu", Decimal("6.50")),
    ("menu-lemonade", "Fresh Lemonade", Decimal("3.25")),
)

ORDER_TYPES = ("dine_in", "takeaway", "delivery")


def sample_order(index: int) -> CreateOrderData:
    picks = [SAMPLE_MENU[(index + offset) % len(SAMPLE_MENU)] for offset in range(1 + index % 3)]
    items = [
        CreateOrderItem(menu_item_id=menu_id, menu_item_name=name, quantity=1 + (index + pos) % 2, price=price)
        for pos, (menu_id, name, price) in enumerate(picks)
    ]
    subtotal = sum((item.price * item.quantity for item in items), Decimal("0"))
    tax = (subtotal * Decimal("0.08")).quantize(Decimal("0.01"))
    order_type = ORDER_TYPES[index % len(ORDER_TYPES)]
    return CreateOrderData(
        customer_name=f"Customer {index + 1}",
        customer_email=f"customer{index + 1}@example.com",
        customer_phone=f"+1-555-{100 + index:03d}-{1000 + index * 7:04d}",
        order_type=order_type,
        items=items,
        total_amount=subtotal + tax,
        tax_amount=tax,
        table_number=str(1 + index % 12) if order_type == "dine_in" else None,
        delivery_address=f"{10 + index} Market Street" if order_type == "delivery" else None,
        notes="Special instructions" if index % 4 == 3 else None,
    )


async def seed_sample_orders(backend: SqlOrderBackend, restaurant_id: str, count: int = 8) -> list[Order]:
    created: list[Order] = []
    for index in range(count):
        created.append(await backend.create_order(restaurant_id, sample_order(index)))
    return created

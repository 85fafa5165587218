from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

import orderboard.persistence.db as db
from orderboard.backend.base import BackendError
from orderboard.core.config import get_settings
from orderboard.domain.orders.models import CreateOrderData, Order, OrderItem, OrderRecord
from orderboard.persistence.models import OrderItemModel, OrderModel

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeBackend:
    """Scriptable stand-in for the hosted order table."""

    backend_name = "fake"

    def __init__(self) -> None:
        self.feed = None
        self.orders: list[Order] = []
        self.items: dict[str, list[OrderItem]] = {}
        self.calls: list[tuple] = []
        self.fail_load = False
        self.fail_items = False
        self.fail_status = False

    async def fetch_orders(self, restaurant_id: str | None) -> list[Order]:
        self.calls.append(("fetch_orders", restaurant_id))
        if self.fail_load:
            raise BackendError("connection reset")
        return [o for o in self.orders if restaurant_id is None or o.restaurant_id == restaurant_id]

    async def fetch_orders_by_status(self, restaurant_id: str | None, status: str) -> list[Order]:
        self.calls.append(("fetch_orders_by_status", restaurant_id, status))
        return [o for o in await self.fetch_orders(restaurant_id) if o.status == status]

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        self.calls.append(("fetch_order_items", order_id))
        if self.fail_items:
            raise BackendError("timeout")
        return list(self.items.get(order_id, []))

    async def update_order_status(self, order_id: str, status: str) -> OrderRecord | None:
        self.calls.append(("update_order_status", order_id, status))
        if self.fail_status:
            raise BackendError("timeout")
        return OrderRecord(id=order_id, status=status, updated_at=BASE_TIME + timedelta(hours=1))

    async def create_order(self, restaurant_id: str, data: CreateOrderData) -> Order:
        raise BackendError("create_order not supported by fake backend")

    async def aclose(self) -> None:
        return None

    def network_calls(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


def build_order(
    order_id: str,
    status: str = "pending",
    total: str | int = "10",
    restaurant_id: str = "r1",
    minutes: int = 0,
    **extra,
) -> Order:
    created = BASE_TIME + timedelta(minutes=minutes)
    data = {
        "id": order_id,
        "restaurant_id": restaurant_id,
        "customer_name": f"Guest {order_id}",
        "customer_email": f"{order_id.lower()}@example.com",
        "status": status,
        "total_amount": Decimal(str(total)),
        "items": [{"id": f"{order_id}-i1", "order_id": order_id, "menu_item_name": "Soup", "quantity": 1, "price": total}],
        "created_at": created,
        "updated_at": created,
    }
    data.update(extra)
    return Order.model_validate(data)


@pytest.fixture()
def make_order():
    return build_order


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.backend_mode = "sql"

    db.configure_engine(f"sqlite+pysqlite:///{test_db_path}")
    db.drop_db()
    db.init_db()
    yield
    db.drop_db()


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    yield
    with db.session_scope() as s:
        s.execute(delete(OrderItemModel))
        s.execute(delete(OrderModel))


@pytest.fixture()
def client(configure_test_engine):
    from orderboard.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_headers():
    settings = get_settings()
    return {
        "staff": {"X-API-Key": settings.staff_api_key},
        "super_admin": {"X-API-Key": settings.super_admin_api_key},
        "webhook": {"X-Webhook-Secret": settings.webhook_secret},
    }

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from orderboard.backend.base import BackendError
from orderboard.domain.orders.models import CreateOrderData, Order, OrderItem, OrderRecord, utcnow
from orderboard.persistence import db
from orderboard.persistence.models import OrderItemModel, OrderModel
from orderboard.realtime.events import ChangeEvent
from orderboard.realtime.feed import LocalFeed

logger = logging.getLogger(__name__)

ORDER_COLUMNS = (
    "id",
    "restaurant_id",
    "customer_name",
    "customer_email",
    "customer_phone",
    "order_type",
    "status",
    "total_amount",
    "tax_amount",
    "tip_amount",
    "delivery_address",
    "table_number",
    "notes",
    "created_at",
    "updated_at",
    "estimated_delivery",
    "actual_delivery",
)
ITEM_COLUMNS = ("id", "order_id", "menu_item_id", "menu_item_name", "quantity", "price", "notes")


def _order_row(model: OrderModel) -> dict[str, Any]:
    return {column: getattr(model, column) for column in ORDER_COLUMNS}


def _item_row(model: OrderItemModel) -> dict[str, Any]:
    return {column: getattr(model, column) for column in ITEM_COLUMNS}


def _to_order(model: OrderModel) -> Order:
    row = _order_row(model)
    row["items"] = [_item_row(item) for item in model.items]
    return Order.model_validate(row)


class SqlOrderBackend:
    """Local order table on SQLAlchemy that emits change events like the hosted feed.

    Sessions are synchronous, so each call blocks the event loop while it runs.
    Meant for development and tests; production boards use the REST backend.
    """

    backend_name = "sql"

    def __init__(self, feed: LocalFeed | None = None):
        self.feed = feed or LocalFeed()

    def _scoped(self, restaurant_id: str | None):
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .order_by(desc(OrderModel.created_at), OrderModel.id)
        )
        if restaurant_id is not None:
            stmt = stmt.where(OrderModel.restaurant_id == restaurant_id)
        return stmt

    def _run(self, label: str, fn):
        try:
            with db.session_scope() as session:
                return fn(session)
        except SQLAlchemyError as exc:
            raise BackendError(f"{label} failed: {exc}") from exc

    async def fetch_orders(self, restaurant_id: str | None) -> list[Order]:
        def query(session: Session) -> list[Order]:
            return [_to_order(row) for row in session.scalars(self._scoped(restaurant_id)).all()]

        return self._run("fetch_orders", query)

    async def fetch_orders_by_status(self, restaurant_id: str | None, status: str) -> list[Order]:
        def query(session: Session) -> list[Order]:
            stmt = self._scoped(restaurant_id).where(OrderModel.status == status)
            return [_to_order(row) for row in session.scalars(stmt).all()]

        return self._run("fetch_orders_by_status", query)

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        def query(session: Session) -> list[OrderItem]:
            stmt = (
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.seq_id.asc())
            )
            return [OrderItem.model_validate(_item_row(row)) for row in session.scalars(stmt).all()]

        return self._run("fetch_order_items", query)

    async def update_order_status(self, order_id: str, status: str) -> OrderRecord | None:
        def update(session: Session) -> tuple[dict[str, Any], dict[str, Any]]:
            row = session.get(OrderModel, order_id)
            if row is None:
                raise BackendError(f"order {order_id} not found on backend")
            before = _order_row(row)
            row.status = status
            row.updated_at = utcnow()
            if status == "completed" and row.actual_delivery is None:
                row.actual_delivery = row.updated_at
            session.flush()
            return before, _order_row(row)

        before, after = self._run("update_order_status", update)
        self.feed.publish(ChangeEvent(entity="order", operation="update", before=before, after=after))
        return OrderRecord.model_validate(after)

    async def create_order(self, restaurant_id: str, data: CreateOrderData) -> Order:
        def insert(session: Session) -> tuple[dict[str, Any], list[dict[str, Any]], Order]:
            now = utcnow()
            row = OrderModel(
                restaurant_id=restaurant_id,
                status="pending",
                created_at=now,
                updated_at=now,
                **data.model_dump(exclude={"items"}),
            )
            session.add(row)
            session.flush()
            for item in data.items:
                session.add(OrderItemModel(order_id=row.id, **item.model_dump()))
            session.flush()
            session.refresh(row)
            return _order_row(row), [_item_row(item) for item in row.items], _to_order(row)

        order_row, item_rows, order = self._run("create_order", insert)
        # Same order as the hosted backend: the order row lands before its items.
        self.feed.publish(ChangeEvent(entity="order", operation="insert", after=order_row))
        for item_row in item_rows:
            self.feed.publish(ChangeEvent(entity="order_item", operation="insert", after=item_row))
        logger.info("order created: order_id=%s restaurant_id=%s", order.id, restaurant_id)
        return order

    async def delete_order(self, order_id: str) -> bool:
        def delete(session: Session) -> bool:
            row = session.get(OrderModel, order_id)
            if row is None:
                return False
            session.delete(row)
            return True

        deleted = self._run("delete_order", delete)
        if deleted:
            self.feed.publish(ChangeEvent(entity="order", operation="delete", before={"id": order_id}))
        return deleted

    async def aclose(self) -> None:
        return None

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

OrderStatus = Literal["pending", "confirmed", "preparing", "ready", "completed", "cancelled"]
OrderType = Literal["dine_in", "takeaway", "delivery"]

ORDER_STATUSES: tuple[str, ...] = ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")
ORDER_TYPES: tuple[str, ...] = ("dine_in", "takeaway", "delivery")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    order_id: str | None = None
    menu_item_id: str | None = None
    menu_item_name: str | None = None
    quantity: int = Field(default=1, gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0, validation_alias=AliasChoices("price", "unit_price"))
    notes: str | None = Field(default=None, validation_alias=AliasChoices("notes", "special_instructions"))

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    restaurant_id: str
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    order_type: str = "dine_in"
    # Kept as a plain string: rows with statuses outside ORDER_STATUSES still
    # show up in the list and in the total count.
    status: str = "pending"
    items: list[OrderItem] = Field(default_factory=list, validation_alias=AliasChoices("items", "order_items"))
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    tip_amount: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_address: str | None = None
    table_number: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None

    @field_validator("created_at", "updated_at", "estimated_delivery", "actual_delivery")
    @classmethod
    def _normalize_datetimes(cls, value: datetime | None) -> datetime | None:
        return _to_utc(value)

    @field_validator("table_number", mode="before")
    @classmethod
    def _table_number_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    def merged(self, patch: dict[str, Any]) -> Order:
        """Shallow merge: keys in ``patch`` overwrite, absent keys are kept."""
        data = self.model_dump()
        data.update(patch)
        return Order.model_validate(data)


class OrderRecord(BaseModel):
    """Partial ``orders`` row as carried by change events."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    restaurant_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    order_type: str | None = None
    status: str | None = None
    items: list[OrderItem] | None = Field(default=None, validation_alias=AliasChoices("items", "order_items"))
    total_amount: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal | None = Field(default=None, ge=0)
    tip_amount: Decimal | None = Field(default=None, ge=0)
    delivery_address: str | None = None
    table_number: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None

    @field_validator("table_number", mode="before")
    @classmethod
    def _table_number_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    def to_patch(self) -> dict[str, Any]:
        patch = self.model_dump(exclude_unset=True)
        patch.pop("id", None)
        if patch.get("items") is None:
            # A row without embedded items never clears the known item list.
            patch.pop("items", None)
        return patch


class OrderItemRecord(BaseModel):
    """Partial ``order_items`` row as carried by change events."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    order_id: str | None = None


class CreateOrderItem(BaseModel):
    menu_item_id: str | None = None
    menu_item_name: str
    quantity: int = Field(default=1, gt=0)
    price: Decimal = Field(ge=0)
    notes: str | None = None


class CreateOrderData(BaseModel):
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    order_type: OrderType = "dine_in"
    items: list[CreateOrderItem] = Field(min_length=1)
    total_amount: Decimal = Field(ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    tip_amount: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_address: str | None = None
    table_number: str | None = None
    notes: str | None = None
    estimated_delivery: datetime | None = None

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ValidationError, model_validator

EntityName = Literal["order", "order_item"]
Operation = Literal["insert", "update", "delete"]

TABLE_ENTITIES: dict[str, str] = {
    "orders": "order",
    "order_items": "order_item",
}


class MalformedEventError(ValueError):
    pass


class ChangeEvent(BaseModel):
    """Row-level change notification for an order or one of its items."""

    entity: EntityName
    operation: Operation
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _row_present(self) -> ChangeEvent:
        if self.operation in {"insert", "update"} and not self.after:
            raise ValueError(f"{self.operation} event requires an 'after' row")
        if self.operation == "delete" and not (self.before or self.after):
            raise ValueError("delete event requires a 'before' row")
        return self

    @property
    def row(self) -> dict[str, Any]:
        if self.operation == "delete":
            return self.before or self.after or {}
        return self.after or {}

    def describe(self) -> str:
        return f"{self.entity}.{self.operation} id={self.row.get('id')}"


def from_webhook_payload(payload: dict[str, Any]) -> ChangeEvent:
    """Translate a database webhook body (``type``/``table``/``record``/``old_record``)."""
    table = str(payload.get("table") or "")
    entity = TABLE_ENTITIES.get(table)
    if entity is None:
        raise MalformedEventError(f"unsupported table: {table!r}")
    operation = str(payload.get("type") or "").lower()
    try:
        return ChangeEvent(
            entity=entity,
            operation=operation,
            before=payload.get("old_record"),
            after=payload.get("record"),
        )
    except ValidationError as exc:
        raise MalformedEventError(str(exc)) from exc


def parse_event(raw: ChangeEvent | dict[str, Any]) -> ChangeEvent:
    if isinstance(raw, ChangeEvent):
        return raw
    if not isinstance(raw, dict):
        raise MalformedEventError(f"unsupported event payload type: {type(raw).__name__}")
    if "table" in raw and "type" in raw:
        return from_webhook_payload(raw)
    try:
        return ChangeEvent.model_validate(raw)
    except ValidationError as exc:
        raise MalformedEventError(str(exc)) from exc

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from orderboard.backend.base import BackendError
from orderboard.core.config import Settings, get_settings
from orderboard.domain.orders.models import CreateOrderData, Order, OrderItem, OrderRecord, utcnow

logger = logging.getLogger(__name__)

ITEM_COLUMNS = "id,order_id,menu_item_id,menu_item_name,quantity,price,notes"
ORDER_SELECT = f"*,order_items({ITEM_COLUMNS})"


class RestOrderBackend:
    """Order table access through the hosted backend's REST interface."""

    backend_name = "rest"
    feed = None

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.rest_base_url.rstrip("/")
        self.timeout = max(1, self.settings.request_timeout_seconds)
        self._transport = transport

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.settings.rest_api_key:
            headers["apikey"] = self.settings.rest_api_key
            headers["Authorization"] = f"Bearer {self.settings.rest_api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    headers=self._headers(prefer),
                    json=json_body,
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc
        if not response.content:
            return []
        payload = response.json()
        if isinstance(payload, list):
            return [row for row in payload if isinstance(row, dict)]
        if isinstance(payload, dict):
            return [payload]
        raise BackendError(f"{method} {path} returned unexpected payload: {payload!r}")

    @staticmethod
    def _orders(rows: list[dict[str, Any]]) -> list[Order]:
        try:
            return [Order.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise BackendError(f"malformed order rows: {exc}") from exc

    def _scoped_params(self, restaurant_id: str | None) -> dict[str, str]:
        params = {"select": ORDER_SELECT, "order": "created_at.desc"}
        if restaurant_id is not None:
            params["restaurant_id"] = f"eq.{restaurant_id}"
        return params

    async def fetch_orders(self, restaurant_id: str | None) -> list[Order]:
        rows = await self._request("GET", "/rest/v1/orders", params=self._scoped_params(restaurant_id))
        return self._orders(rows)

    async def fetch_orders_by_status(self, restaurant_id: str | None, status: str) -> list[Order]:
        params = self._scoped_params(restaurant_id)
        params["status"] = f"eq.{status}"
        rows = await self._request("GET", "/rest/v1/orders", params=params)
        return self._orders(rows)

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        rows = await self._request(
            "GET",
            "/rest/v1/order_items",
            params={"select": ITEM_COLUMNS, "order_id": f"eq.{order_id}"},
        )
        try:
            return [OrderItem.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise BackendError(f"malformed order item rows: {exc}") from exc

    async def update_order_status(self, order_id: str, status: str) -> OrderRecord | None:
        rows = await self._request(
            "PATCH",
            "/rest/v1/orders",
            params={"id": f"eq.{order_id}"},
            json_body={"status": status, "updated_at": utcnow().isoformat()},
            prefer="return=representation",
        )
        if not rows:
            raise BackendError(f"order {order_id} not found on backend")
        try:
            return OrderRecord.model_validate(rows[0])
        except ValidationError as exc:
            raise BackendError(f"malformed order row: {exc}") from exc

    async def create_order(self, restaurant_id: str, data: CreateOrderData) -> Order:
        row = data.model_dump(mode="json", exclude={"items"})
        row.update({"restaurant_id": restaurant_id, "status": "pending"})
        created = await self._request("POST", "/rest/v1/orders", json_body=[row], prefer="return=representation")
        if not created:
            raise BackendError("order insert returned no row")
        order_id = str(created[0]["id"])

        item_rows = [{**item.model_dump(mode="json"), "order_id": order_id} for item in data.items]
        items = await self._request(
            "POST",
            "/rest/v1/order_items",
            json_body=item_rows,
            prefer="return=representation",
        )
        logger.info("order created: order_id=%s items=%s", order_id, len(items))
        return self._orders([{**created[0], "items": items}])[0]

    async def aclose(self) -> None:
        return None

from __future__ import annotations

import argparse
import asyncio
import json

from orderboard.backend import build_order_backend
from orderboard.board.board import BulkLoadError, OrderBoard
from orderboard.core.config import get_settings
from orderboard.core.logging import configure_logging
from orderboard.domain.orders.models import ORDER_STATUSES, ORDER_TYPES
from orderboard.domain.orders.transitions import OrderNotFoundError, TransitionRejectedError
from orderboard.persistence.db import init_db


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OrderBoard CLI")
    parser.add_argument(
        "--restaurant-id",
        default=None,
        help="Restaurant scope (default: settings.staff_restaurant_id)",
    )
    parser.add_argument("--all-restaurants", action="store_true", help="Super-admin view across restaurants")
    top = parser.add_subparsers(dest="command", required=True)

    orders = top.add_parser("orders", help="Order operations")
    orders_sub = orders.add_subparsers(dest="orders_command", required=True)

    listing = orders_sub.add_parser("list", help="List orders, newest first")
    listing.add_argument("--status", choices=["all", *ORDER_STATUSES], default="all")
    listing.add_argument("--type", dest="order_type", choices=["all", *ORDER_TYPES], default="all")
    listing.add_argument("--search", default=None)

    orders_sub.add_parser("stats", help="Print order statistics")

    set_status = orders_sub.add_parser("set-status", help="Move an order to its next status")
    set_status.add_argument("order_id")
    set_status.add_argument("status", choices=ORDER_STATUSES)

    return parser


def _scope(args: argparse.Namespace) -> str | None:
    if args.all_restaurants:
        return None
    return args.restaurant_id or get_settings().staff_restaurant_id


async def _run_orders(args: argparse.Namespace) -> dict:
    settings = get_settings()
    backend = build_order_backend(settings)
    board = OrderBoard(
        backend,
        restaurant_id=_scope(args),
        revenue_excluded_statuses=settings.revenue_excluded_statuses,
    )
    try:
        await board.refresh()
        if args.orders_command == "list":
            rows = board.filter(search=args.search, status=args.status, order_type=args.order_type)
            return {"count": len(rows), "orders": [row.model_dump(mode="json") for row in rows]}
        if args.orders_command == "stats":
            return board.stats.to_dict()
        result = await board.transition(args.order_id, args.status)
        return {
            "order_id": result.order_id,
            "from_status": result.from_status,
            "to_status": result.to_status,
            "applied": result.applied,
            "error": result.error,
        }
    finally:
        await board.close()
        await backend.aclose()


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    configure_logging()

    if args.command == "orders":
        if get_settings().backend_mode == "sql":
            init_db()
        try:
            output = asyncio.run(_run_orders(args))
        except (BulkLoadError, OrderNotFoundError, TransitionRejectedError) as exc:
            print(json.dumps({"error": str(exc)}, ensure_ascii=False))
            return 1
        print(json.dumps(output, ensure_ascii=False, indent=2))
        return 0 if output.get("applied", True) else 1

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())

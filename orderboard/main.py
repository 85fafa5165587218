from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orderboard.api.routes_demo import router as demo_router
from orderboard.api.routes_orders import router as orders_router
from orderboard.api.routes_realtime import router as realtime_router
from orderboard.backend import build_order_backend
from orderboard.board.board import BulkLoadError
from orderboard.board.registry import BoardRegistry
from orderboard.core.config import get_settings
from orderboard.core.logging import configure_logging
from orderboard.domain.orders.transitions import OrderNotFoundError, TransitionRejectedError
from orderboard.notifications import CollectingNotifier
from orderboard.persistence.db import init_db
from orderboard.realtime.events import MalformedEventError

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title="OrderBoard")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.backend_mode == "sql":
        init_db()
    notifier = CollectingNotifier(maxlen=settings.notification_buffer_size)
    app.state.notifier = notifier
    app.state.registry = BoardRegistry(
        build_order_backend(settings),
        notifier=notifier,
        revenue_excluded_statuses=tuple(settings.revenue_excluded_statuses),
    )
    logger.info("order board service ready: backend=%s", settings.backend_mode)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    registry: BoardRegistry = app.state.registry
    await registry.close()
    await registry.backend.aclose()


@app.exception_handler(OrderNotFoundError)
async def order_not_found_handler(_: Request, exc: OrderNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "error": "order_not_found"})


@app.exception_handler(TransitionRejectedError)
async def transition_rejected_handler(_: Request, exc: TransitionRejectedError):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "error": "transition_rejected",
            "current": exc.current,
            "target": exc.target,
        },
    )


@app.exception_handler(BulkLoadError)
async def bulk_load_handler(_: Request, exc: BulkLoadError):
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "error": "bulk_load_failed", "retryable": True},
    )


@app.exception_handler(MalformedEventError)
async def malformed_event_handler(_: Request, exc: MalformedEventError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "error": "malformed_event"})


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(orders_router)
app.include_router(realtime_router)
app.include_router(demo_router)

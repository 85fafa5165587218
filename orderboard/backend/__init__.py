from orderboard.backend.base import BackendError, OrderBackend
from orderboard.backend.rest import RestOrderBackend
from orderboard.backend.sql import SqlOrderBackend
from orderboard.core.config import Settings, get_settings


def build_order_backend(settings: Settings | None = None) -> OrderBackend:
    cfg = settings or get_settings()
    if cfg.backend_mode == "rest":
        return RestOrderBackend(cfg)
    if cfg.backend_mode == "sql":
        return SqlOrderBackend()
    raise ValueError(f"unsupported backend_mode: {cfg.backend_mode}")


__all__ = ["BackendError", "OrderBackend", "RestOrderBackend", "SqlOrderBackend", "build_order_backend"]

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STAFF_API_KEY = "ob-staff-dev-key"
DEFAULT_SUPER_ADMIN_API_KEY = "ob-super-admin-dev-key"
DEFAULT_WEBHOOK_SECRET = "ob-webhook-dev-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OB_", extra="ignore")

    app_name: str = "OrderBoard"
    env: str = "dev"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Order backend: rest | sql
    backend_mode: str = "sql"
    rest_base_url: str = "http://localhost:54321"
    rest_api_key: str | None = None
    request_timeout_seconds: int = 15

    database_url: str = "sqlite+pysqlite:///./orderboard.db"

    auth_enabled: bool = True
    staff_api_key: str = DEFAULT_STAFF_API_KEY
    super_admin_api_key: str = DEFAULT_SUPER_ADMIN_API_KEY
    staff_actor_id: str = "staff-001"
    super_admin_actor_id: str = "super-admin-001"
    staff_restaurant_id: str = "restaurant-001"

    webhook_secret: str | None = DEFAULT_WEBHOOK_SECRET

    notification_buffer_size: int = Field(default=200, ge=1)
    revenue_excluded_statuses: list[str] = Field(
        default_factory=list,
        description="Statuses whose amounts are left out of revenue; empty means every order counts",
    )

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.staff_api_key == DEFAULT_STAFF_API_KEY:
            insecure_items.append("OB_STAFF_API_KEY")
        if self.super_admin_api_key == DEFAULT_SUPER_ADMIN_API_KEY:
            insecure_items.append("OB_SUPER_ADMIN_API_KEY")
        if self.webhook_secret == DEFAULT_WEBHOOK_SECRET:
            insecure_items.append("OB_WEBHOOK_SECRET")

        if insecure_items:
            raise ValueError(
                "insecure default secrets are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

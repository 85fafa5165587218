from __future__ import annotations

import hmac
from typing import Literal

from fastapi import Header, HTTPException
from pydantic import BaseModel

from orderboard.core.config import get_settings


ActorType = Literal["staff", "super_admin"]


class Actor(BaseModel):
    type: ActorType
    id: str
    restaurant_id: str | None = None

    @property
    def scope(self) -> str | None:
        """Restaurant the actor may see; ``None`` is the all-restaurants view."""
        if self.type == "super_admin":
            return None
        return self.restaurant_id


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _extract_api_key(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _auth_error("invalid authorization header")
        return token.strip()
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return None


def _actor_from_api_key(api_key: str) -> Actor | None:
    settings = get_settings()
    key_map = {
        settings.staff_api_key: Actor(
            type="staff",
            id=settings.staff_actor_id,
            restaurant_id=settings.staff_restaurant_id,
        ),
        settings.super_admin_api_key: Actor(type="super_admin", id=settings.super_admin_actor_id),
    }
    return key_map.get(api_key)


def get_actor(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> Actor:
    settings = get_settings()
    if not settings.auth_enabled:
        return Actor(type="staff", id=settings.staff_actor_id, restaurant_id=settings.staff_restaurant_id)

    api_key = _extract_api_key(authorization, x_api_key)
    if not api_key:
        raise _auth_error("missing api key")

    actor = _actor_from_api_key(api_key)
    if actor is None:
        raise _auth_error("invalid api key")
    return actor


def verify_webhook_secret(x_webhook_secret: str | None = Header(default=None)) -> None:
    expected = get_settings().webhook_secret
    if not expected:
        return
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        raise HTTPException(status_code=401, detail="invalid webhook secret")

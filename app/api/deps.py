"""
FastAPI dependencies (backend client, current user)
"""
from typing import AsyncIterator

from fastapi import Request

from app.config import get_settings
from app.infrastructure.equiduty.client import EquiDutyClient, build_http_client


def get_current_user_id(request: Request) -> str | None:
    """
    Current user id: session "user_id" first, then the X-User-Id header.

    Returns None while identity is unknown; "only mine" filtering is then a no-op.
    """
    user_id = request.session.get("user_id") or request.headers.get("X-User-Id")
    return str(user_id) if user_id else None


def get_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


async def get_equiduty_client(request: Request) -> AsyncIterator[EquiDutyClient]:
    """
    Backend client sharing the app-wide connection pool; forwards the caller's token.

    The pool is opened by the app lifespan. Without it (e.g. an app driven
    without lifespan events) a per-request pool is opened and closed here.

    Usage:
        @router.get("/today")
        async def today(client: EquiDutyClient = Depends(get_equiduty_client)):
            ...
    """
    token = get_bearer_token(request)
    http = getattr(request.app.state, "http_client", None)
    if http is not None:
        yield EquiDutyClient(http, token=token)
        return

    http = build_http_client(get_settings())
    try:
        yield EquiDutyClient(http, token=token)
    finally:
        await http.aclose()

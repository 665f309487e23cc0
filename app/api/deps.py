import uuid
from typing import Optional

from fastapi import Header, Request

from app.core.container import Services
from app.core.errors import ForbiddenError


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_store_id(x_store_id: Optional[str] = Header(default=None)) -> int:
    """Every business route is scoped to the store named in X-Store-ID."""
    if x_store_id is None or not x_store_id.strip().isdecimal() or int(x_store_id) <= 0:
        raise ForbiddenError("A valid X-Store-ID header is required")
    return int(x_store_id)


def get_request_id(request: Request) -> str:
    """Request id set by the middleware; doubles as the correlation id of published events."""
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex

"""Helpers for reading caller details off an incoming request."""

import uuid
from typing import Dict, Optional

from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    return uuid.uuid4().hex


def client_info(request: Request) -> Dict[str, Optional[str]]:
    """Caller IP (first X-Forwarded-For hop when present) and user agent."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else None
        )
    return {"ip_address": ip_address, "user_agent": request.headers.get("user-agent")}

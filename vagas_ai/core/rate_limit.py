from __future__ import annotations

import uuid

from fastapi import Request
from slowapi import Limiter

from vagas_ai.core.config import settings


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else the peer address, else a one-off request key."""
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return f"req-{uuid.uuid4()}"


limiter = Limiter(key_func=client_key, enabled=settings.rate_limit_enabled)


def rate_limit():
    if settings.rate_limit_enabled:
        return limiter.limit(settings.rate_limit)

    def decorator(func):
        return func

    return decorator

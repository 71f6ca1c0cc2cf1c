from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from vagas_ai.core.errors import AITimeoutError

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout_ms: int, message: str | None = None) -> T:
    """Race ``awaitable`` against a timer of ``timeout_ms`` milliseconds.

    The losing task is cancelled locally; a request already sent to the
    backend may still complete there.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as exc:
        raise AITimeoutError(timeout_ms, message) from exc

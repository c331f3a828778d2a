"""Per-visitor request quotas for the generation and write endpoints.

Counters live in Redis when it is reachable and fall back to an in-process
window otherwise, so a single-node demo deployment still gets throttled.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings
from routers.auth_scope import DEMO_SESSION_COOKIE
from services.auth_facade import use_demo_identity
from services.context_detection import detect_request_context
from services.mock_identity import demo_sessions


# Expired local windows are swept once the map grows past this size.
LOCAL_COUNTER_SWEEP_SIZE = 4096

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _address(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"


def _client_identifier(request: Request) -> str:
    # Embedded demo visitors usually arrive through the host page's proxy and
    # share an address, so a demo session the server already issued is the
    # better key. Unknown cookie values count against the address.
    demo_session = request.cookies.get(DEMO_SESSION_COOKIE)
    if demo_session and demo_session in demo_sessions:
        context = detect_request_context(request, settings)
        if use_demo_identity(settings.APP_MODE, context, settings.FORCE_DEMO_MODE):
            return f"demo:{demo_session}"
    return _address(request)


def _sweep_expired(now: float) -> None:
    expired = [key for key, (_, reset_at) in _local_counters.items() if now >= reset_at]
    for key in expired:
        del _local_counters[key]


async def _consume_local_quota(key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
    now = time.time()
    async with _local_lock:
        if len(_local_counters) >= LOCAL_COUNTER_SWEEP_SIZE:
            _sweep_expired(now)
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count = 0
            reset_at = now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
        return count <= limit, max(1, int(reset_at - now))


async def _consume_redis_quota(key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await redis_client.incr(key)
        if current == 1:
            await redis_client.expire(key, window_seconds)
        ttl = await redis_client.ttl(key)
    finally:
        await redis_client.aclose()
    return current <= limit, ttl if ttl and ttl > 0 else window_seconds


def rate_limit(prefix: str, limit: int, window_seconds: int) -> Callable[[Request], None]:
    """Return a FastAPI dependency that enforces per-visitor request quotas."""

    async def _dependency(request: Request):
        if getattr(request.app.state, "disable_rate_limits", False):
            return

        key = f"planner:rate:{prefix}:{_client_identifier(request)}"

        try:
            allowed, retry_after = await _consume_redis_quota(key, limit, window_seconds)
        except Exception:
            allowed, retry_after = await _consume_local_quota(key, limit, window_seconds)

        if not allowed:
            raise HTTPException(
                status_code=429,
                detail={
                    "code": "rate_limited",
                    "scope": prefix,
                    "message": f"Rate limit exceeded for {prefix}. Try again later.",
                },
                headers={"Retry-After": str(retry_after)},
            )

    return _dependency

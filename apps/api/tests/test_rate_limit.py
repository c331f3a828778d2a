import time
import uuid

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from config import settings
from routers import rate_limit
from services.mock_identity import demo_sessions


@pytest.fixture(autouse=True)
def local_counters_only(monkeypatch):
    """Exercise the in-process window regardless of whether redis is running."""

    async def redis_down(*args, **kwargs):
        raise ConnectionError("redis unavailable")

    monkeypatch.setattr(rate_limit, "_consume_redis_quota", redis_down)


def _limited_app(scope, limit=2):
    app = FastAPI()

    @app.post("/generate")
    async def generate(_rate_limit: None = Depends(rate_limit.rate_limit(scope, limit=limit, window_seconds=60))):
        return {"ok": True}

    return app


def _scope():
    return f"test_{uuid.uuid4().hex}"


@pytest.mark.asyncio
async def test_quota_exhaustion_returns_structured_429():
    transport = ASGITransport(app=_limited_app(_scope()))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        for _ in range(2):
            assert (await client.post("/generate")).status_code == 200
        blocked = await client.post("/generate")

    assert blocked.status_code == 429
    assert blocked.json()["detail"]["code"] == "rate_limited"
    assert int(blocked.headers["retry-after"]) >= 1


@pytest.mark.asyncio
async def test_rotating_unknown_demo_cookies_share_the_address_quota():
    scope = _scope()
    transport = ASGITransport(app=_limited_app(scope, limit=1))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        statuses = [
            (await client.post("/generate", headers={"Cookie": f"demo_session={uuid.uuid4().hex}"})).status_code
            for _ in range(20)
        ]

    assert statuses[0] == 200
    assert statuses.count(429) == 19
    assert len([key for key in rate_limit._local_counters if f":{scope}:" in key]) == 1


@pytest.mark.asyncio
async def test_issued_demo_sessions_get_separate_quotas(monkeypatch):
    monkeypatch.setattr(settings, "APP_MODE", "demo")
    demo_sessions.source_for("aaa")
    demo_sessions.source_for("bbb")

    transport = ASGITransport(app=_limited_app(_scope(), limit=1))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        first = await client.post("/generate", headers={"Cookie": "demo_session=aaa"})
        second = await client.post("/generate", headers={"Cookie": "demo_session=bbb"})
        repeat = await client.post("/generate", headers={"Cookie": "demo_session=aaa"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert repeat.status_code == 429


@pytest.mark.asyncio
async def test_issued_cookie_outside_demo_identity_counts_against_address():
    demo_sessions.source_for("aaa")
    demo_sessions.source_for("bbb")

    transport = ASGITransport(app=_limited_app(_scope(), limit=1))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        first = await client.post("/generate", headers={"Cookie": "demo_session=aaa"})
        second = await client.post("/generate", headers={"Cookie": "demo_session=bbb"})

    assert first.status_code == 200
    assert second.status_code == 429


@pytest.mark.asyncio
async def test_expired_local_windows_are_swept(monkeypatch):
    monkeypatch.setattr(rate_limit, "LOCAL_COUNTER_SWEEP_SIZE", 3)
    stale = time.time() - 1
    for index in range(3):
        rate_limit._local_counters[f"planner:rate:old:{index}"] = (1, stale)

    allowed, _ = await rate_limit._consume_local_quota("planner:rate:new:client", 1, 60)

    assert allowed is True
    assert list(rate_limit._local_counters) == ["planner:rate:new:client"]

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from database import Base, get_db
from main import app
from routers import rate_limit
from services.identity_provider import identity_provider
from services.mock_identity import demo_sessions
from services.session_token import create_session_token


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture(autouse=True)
def authenticated_mode(monkeypatch):
    """Every test starts in authenticated mode with demo sessions cleared."""
    monkeypatch.setattr(settings, "APP_MODE", "authenticated")
    monkeypatch.setattr(settings, "FORCE_DEMO_MODE", False)
    monkeypatch.setattr(settings, "IFRAME_MODE", False)
    demo_sessions.clear()
    yield
    demo_sessions.clear()
    identity_provider._revoked.clear()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "planner.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def api_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_header():
    def _build(user_id: str, email: str = None, **claims):
        token = create_session_token(user_id, email or f"{user_id}@example.com", **claims)["token"]
        return {"Authorization": f"Bearer {token}"}

    return _build

import random

import pytest

from services.auth_facade import MockAuth, RealAuth, select_auth
from services.context_detection import ExecutionContext
from services.errors import AuthProviderError
from services.identity_provider import SessionTokenProvider
from services.mock_identity import DemoSessionRegistry, MockIdentitySource, mock_identity_is_premium


class ExplodingProvider:
    """Fails the test if demo mode ever reaches the real provider."""

    def load_session(self, token):
        raise AssertionError("real provider must not be called")

    async def get_token(self, session):
        raise AssertionError("real provider must not be called")

    async def sign_out(self, session):
        raise AssertionError("real provider must not be called")

    def has(self, session, check):
        raise AssertionError("real provider must not be called")


def test_mock_identity_is_stable_for_the_source_lifetime():
    source = MockIdentitySource(rng=random.Random(7))
    first = source.identity()
    for _ in range(20):
        assert source.identity() is first
    assert first["id"] in {"demo_user_123", "demo_user_456"}
    assert source.session()["id"] == f"sess_demo_{first['id']}"
    assert source.session() is source.session()


def test_demo_registry_keeps_one_source_per_key():
    registry = DemoSessionRegistry(max_sessions=2)
    source = registry.source_for("view-a")
    assert registry.source_for("view-a") is source
    registry.source_for("view-b")
    registry.source_for("view-c")
    assert len(registry) == 2
    assert registry.source_for("view-a") is not source


def test_demo_plan_metadata():
    assert mock_identity_is_premium({"public_metadata": {"plan": "premium"}}) is True
    assert mock_identity_is_premium({"public_metadata": {"plan": "basic"}}) is False


@pytest.mark.asyncio
async def test_iframe_context_uses_mock_auth_without_touching_provider():
    auth = select_auth(
        app_mode="authenticated",
        context=ExecutionContext.IFRAME,
        force_demo=False,
        provider=ExplodingProvider(),
        token=None,
        mock_source=MockIdentitySource(rng=random.Random(1)),
    )
    assert isinstance(auth, MockAuth)
    assert auth.is_signed_in is True
    assert auth.is_loaded is True
    assert auth.has({"permission": "anything"}) is True
    first = await auth.get_token()
    second = await auth.get_token()
    assert first.startswith("mock_token_")
    assert first != second
    await auth.sign_out()
    assert auth.is_signed_in is True


def test_demo_app_mode_and_force_flag_select_mock_auth():
    source = MockIdentitySource()
    for app_mode, force in (("demo", False), ("authenticated", True)):
        auth = select_auth(
            app_mode=app_mode,
            context=ExecutionContext.STANDALONE,
            force_demo=force,
            provider=ExplodingProvider(),
            token=None,
            mock_source=source,
        )
        assert isinstance(auth, MockAuth)


def test_standalone_provider_errors_propagate():
    provider = SessionTokenProvider()
    with pytest.raises(AuthProviderError) as exc_info:
        select_auth(
            app_mode="authenticated",
            context=ExecutionContext.STANDALONE,
            force_demo=False,
            provider=provider,
            token=None,
            mock_source=MockIdentitySource(),
        )
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail["code"] == "auth_provider_error"

    with pytest.raises(AuthProviderError):
        RealAuth.from_token(provider, "not-a-token")


@pytest.mark.asyncio
async def test_real_auth_delegates_and_sign_out_revokes():
    provider = SessionTokenProvider()
    issued = provider.issue("creator-1", "creator@example.com", role="admin", plan="premium", permissions=["ideas:write"])

    auth = RealAuth.from_token(provider, issued["token"])
    assert auth.user_id == "creator-1"
    assert auth.email == "creator@example.com"
    assert auth.has({"role": "admin"}) is True
    assert auth.has({"plan": "basic"}) is False
    assert auth.has({"permission": "ideas:write"}) is True
    assert auth.has({"permission": "billing:write"}) is False
    assert await auth.get_token() == issued["token"]

    await auth.sign_out()
    with pytest.raises(AuthProviderError):
        await auth.get_token()
    with pytest.raises(AuthProviderError):
        RealAuth.from_token(provider, issued["token"])

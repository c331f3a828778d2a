"""
Uniform auth interface over the real identity provider and demo identities.

The facade is chosen once per request at the composition root
(``select_auth``) and keeps that mode for the rest of the request.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from services.context_detection import ExecutionContext, should_use_mock_identity
from services.identity_provider import IdentityProvider, ProviderSession
from services.mock_identity import MockIdentitySource

AUTH_MODE_REAL = "authenticated"
AUTH_MODE_DEMO = "demo"


class AuthFacade(ABC):
    mode: str

    @property
    @abstractmethod
    def is_signed_in(self) -> bool: ...

    @property
    @abstractmethod
    def is_loaded(self) -> bool: ...

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def user(self) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def get_token(self) -> Optional[str]: ...

    @abstractmethod
    async def sign_out(self) -> None: ...

    @abstractmethod
    def has(self, check: Optional[Mapping[str, Any]] = None) -> bool: ...

    @property
    def email(self) -> Optional[str]:
        user = self.user or {}
        return user.get("email") or None


class RealAuth(AuthFacade):
    """Delegates to the identity provider; provider errors propagate unchanged."""

    mode = AUTH_MODE_REAL

    def __init__(self, provider: IdentityProvider, session: ProviderSession):
        self._provider = provider
        self._session = session

    @classmethod
    def from_token(cls, provider: IdentityProvider, token: Optional[str]) -> "RealAuth":
        return cls(provider, provider.load_session(token))

    @property
    def is_signed_in(self) -> bool:
        return True

    @property
    def is_loaded(self) -> bool:
        return True

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._session.user

    async def get_token(self) -> Optional[str]:
        return await self._provider.get_token(self._session)

    async def sign_out(self) -> None:
        await self._provider.sign_out(self._session)

    def has(self, check: Optional[Mapping[str, Any]] = None) -> bool:
        return self._provider.has(self._session, check or {})


class MockAuth(AuthFacade):
    """Demo identity; never touches the real provider."""

    mode = AUTH_MODE_DEMO

    def __init__(self, source: MockIdentitySource):
        self._source = source

    @property
    def is_signed_in(self) -> bool:
        return True

    @property
    def is_loaded(self) -> bool:
        return True

    @property
    def user_id(self) -> Optional[str]:
        return self._source.identity()["id"]

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._source.identity()

    @property
    def session(self) -> Dict[str, Any]:
        return self._source.session()

    async def get_token(self) -> Optional[str]:
        # Placeholder only; not a signed credential.
        return f"mock_token_{uuid.uuid4().hex}"

    async def sign_out(self) -> None:
        return None

    def has(self, check: Optional[Mapping[str, Any]] = None) -> bool:
        return True


def use_demo_identity(app_mode: str, context: ExecutionContext, force_demo: bool = False) -> bool:
    if app_mode == AUTH_MODE_DEMO:
        return True
    return should_use_mock_identity(context, force_demo)


def select_auth(
    *,
    app_mode: str,
    context: ExecutionContext,
    force_demo: bool,
    provider: IdentityProvider,
    token: Optional[str],
    mock_source: MockIdentitySource,
) -> AuthFacade:
    """Pick the facade implementation for one request."""
    if use_demo_identity(app_mode, context, force_demo):
        return MockAuth(mock_source)
    return RealAuth.from_token(provider, token)

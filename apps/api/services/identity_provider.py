"""Identity provider boundary consumed by the real auth facade."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Set

from services.errors import AuthProviderError
from services.session_token import create_session_token, decode_session_token

logger = logging.getLogger(__name__)


@dataclass
class ProviderSession:
    """A verified provider session."""

    user_id: str
    token: str
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email") or None

    @property
    def user(self) -> Dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "full_name": self.claims.get("name"),
            "public_metadata": {
                "role": self.claims.get("role"),
                "plan": self.claims.get("plan"),
            },
        }


class IdentityProvider(Protocol):
    def load_session(self, token: Optional[str]) -> ProviderSession: ...

    async def get_token(self, session: ProviderSession) -> str: ...

    async def sign_out(self, session: ProviderSession) -> None: ...

    def has(self, session: ProviderSession, check: Mapping[str, Any]) -> bool: ...


class SessionTokenProvider:
    """Provider backed by signed session tokens with in-memory revocation."""

    def __init__(self) -> None:
        self._revoked: Set[str] = set()
        self._lock = threading.Lock()

    def load_session(self, token: Optional[str]) -> ProviderSession:
        if not token:
            raise AuthProviderError("Missing Bearer session token.")
        try:
            payload = decode_session_token(token)
        except ValueError as exc:
            raise AuthProviderError(str(exc)) from exc

        jti = str(payload.get("jti") or "")
        with self._lock:
            if jti and jti in self._revoked:
                raise AuthProviderError("Session has been signed out.")

        return ProviderSession(user_id=str(payload["sub"]), token=token, claims=dict(payload))

    async def get_token(self, session: ProviderSession) -> str:
        self._ensure_active(session)
        return session.token

    async def sign_out(self, session: ProviderSession) -> None:
        jti = str(session.claims.get("jti") or "")
        if not jti:
            return
        with self._lock:
            self._revoked.add(jti)
        logger.info("Revoked session %s for user %s", jti, session.user_id)

    def has(self, session: ProviderSession, check: Mapping[str, Any]) -> bool:
        self._ensure_active(session)
        claims = session.claims
        permission = check.get("permission")
        if permission and permission not in (claims.get("permissions") or []):
            return False
        role = check.get("role")
        if role and role != claims.get("role"):
            return False
        plan = check.get("plan")
        if plan and plan != claims.get("plan"):
            return False
        return True

    def issue(self, user_id: str, email: Optional[str] = None, **claims: Any) -> Dict[str, Any]:
        return create_session_token(user_id, email, **claims)

    def _ensure_active(self, session: ProviderSession) -> None:
        jti = str(session.claims.get("jti") or "")
        with self._lock:
            if jti and jti in self._revoked:
                raise AuthProviderError("Session has been signed out.")


identity_provider = SessionTokenProvider()

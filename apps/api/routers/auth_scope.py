"""Authentication dependencies for API user scoping."""

import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, Response
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import User
from services.auth_facade import AuthFacade, select_auth, use_demo_identity
from services.context_detection import ExecutionContext, detect_request_context
from services.identity_provider import identity_provider
from services.mock_identity import demo_sessions, mock_identity_is_premium
from services.users import create_or_update_user, get_user_by_id


auth_scheme = HTTPBearer(auto_error=False)

DEMO_SESSION_COOKIE = "demo_session"


@dataclass
class AuthContext:
    user_id: str
    email: Optional[str] = None
    mode: str = "authenticated"
    context: ExecutionContext = ExecutionContext.STANDALONE


def ensure_user_scope(auth_user_id: str, supplied_user_id: Optional[str]) -> str:
    """Return authenticated user_id and reject cross-user attempts."""
    if supplied_user_id and supplied_user_id != auth_user_id:
        raise HTTPException(status_code=403, detail="user_id does not match authenticated session.")
    return auth_user_id


def _demo_session_key(request: Request, response: Response) -> str:
    key = request.cookies.get(DEMO_SESSION_COOKIE)
    if key:
        return key
    key = uuid.uuid4().hex
    secure = settings.APP_ENV == "production"
    response.set_cookie(
        DEMO_SESSION_COOKIE,
        key,
        httponly=True,
        secure=secure,
        samesite="none" if secure else "lax",
    )
    return key


def build_auth_facade(
    connection: HTTPConnection,
    token: Optional[str],
    demo_session_key: Callable[[], str],
) -> AuthFacade:
    """Choose the auth implementation for one request or socket.

    ``demo_session_key`` is only called when a demo identity is needed.
    """
    context = detect_request_context(connection, settings)
    connection.state.execution_context = context

    mock_source = None
    if use_demo_identity(settings.APP_MODE, context, settings.FORCE_DEMO_MODE):
        mock_source = demo_sessions.source_for(demo_session_key())

    return select_auth(
        app_mode=settings.APP_MODE,
        context=context,
        force_demo=settings.FORCE_DEMO_MODE,
        provider=identity_provider,
        token=token,
        mock_source=mock_source,
    )


async def get_auth_facade(
    request: Request,
    response: Response,
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthFacade:
    """Choose the auth implementation once for this request."""
    token = None
    if credentials and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    return build_auth_facade(request, token, lambda: _demo_session_key(request, response))


def to_auth_context(facade: AuthFacade, context: ExecutionContext = ExecutionContext.STANDALONE) -> AuthContext:
    return AuthContext(
        user_id=str(facade.user_id or ""),
        email=facade.email,
        mode=facade.mode,
        context=context,
    )


async def get_auth_context(
    request: Request,
    auth: AuthFacade = Depends(get_auth_facade),
) -> AuthContext:
    """Resolve the signed-in user for this request."""
    if not auth.is_signed_in or not auth.user_id:
        raise HTTPException(status_code=401, detail="Not signed in.")
    context = getattr(request.state, "execution_context", ExecutionContext.STANDALONE)
    return to_auth_context(auth, context)


async def get_current_user(
    auth: AuthFacade = Depends(get_auth_facade),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the user row, creating it on first contact.

    Demo identities start with the plan from their canned metadata.
    """
    user = await get_user_by_id(ctx.user_id, db)
    if user is not None:
        return user

    profile = auth.user or {}
    is_premium = mock_identity_is_premium(profile) if ctx.mode == "demo" else False
    return await create_or_update_user(
        ctx.user_id,
        db,
        name=profile.get("full_name"),
        email=ctx.email,
        is_premium=is_premium,
    )

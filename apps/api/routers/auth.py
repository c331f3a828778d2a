"""
Authentication router: auth mode, current user, sign-in sync, tokens and logout.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import User
from routers.auth_scope import (
    AuthContext,
    auth_scheme,
    ensure_user_scope,
    get_auth_context,
    get_auth_facade,
    get_current_user,
)
from services.auth_facade import AuthFacade, use_demo_identity
from services.context_detection import detect_request_context, environment_from_request, is_cross_origin_embedded
from services.errors import AuthProviderError
from services.feature_gate import entitlements
from services.identity_provider import identity_provider
from services.users import create_or_update_user

router = APIRouter()


class AuthContextResponse(BaseModel):
    app_mode: str
    auth_mode: str
    context: str
    cross_origin: bool
    signed_in: bool
    user_id: Optional[str] = None


class SyncUserRequest(BaseModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class CurrentUserResponse(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    is_premium: bool = False
    auth_mode: str
    context: str
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    entitlements: Dict[str, Any] = {}


class TokenResponse(BaseModel):
    token: Optional[str] = None
    auth_mode: str


def _user_response(user: User, auth: AuthContext) -> CurrentUserResponse:
    return CurrentUserResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        is_premium=bool(user.is_premium),
        auth_mode=auth.mode,
        context=auth.context.value,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        entitlements=entitlements(user),
    )


@router.get("/context", response_model=AuthContextResponse)
async def get_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
):
    """Report how this request would be authenticated, without requiring a session."""
    env = environment_from_request(request, settings)
    context = detect_request_context(request, settings)
    demo = use_demo_identity(settings.APP_MODE, context, settings.FORCE_DEMO_MODE)

    signed_in = demo
    user_id = None
    if not demo and credentials:
        try:
            session = identity_provider.load_session(credentials.credentials)
        except AuthProviderError:
            session = None
        if session is not None:
            signed_in = True
            user_id = session.user_id

    return AuthContextResponse(
        app_mode=settings.APP_MODE,
        auth_mode="demo" if demo else "authenticated",
        context=context.value,
        cross_origin=is_cross_origin_embedded(env),
        signed_in=signed_in,
        user_id=user_id,
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    auth: AuthContext = Depends(get_auth_context),
    user: User = Depends(get_current_user),
):
    """Get the current user's profile and entitlements."""
    return _user_response(user, auth)


@router.post("/sync", response_model=CurrentUserResponse)
async def sync_user(
    request: SyncUserRequest,
    facade: AuthFacade = Depends(get_auth_facade),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Create or refresh the user record after sign-in."""
    scoped_user_id = ensure_user_scope(auth.user_id, request.user_id)
    profile = facade.user or {}
    user = await create_or_update_user(
        scoped_user_id,
        db,
        name=request.name or profile.get("full_name"),
        email=request.email or auth.email,
    )
    return _user_response(user, auth)


@router.post("/token", response_model=TokenResponse)
async def get_token(facade: AuthFacade = Depends(get_auth_facade)):
    """Return a bearer token for the current session (a placeholder in demo mode)."""
    return TokenResponse(token=await facade.get_token(), auth_mode=facade.mode)


@router.post("/logout")
async def logout(facade: AuthFacade = Depends(get_auth_facade)):
    """Revoke the session; a no-op for demo identities."""
    await facade.sign_out()
    return {"message": "Logged out successfully", "auth_mode": facade.mode}

"""Demo workspace seeding for demo identities."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.auth_facade import AUTH_MODE_DEMO
from services.seed import clear_demo_workspace, seed_demo_workspace

router = APIRouter()


def _require_demo(auth: AuthContext) -> None:
    if auth.mode != AUTH_MODE_DEMO:
        raise HTTPException(status_code=403, detail="Demo seeding is only available to demo identities.")


@router.post("/seed")
async def seed_workspace(
    _rate_limit: None = Depends(rate_limit("demo_seed", limit=20, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the demo user's workspace with sample data."""
    _require_demo(auth)
    return {"seeded": await seed_demo_workspace(auth.user_id, db)}


@router.delete("/seed")
async def clear_workspace(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    _require_demo(auth)
    return {"deleted": await clear_demo_workspace(auth.user_id, db)}

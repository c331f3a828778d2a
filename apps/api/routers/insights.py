"""Dashboard insights and overview router."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.dashboard import get_dashboard_overview
from services.insights import generate_ai_insights, get_ai_insights

router = APIRouter()


class InsightResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    priority: int
    created_at: Optional[datetime] = None


@router.get("/insights", response_model=List[InsightResponse])
async def list_insights(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return [
        InsightResponse(
            id=insight.id,
            title=insight.title,
            description=insight.description,
            category=insight.category,
            priority=insight.priority,
            created_at=insight.created_at,
        )
        for insight in await get_ai_insights(auth.user_id, db)
    ]


@router.post("/insights/generate")
async def refresh_insights(
    _rate_limit: None = Depends(rate_limit("insights_generate", limit=30, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the user's insights with a fresh set."""
    return {"count": await generate_ai_insights(auth.user_id, db)}


@router.get("/dashboard")
async def dashboard_overview(
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_dashboard_overview(auth.user_id, db)

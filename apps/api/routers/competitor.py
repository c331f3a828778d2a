"""
Router for competitor tracking and insights (premium).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.competitors import (
    add_competitor,
    delete_competitor,
    generate_competitor_insights,
    get_competitor,
    get_user_competitors,
    update_competitor_notes,
)

router = APIRouter()


# ==================== Pydantic Models ====================

class AddCompetitorRequest(BaseModel):
    competitor_url: str
    user_id: Optional[str] = None


class UpdateNotesRequest(BaseModel):
    notes: str = Field(default="", max_length=10000)


class CompetitorResponse(BaseModel):
    id: str
    competitor_channel_id: str
    name: str
    url: str
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    notes: str = ""
    is_premium: bool = True
    last_synced_at: Optional[datetime] = None


def _competitor_response(competitor) -> CompetitorResponse:
    return CompetitorResponse(
        id=competitor.id,
        competitor_channel_id=competitor.competitor_channel_id,
        name=competitor.name,
        url=competitor.url,
        subscriber_count=competitor.subscriber_count or 0,
        video_count=competitor.video_count or 0,
        view_count=competitor.view_count or 0,
        notes=competitor.notes or "",
        is_premium=bool(competitor.is_premium),
        last_synced_at=competitor.last_synced_at,
    )


# ==================== Endpoints ====================

@router.post("", response_model=CompetitorResponse)
async def add_competitor_endpoint(
    request: AddCompetitorRequest,
    _rate_limit: None = Depends(rate_limit("competitor_add", limit=30, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Track a competitor channel. Free users get a 403 premium_required."""
    user_id = ensure_user_scope(auth.user_id, request.user_id)
    competitor_id = await add_competitor(user_id, request.competitor_url, db)
    return _competitor_response(await get_competitor(user_id, competitor_id, db))


@router.get("", response_model=List[CompetitorResponse])
async def list_competitors(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return [_competitor_response(c) for c in await get_user_competitors(auth.user_id, db)]


@router.patch("/{competitor_id}/notes")
async def update_notes(
    competitor_id: str,
    request: UpdateNotesRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await update_competitor_notes(auth.user_id, competitor_id, request.notes, db)
    return {"updated": True, "id": competitor_id}


@router.delete("/{competitor_id}")
async def remove_competitor(
    competitor_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await delete_competitor(auth.user_id, competitor_id, db)
    return {"deleted": True, "id": competitor_id}


@router.post("/{competitor_id}/insights")
async def competitor_insights(
    competitor_id: str,
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Mock analytics derived from the competitor's stored stats."""
    return await generate_competitor_insights(auth.user_id, competitor_id, db)

"""Content ideas router."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.content_ideas import (
    create_manual_content_idea,
    delete_content_idea,
    generate_content_ideas,
    get_user_content_ideas,
)

router = APIRouter()


class GenerateIdeasRequest(BaseModel):
    channel_id: str
    count: int = Field(default=5, ge=1, le=50)
    user_id: Optional[str] = None


class ManualIdeaRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    tags: List[str] = []
    category: Optional[str] = None
    user_id: Optional[str] = None


class ContentIdeaResponse(BaseModel):
    id: str
    title: str
    description: str
    tags: List[str] = []
    category: Optional[str] = None
    is_premium: bool = False
    is_generated: bool = False
    inspiration_sources: List[str] = []
    potential_keywords: List[str] = []
    estimated_viewership: Optional[str] = None
    created_at: Optional[datetime] = None


def _idea_response(idea) -> ContentIdeaResponse:
    return ContentIdeaResponse(
        id=idea.id,
        title=idea.title,
        description=idea.description or "",
        tags=list(idea.tags or []),
        category=idea.category,
        is_premium=bool(idea.is_premium),
        is_generated=bool(idea.is_generated),
        inspiration_sources=list(idea.inspiration_sources or []),
        potential_keywords=list(idea.potential_keywords or []),
        estimated_viewership=idea.estimated_viewership,
        created_at=idea.created_at,
    )


@router.post("/generate")
async def generate_ideas(
    request: GenerateIdeasRequest,
    _rate_limit: None = Depends(rate_limit("content_ideas_generate", limit=30, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate a batch of ideas for a connected channel."""
    user_id = ensure_user_scope(auth.user_id, request.user_id)
    idea_ids = await generate_content_ideas(user_id, request.channel_id, request.count, db)
    return {"ids": idea_ids, "count": len(idea_ids)}


@router.get("", response_model=List[ContentIdeaResponse])
async def list_ideas(
    include_premium: bool = Query(default=True),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    ideas = await get_user_content_ideas(auth.user_id, include_premium, db)
    return [_idea_response(idea) for idea in ideas]


@router.post("")
async def create_idea(
    request: ManualIdeaRequest,
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_id = ensure_user_scope(auth.user_id, request.user_id)
    idea_id = await create_manual_content_idea(
        user_id,
        db,
        title=request.title,
        description=request.description,
        tags=request.tags,
        category=request.category,
    )
    return {"id": idea_id}


@router.delete("/{idea_id}")
async def delete_idea(
    idea_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await delete_content_idea(auth.user_id, idea_id, db)
    return {"deleted": True, "id": idea_id}

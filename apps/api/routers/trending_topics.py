"""Trending topics router."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.trending_topics import delete_trending_topic, generate_trending_topics, get_user_trending_topics

router = APIRouter()


class GenerateTopicsRequest(BaseModel):
    niche: Optional[str] = None
    user_id: Optional[str] = None


class TrendingTopicResponse(BaseModel):
    id: str
    topic: str
    description: str
    relevance_score: int
    sources: List[str] = []
    is_premium: bool = False
    created_at: Optional[datetime] = None


@router.post("/generate")
async def generate_topics(
    request: GenerateTopicsRequest,
    _rate_limit: None = Depends(rate_limit("trending_topics_generate", limit=30, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Append a new batch of trending topics."""
    user_id = ensure_user_scope(auth.user_id, request.user_id)
    topic_ids = await generate_trending_topics(user_id, db, niche=request.niche)
    return {"ids": topic_ids, "count": len(topic_ids)}


@router.get("", response_model=List[TrendingTopicResponse])
async def list_topics(
    include_premium: bool = Query(default=True),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    topics = await get_user_trending_topics(auth.user_id, include_premium, db)
    return [
        TrendingTopicResponse(
            id=topic.id,
            topic=topic.topic,
            description=topic.description or "",
            relevance_score=topic.relevance_score or 0,
            sources=list(topic.sources or []),
            is_premium=bool(topic.is_premium),
            created_at=topic.created_at,
        )
        for topic in topics
    ]


@router.delete("/{topic_id}")
async def delete_topic(
    topic_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await delete_trending_topic(auth.user_id, topic_id, db)
    return {"deleted": True, "id": topic_id}

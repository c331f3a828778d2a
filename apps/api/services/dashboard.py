"""Dashboard overview counts."""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.channel import Channel
from models.competitor import Competitor
from models.content_idea import ContentIdea
from models.insight import Insight
from models.trending_topic import TrendingTopic
from models.video import Video
from services.feature_gate import entitlements, is_premium_user
from services.users import get_user_by_id


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return int(result.scalar() or 0)


async def get_dashboard_overview(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Counts of what the user can currently see."""
    user = await get_user_by_id(user_id, db)
    premium = is_premium_user(user)

    idea_conditions = [ContentIdea.user_id == user_id]
    topic_conditions = [TrendingTopic.user_id == user_id]
    if not premium:
        idea_conditions.append(ContentIdea.is_premium.is_(False))
        topic_conditions.append(TrendingTopic.is_premium.is_(False))

    return {
        "user_id": user_id,
        "is_premium": premium,
        "channels": await _count(db, Channel, Channel.user_id == user_id),
        "videos": await _count(db, Video, Video.user_id == user_id),
        "content_ideas": await _count(db, ContentIdea, *idea_conditions),
        "trending_topics": await _count(db, TrendingTopic, *topic_conditions),
        "competitors": await _count(db, Competitor, Competitor.user_id == user_id) if premium else 0,
        "insights": await _count(db, Insight, Insight.user_id == user_id),
        "entitlements": entitlements(user),
    }

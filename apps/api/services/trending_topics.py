"""Trending topics in the creator's niche (mocked)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.trending_topic import TrendingTopic
from services.errors import RecordNotFoundError
from services.feature_gate import filter_accessible, is_premium_user
from services.users import get_user_by_id

logger = logging.getLogger(__name__)

BASIC_TOPICS: List[Dict[str, Any]] = [
    {
        "topic": "Content Creation Tips",
        "description": "Best practices for creating engaging YouTube content",
        "relevance_score": 85,
        "sources": ["YouTube Trends", "Creator Insights"],
        "is_premium": False,
    },
    {
        "topic": "YouTube Algorithm Updates",
        "description": "Recent changes to the YouTube recommendation algorithm",
        "relevance_score": 90,
        "sources": ["YouTube Blog", "Creator Insider"],
        "is_premium": False,
    },
    {
        "topic": "Video Editing Techniques",
        "description": "Popular editing styles and techniques for YouTube",
        "relevance_score": 75,
        "sources": ["Creator Forums", "Editing Communities"],
        "is_premium": False,
    },
]

PREMIUM_TOPICS: List[Dict[str, Any]] = [
    {
        "topic": "Emerging Content Niches",
        "description": "Undiscovered content categories with high growth potential",
        "relevance_score": 95,
        "sources": ["Trend Analysis", "Market Research"],
        "is_premium": True,
    },
    {
        "topic": "Monetization Strategies",
        "description": "Advanced techniques for maximizing revenue from your content",
        "relevance_score": 88,
        "sources": ["Creator Economy Reports", "Platform Insights"],
        "is_premium": True,
    },
    {
        "topic": "Audience Retention Tactics",
        "description": "Proven methods to keep viewers watching longer",
        "relevance_score": 92,
        "sources": ["Analytics Research", "Engagement Studies"],
        "is_premium": True,
    },
    {
        "topic": "Cross-Platform Growth",
        "description": "Strategies for leveraging multiple platforms to grow your audience",
        "relevance_score": 87,
        "sources": ["Social Media Trends", "Creator Case Studies"],
        "is_premium": True,
    },
]


def topics_for(premium: bool, niche: Optional[str] = None) -> List[Dict[str, Any]]:
    topics = [dict(topic) for topic in BASIC_TOPICS]
    if premium:
        topics.extend(dict(topic) for topic in PREMIUM_TOPICS)
    if niche:
        for topic in topics:
            topic["description"] = f"{topic['description']} ({niche})"
    return topics


async def generate_trending_topics(user_id: str, db: AsyncSession, niche: Optional[str] = None) -> List[str]:
    """Append a new batch of topics; earlier batches are kept."""
    user = await get_user_by_id(user_id, db)
    now = datetime.now(timezone.utc)
    rows = [
        TrendingTopic(user_id=user_id, created_at=now, **topic)
        for topic in topics_for(is_premium_user(user), niche)
    ]
    try:
        db.add_all(rows)
        await db.flush()
        topic_ids = [row.id for row in rows]
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Generated %s trending topics for user %s", len(topic_ids), user_id)
    return topic_ids


async def get_user_trending_topics(user_id: str, include_premium: bool, db: AsyncSession) -> List[TrendingTopic]:
    user = await get_user_by_id(user_id, db)
    result = await db.execute(
        select(TrendingTopic)
        .where(TrendingTopic.user_id == user_id)
        .order_by(TrendingTopic.created_at.desc(), TrendingTopic.relevance_score.desc())
    )
    topics = list(result.scalars().all())
    if not include_premium:
        return [topic for topic in topics if not topic.is_premium]
    return filter_accessible(topics, user)


async def delete_trending_topic(user_id: str, topic_id: str, db: AsyncSession) -> bool:
    result = await db.execute(
        select(TrendingTopic).where(TrendingTopic.id == topic_id, TrendingTopic.user_id == user_id)
    )
    topic = result.scalar_one_or_none()
    if topic is None:
        raise RecordNotFoundError("TrendingTopic", topic_id)
    await db.delete(topic)
    await db.commit()
    return True

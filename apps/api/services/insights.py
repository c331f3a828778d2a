"""
Dashboard insights derived from the creator's workspace.

Each refresh deletes the previous insight set and writes a new one, so the
dashboard only ever shows the latest analysis.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.channel import Channel
from models.competitor import Competitor
from models.content_idea import ContentIdea
from models.insight import Insight
from models.trending_topic import TrendingTopic
from models.video import Video

logger = logging.getLogger(__name__)

RECENT_UPLOAD_WINDOW = timedelta(days=30)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _engagement_rate(videos: Sequence[Any]) -> float:
    views = sum(int(video.view_count or 0) for video in videos)
    if views <= 0:
        return 0.0
    interactions = sum(int(video.like_count or 0) + int(video.comment_count or 0) for video in videos)
    return interactions / views


def build_insights(
    *,
    channels: Sequence[Any],
    videos: Sequence[Any],
    ideas: Sequence[Any],
    topics: Sequence[Any],
    competitors: Sequence[Any],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Apply the insight rules to a snapshot of the workspace."""
    current = now or datetime.now(timezone.utc)
    insights: List[Dict[str, Any]] = []

    # Performance
    if videos:
        rate = _engagement_rate(videos)
        if rate > 0.08:
            insights.append({
                "title": "Strong Audience Engagement",
                "description": (
                    f"Your videos average a {rate * 100:.1f}% engagement rate. "
                    "Keep making the formats your viewers respond to."
                ),
                "category": "performance",
                "priority": 8,
            })
        elif rate < 0.03:
            insights.append({
                "title": "Engagement Needs Attention",
                "description": (
                    f"Your videos average a {rate * 100:.1f}% engagement rate. "
                    "Try stronger hooks and direct calls to comment."
                ),
                "category": "performance",
                "priority": 7,
            })

    # Opportunity
    if channels and not ideas:
        insights.append({
            "title": "Content Idea Opportunity",
            "description": (
                f"You have {len(channels)} connected channel(s) but no content ideas yet. "
                "Generate ideas to plan your next uploads."
            ),
            "category": "opportunity",
            "priority": 7,
        })

    if channels and competitors:
        own_best = max(int(channel.subscriber_count or 0) for channel in channels)
        ahead = [c for c in competitors if int(c.subscriber_count or 0) > own_best]
        if ahead:
            insights.append({
                "title": "Competitor Gap Opportunity",
                "description": (
                    f"{len(ahead)} tracked competitor(s) have a larger audience than your channel. "
                    "Review their top formats for ideas you can adapt."
                ),
                "category": "opportunity",
                "priority": 6,
            })

    # Suggestion
    if channels and not topics:
        insights.append({
            "title": "Trending Topics Suggestion",
            "description": "Refresh trending topics to find subjects your niche is searching for right now.",
            "category": "suggestion",
            "priority": 6,
        })

    if len(ideas) > 5 and len(videos) < len(ideas):
        insights.append({
            "title": "Publishing Focus",
            "description": (
                "Your idea backlog is larger than your upload history. "
                "Consider producing a few saved ideas before generating new ones."
            ),
            "category": "suggestion",
            "priority": 5,
        })

    # Trend
    if ideas and topics:
        insights.append({
            "title": "Balanced Planning Trend",
            "description": (
                "You're pairing your own content ideas with niche trends. "
                "This mix tends to keep a channel both consistent and discoverable."
            ),
            "category": "trend",
            "priority": 5,
        })

    if len(videos) > 3:
        cutoff = current - RECENT_UPLOAD_WINDOW
        recent = [
            video for video in videos
            if video.published_at is not None and _aware(video.published_at) > cutoff
        ]
        if len(recent) > len(videos) * 0.3:
            insights.append({
                "title": "Consistent Upload Trend",
                "description": (
                    f"You've published {len(recent)} videos in the last 30 days, "
                    f"{round(len(recent) / len(videos) * 100)}% of your catalogue."
                ),
                "category": "trend",
                "priority": 6,
            })

    if not channels and not ideas and not topics and not competitors:
        insights.append({
            "title": "Getting Started",
            "description": (
                "Welcome! Connect your YouTube channel to start generating content ideas "
                "and tracking your growth."
            ),
            "category": "suggestion",
            "priority": 9,
        })

    return insights


async def _user_rows(model, user_id: str, db: AsyncSession) -> List[Any]:
    result = await db.execute(select(model).where(model.user_id == user_id))
    return list(result.scalars().all())


async def replace_insights(user_id: str, db: AsyncSession) -> int:
    """Delete the user's insights and write a fresh set. Caller commits."""
    await db.execute(delete(Insight).where(Insight.user_id == user_id))

    now = datetime.now(timezone.utc)
    insights = build_insights(
        channels=await _user_rows(Channel, user_id, db),
        videos=await _user_rows(Video, user_id, db),
        ideas=await _user_rows(ContentIdea, user_id, db),
        topics=await _user_rows(TrendingTopic, user_id, db),
        competitors=await _user_rows(Competitor, user_id, db),
        now=now,
    )
    db.add_all(Insight(user_id=user_id, created_at=now, **insight) for insight in insights)
    await db.flush()
    return len(insights)


async def generate_ai_insights(user_id: str, db: AsyncSession) -> int:
    try:
        created = await replace_insights(user_id, db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Refreshed %s insights for user %s", created, user_id)
    return created


async def get_ai_insights(user_id: str, db: AsyncSession, limit: Optional[int] = None) -> List[Insight]:
    """Newest insights first, highest priority first within a refresh."""
    cap = limit if limit is not None else settings.INSIGHTS_QUERY_LIMIT
    result = await db.execute(
        select(Insight)
        .where(Insight.user_id == user_id)
        .order_by(Insight.created_at.desc(), Insight.priority.desc())
        .limit(max(int(cap), 0))
    )
    return list(result.scalars().all())

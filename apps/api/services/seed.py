"""Sample workspace for demo identities."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models.channel import Channel
from models.competitor import Competitor
from models.content_idea import ContentIdea
from models.insight import Insight
from models.trending_topic import TrendingTopic
from models.video import Video
from services.channels import store_channel_data, store_videos
from services.competitors import store_competitor_data
from services.content_ideas import build_mock_ideas
from services.feature_gate import is_premium_user
from services.insights import replace_insights
from services.trending_topics import topics_for
from services.users import ensure_user

logger = logging.getLogger(__name__)

SAMPLE_CHANNEL = {
    "channel_id": "demo-creator-studio",
    "name": "Demo Creator Studio",
    "url": "https://youtube.com/c/demo-creator-studio",
    "subscriber_count": 48_200,
    "video_count": 6,
    "view_count": 2_350_000,
    "thumbnail_url": "https://picsum.photos/seed/demo-creator-studio/200/200",
}

SAMPLE_VIDEOS = [
    ("Editing Workflow Breakdown", 42_000, 3_900, 410, 2),
    ("Camera Gear Under $500", 31_500, 2_650, 380, 9),
    ("How I Plan a Month of Uploads", 27_800, 2_210, 295, 16),
    ("Thumbnail Design Teardown", 19_400, 1_540, 188, 23),
    ("Studio Tour 2.0", 15_100, 1_320, 240, 40),
    ("First Upload Anniversary", 8_900, 960, 150, 75),
]

SAMPLE_COMPETITOR = {
    "competitor_channel_id": "demo-rival-channel",
    "name": "Rival Creator Lab",
    "url": "https://youtube.com/c/demo-rival-channel",
    "subscriber_count": 120_000,
    "video_count": 240,
    "view_count": 9_800_000,
}

WORKSPACE_MODELS = (Insight, ContentIdea, TrendingTopic, Competitor, Video, Channel)


async def _clear_rows(user_id: str, db: AsyncSession) -> Dict[str, int]:
    deleted: Dict[str, int] = {}
    for model in WORKSPACE_MODELS:
        result = await db.execute(delete(model).where(model.user_id == user_id))
        deleted[model.__tablename__] = int(result.rowcount or 0)
    return deleted


async def seed_demo_workspace(user_id: str, db: AsyncSession) -> Dict[str, int]:
    """Replace the user's workspace with sample data and refresh insights."""
    user = await ensure_user(user_id, db)
    premium = is_premium_user(user)
    now = datetime.now(timezone.utc)

    try:
        await _clear_rows(user_id, db)

        channel = await store_channel_data(user_id, dict(SAMPLE_CHANNEL), db)
        videos = [
            {
                "video_id": f"demo-video-{index}",
                "title": title,
                "description": f"Sample upload: {title}",
                "published_at": now - timedelta(days=age_days),
                "view_count": views,
                "like_count": likes,
                "comment_count": comments,
                "tags": ["demo", "creator"],
            }
            for index, (title, views, likes, comments, age_days) in enumerate(SAMPLE_VIDEOS)
        ]
        await store_videos(channel, videos, db)

        idea_count = settings.FREE_IDEA_LIMIT + 2 if premium else settings.FREE_IDEA_LIMIT
        ideas = build_mock_ideas(
            user_id,
            idea_count,
            free_limit=settings.FREE_IDEA_LIMIT,
            inspiration_sources=[video["video_id"] for video in videos[:2]],
        )
        db.add_all(ContentIdea(created_at=now, **idea) for idea in ideas)

        topics = topics_for(premium)
        db.add_all(TrendingTopic(user_id=user_id, created_at=now, **topic) for topic in topics)

        competitors = 0
        if premium:
            await store_competitor_data(user_id, dict(SAMPLE_COMPETITOR), db)
            competitors = 1

        await db.flush()
        insights = await replace_insights(user_id, db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Seeded demo workspace for user %s", user_id)
    return {
        "channels": 1,
        "videos": len(videos),
        "content_ideas": len(ideas),
        "trending_topics": len(topics),
        "competitors": competitors,
        "insights": insights,
    }


async def clear_demo_workspace(user_id: str, db: AsyncSession) -> Dict[str, int]:
    try:
        deleted = await _clear_rows(user_id, db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return deleted

"""Content idea generation (mocked), listing and manual entry."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.content_idea import ContentIdea
from services.channels import find_channel_by_external_id, get_channel_videos
from services.errors import RecordNotFoundError
from services.feature_gate import filter_accessible, is_premium_user
from services.mock_data import random_choice
from services.users import get_user_by_id

logger = logging.getLogger(__name__)

IDEA_CATEGORIES = ["Tutorial", "Review", "Vlog", "Commentary", "Interview", "Reaction"]
ESTIMATED_VIEWERSHIP = ["high", "medium", "low"]


def build_mock_ideas(
    user_id: str,
    count: int,
    *,
    free_limit: int,
    inspiration_sources: List[str],
) -> List[Dict[str, Any]]:
    """Ideas past ``free_limit`` are premium."""
    ideas = []
    for index in range(count):
        premium_idea = index >= free_limit
        category = random_choice(IDEA_CATEGORIES)
        tier = "premium" if premium_idea else "free"
        ideas.append(
            {
                "user_id": user_id,
                "title": f"Content Idea {index + 1}: {category}",
                "description": (
                    f"This is a {tier} content idea generated based on your channel analytics. "
                    "It's designed to engage your audience and grow your channel."
                ),
                "tags": ["youtube", "content", random_choice(IDEA_CATEGORIES).lower()],
                "category": category,
                "is_premium": premium_idea,
                "is_generated": True,
                "inspiration_sources": list(inspiration_sources),
                "potential_keywords": ["youtube", "creator", "content", category.lower()],
                "estimated_viewership": random_choice(ESTIMATED_VIEWERSHIP),
            }
        )
    return ideas


async def generate_content_ideas(user_id: str, channel_id: str, count: int, db: AsyncSession) -> List[str]:
    """Generate and store a batch of ideas; free users are capped at the free limit.

    The batch is written in one transaction so a failed attempt leaves no rows.
    """
    user = await get_user_by_id(user_id, db)
    channel = await find_channel_by_external_id(user_id, channel_id, db)
    if channel is None:
        raise RecordNotFoundError("Channel", channel_id)

    videos = await get_channel_videos(user_id, channel_id, db)
    free_limit = max(int(settings.FREE_IDEA_LIMIT), 0)
    requested = max(int(count), 0)
    idea_count = requested if is_premium_user(user) else min(requested, free_limit)

    now = datetime.now(timezone.utc)
    rows = [
        ContentIdea(created_at=now, **idea)
        for idea in build_mock_ideas(
            user_id,
            idea_count,
            free_limit=free_limit,
            inspiration_sources=[video.video_id for video in videos[:2]],
        )
    ]
    try:
        db.add_all(rows)
        await db.flush()
        idea_ids = [row.id for row in rows]
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Generated %s content ideas for user %s", len(idea_ids), user_id)
    return idea_ids


async def get_user_content_ideas(user_id: str, include_premium: bool, db: AsyncSession) -> List[ContentIdea]:
    user = await get_user_by_id(user_id, db)
    result = await db.execute(
        select(ContentIdea).where(ContentIdea.user_id == user_id).order_by(ContentIdea.created_at.desc())
    )
    ideas = list(result.scalars().all())
    if not include_premium:
        return [idea for idea in ideas if not idea.is_premium]
    return filter_accessible(ideas, user)


async def create_manual_content_idea(
    user_id: str,
    db: AsyncSession,
    *,
    title: str,
    description: str,
    tags: Optional[List[str]] = None,
    category: Optional[str] = None,
) -> str:
    idea = ContentIdea(
        user_id=user_id,
        title=title,
        description=description,
        tags=list(tags or []),
        category=category,
        is_premium=False,
        is_generated=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(idea)
    await db.flush()
    idea_id = idea.id
    await db.commit()
    return idea_id


async def delete_content_idea(user_id: str, idea_id: str, db: AsyncSession) -> bool:
    result = await db.execute(
        select(ContentIdea).where(ContentIdea.id == idea_id, ContentIdea.user_id == user_id)
    )
    idea = result.scalar_one_or_none()
    if idea is None:
        raise RecordNotFoundError("ContentIdea", idea_id)
    await db.delete(idea)
    await db.commit()
    return True

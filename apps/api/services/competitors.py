"""Competitor tracking (premium), with mocked channel stats and insights."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.competitor import Competitor
from services.errors import RecordNotFoundError
from services.feature_gate import is_premium_user, require_premium
from services.mock_data import channel_id_from_url, mock_competitor_stats, random_count
from services.users import get_user_by_id

logger = logging.getLogger(__name__)


async def store_competitor_data(user_id: str, competitor_data: Dict[str, Any], db: AsyncSession) -> Competitor:
    """Insert the competitor or refresh its stats. Caller commits."""
    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(Competitor).where(
            Competitor.user_id == user_id,
            Competitor.competitor_channel_id == competitor_data["competitor_channel_id"],
        )
    )
    competitor = result.scalar_one_or_none()
    if competitor:
        competitor.subscriber_count = int(competitor_data.get("subscriber_count", 0))
        competitor.video_count = int(competitor_data.get("video_count", 0))
        competitor.view_count = int(competitor_data.get("view_count", 0))
        competitor.last_synced_at = now
    else:
        competitor = Competitor(
            user_id=user_id,
            competitor_channel_id=competitor_data["competitor_channel_id"],
            name=competitor_data["name"],
            url=competitor_data["url"],
            subscriber_count=int(competitor_data.get("subscriber_count", 0)),
            video_count=int(competitor_data.get("video_count", 0)),
            view_count=int(competitor_data.get("view_count", 0)),
            notes="",
            is_premium=True,
            last_synced_at=now,
        )
        db.add(competitor)
    await db.flush()
    return competitor


async def add_competitor(user_id: str, competitor_url: str, db: AsyncSession) -> str:
    user = await get_user_by_id(user_id, db)
    require_premium(user, "competitor_analysis", "Competitor analysis is a premium feature")

    competitor_channel_id = channel_id_from_url(competitor_url, "demo-competitor-id")
    try:
        competitor = await store_competitor_data(
            user_id, mock_competitor_stats(competitor_channel_id, competitor_url), db
        )
        competitor_id = competitor.id
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Tracking competitor %s for user %s", competitor_channel_id, user_id)
    return competitor_id


async def get_user_competitors(user_id: str, db: AsyncSession) -> List[Competitor]:
    """Free users see an empty list."""
    user = await get_user_by_id(user_id, db)
    if not is_premium_user(user):
        return []
    result = await db.execute(
        select(Competitor).where(Competitor.user_id == user_id).order_by(Competitor.name)
    )
    return list(result.scalars().all())


async def get_competitor(user_id: str, competitor_id: str, db: AsyncSession) -> Competitor:
    result = await db.execute(
        select(Competitor).where(Competitor.id == competitor_id, Competitor.user_id == user_id)
    )
    competitor = result.scalar_one_or_none()
    if competitor is None:
        raise RecordNotFoundError("Competitor", competitor_id)
    return competitor


async def update_competitor_notes(user_id: str, competitor_id: str, notes: str, db: AsyncSession) -> bool:
    """Overwrite notes; concurrent edits are last-write-wins."""
    competitor = await get_competitor(user_id, competitor_id, db)
    competitor.notes = notes
    await db.commit()
    return True


async def delete_competitor(user_id: str, competitor_id: str, db: AsyncSession) -> bool:
    competitor = await get_competitor(user_id, competitor_id, db)
    await db.delete(competitor)
    await db.commit()
    return True


async def generate_competitor_insights(user_id: str, competitor_id: str, db: AsyncSession) -> Dict[str, Any]:
    user = await get_user_by_id(user_id, db)
    require_premium(user, "competitor_insights", "Competitor insights is a premium feature")
    competitor = await get_competitor(user_id, competitor_id, db)

    return {
        "competitor_id": competitor.id,
        "top_performing_content_types": ["Tutorials", "Reviews", "Interviews"],
        "upload_frequency": "2 videos per week",
        "average_view_count": int(competitor.view_count / (competitor.video_count or 1)),
        "engagement_rate": f"{random_count(1000) / 100:.2f}%",
        "growth_rate": f"{random_count(2000) / 100:.2f}% per month",
        "recommended_strategies": [
            "Focus on tutorial content similar to competitor's top videos",
            "Upload more frequently to match competitor's cadence",
            "Engage more with comments to boost engagement rate",
        ],
    }

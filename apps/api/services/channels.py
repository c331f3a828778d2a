"""Channel connection (mocked), sync and cascade delete."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.channel import Channel
from models.video import Video
from services.errors import RecordNotFoundError
from services.mock_data import channel_id_from_url, mock_channel_stats, mock_channel_videos

logger = logging.getLogger(__name__)


async def store_channel_data(user_id: str, channel_data: Dict[str, Any], db: AsyncSession) -> Channel:
    """Insert the channel or refresh its stats on re-sync. Caller commits."""
    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(Channel).where(
            Channel.user_id == user_id,
            Channel.channel_id == channel_data["channel_id"],
        )
    )
    channel = result.scalar_one_or_none()
    if channel:
        channel.subscriber_count = int(channel_data.get("subscriber_count", 0))
        channel.video_count = int(channel_data.get("video_count", 0))
        channel.view_count = int(channel_data.get("view_count", 0))
        channel.last_synced_at = now
    else:
        channel = Channel(
            user_id=user_id,
            channel_id=channel_data["channel_id"],
            name=channel_data["name"],
            url=channel_data["url"],
            subscriber_count=int(channel_data.get("subscriber_count", 0)),
            video_count=int(channel_data.get("video_count", 0)),
            view_count=int(channel_data.get("view_count", 0)),
            thumbnail_url=channel_data.get("thumbnail_url"),
            is_analyzed=False,
            last_synced_at=now,
        )
        db.add(channel)
    await db.flush()
    return channel


async def store_videos(channel: Channel, videos: List[Dict[str, Any]], db: AsyncSession) -> int:
    """Upsert videos by ``video_id`` for a stored channel. Caller commits."""
    for video in videos:
        result = await db.execute(
            select(Video).where(
                Video.user_id == channel.user_id,
                Video.video_id == video["video_id"],
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            existing.view_count = int(video.get("view_count", 0))
            existing.like_count = int(video.get("like_count", 0))
            existing.comment_count = int(video.get("comment_count", 0))
            continue
        db.add(
            Video(
                user_id=channel.user_id,
                channel_id=channel.channel_id,
                video_id=video["video_id"],
                title=video["title"],
                description=video.get("description"),
                published_at=video.get("published_at"),
                view_count=int(video.get("view_count", 0)),
                like_count=int(video.get("like_count", 0)),
                comment_count=int(video.get("comment_count", 0)),
                thumbnail_url=video.get("thumbnail_url"),
                tags=list(video.get("tags") or []),
            )
        )
    await db.flush()
    return len(videos)


async def connect_channel(user_id: str, channel_url: str, db: AsyncSession) -> str:
    """Connect a channel with mock stats and sample videos; returns the channel row id."""
    channel_id = channel_id_from_url(channel_url, "demo-channel-id")
    try:
        channel = await store_channel_data(user_id, mock_channel_stats(channel_id, channel_url), db)
        videos = mock_channel_videos(channel_id, settings.CHANNEL_SAMPLE_VIDEO_COUNT)
        await store_videos(channel, videos, db)
        channel_row_id = channel.id
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Connected channel %s for user %s", channel_id, user_id)
    return channel_row_id


async def get_user_channels(user_id: str, db: AsyncSession) -> List[Channel]:
    result = await db.execute(select(Channel).where(Channel.user_id == user_id).order_by(Channel.name))
    return list(result.scalars().all())


async def get_channel(user_id: str, channel_row_id: str, db: AsyncSession) -> Optional[Channel]:
    result = await db.execute(
        select(Channel).where(Channel.id == channel_row_id, Channel.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def find_channel_by_external_id(user_id: str, channel_id: str, db: AsyncSession) -> Optional[Channel]:
    result = await db.execute(
        select(Channel).where(Channel.user_id == user_id, Channel.channel_id == channel_id)
    )
    return result.scalar_one_or_none()


async def get_channel_videos(user_id: str, channel_id: str, db: AsyncSession) -> List[Video]:
    """Videos for an external channel id, newest first."""
    result = await db.execute(
        select(Video)
        .where(Video.user_id == user_id, Video.channel_id == channel_id)
        .order_by(Video.published_at.desc())
    )
    return list(result.scalars().all())


async def delete_channel(user_id: str, channel_row_id: str, db: AsyncSession) -> bool:
    """Delete a channel and every video stored for it."""
    channel = await get_channel(user_id, channel_row_id, db)
    if channel is None:
        raise RecordNotFoundError("Channel", channel_row_id)

    await db.execute(
        delete(Video).where(Video.user_id == user_id, Video.channel_id == channel.channel_id)
    )
    await db.delete(channel)
    await db.commit()
    return True

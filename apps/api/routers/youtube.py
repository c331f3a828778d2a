"""
YouTube router for connected channels and their videos (mock data).
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.channels import connect_channel, delete_channel, get_channel, get_channel_videos, get_user_channels

router = APIRouter()


# ==================== Pydantic Models ====================

class ConnectChannelRequest(BaseModel):
    """Request to connect a channel by URL."""
    channel_url: str
    user_id: Optional[str] = None


class ChannelResponse(BaseModel):
    """Stored channel."""
    id: str
    channel_id: str
    name: str
    url: str
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    thumbnail_url: Optional[str] = None
    is_analyzed: bool = False
    last_synced_at: Optional[datetime] = None


class VideoResponse(BaseModel):
    """Stored video."""
    id: str
    channel_id: str
    video_id: str
    title: str
    description: Optional[str] = None
    published_at: Optional[datetime] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    thumbnail_url: Optional[str] = None
    tags: List[str] = []


def _channel_response(channel) -> ChannelResponse:
    return ChannelResponse(
        id=channel.id,
        channel_id=channel.channel_id,
        name=channel.name,
        url=channel.url,
        subscriber_count=channel.subscriber_count or 0,
        video_count=channel.video_count or 0,
        view_count=channel.view_count or 0,
        thumbnail_url=channel.thumbnail_url,
        is_analyzed=bool(channel.is_analyzed),
        last_synced_at=channel.last_synced_at,
    )


def _video_response(video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        channel_id=video.channel_id,
        video_id=video.video_id,
        title=video.title,
        description=video.description,
        published_at=video.published_at,
        view_count=video.view_count or 0,
        like_count=video.like_count or 0,
        comment_count=video.comment_count or 0,
        thumbnail_url=video.thumbnail_url,
        tags=list(video.tags or []),
    )


# ==================== Endpoints ====================

@router.post("/channels", response_model=ChannelResponse)
async def connect_channel_endpoint(
    request: ConnectChannelRequest,
    _rate_limit: None = Depends(rate_limit("channel_connect", limit=20, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Connect a channel; stats and sample videos are mocked."""
    user_id = ensure_user_scope(auth.user_id, request.user_id)
    channel_row_id = await connect_channel(user_id, request.channel_url, db)
    channel = await get_channel(user_id, channel_row_id, db)
    return _channel_response(channel)


@router.get("/channels", response_model=List[ChannelResponse])
async def list_channels(
    user_id: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    scoped_user_id = ensure_user_scope(auth.user_id, user_id)
    return [_channel_response(channel) for channel in await get_user_channels(scoped_user_id, db)]


@router.get("/channels/{channel_id}/videos", response_model=List[VideoResponse])
async def list_channel_videos(
    channel_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Videos for an external channel id, newest first."""
    videos = await get_channel_videos(auth.user_id, channel_id, db)
    return [_video_response(video) for video in videos]


@router.delete("/channels/{channel_row_id}")
async def delete_channel_endpoint(
    channel_row_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a channel and its videos."""
    await delete_channel(auth.user_id, channel_row_id, db)
    return {"deleted": True, "id": channel_row_id}

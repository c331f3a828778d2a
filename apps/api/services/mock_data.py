"""Mock YouTube data used in place of real API calls."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

_rng = random.SystemRandom()


def channel_id_from_url(url: str, fallback: str) -> str:
    """Use the last path segment of a channel URL as its id."""
    text = str(url or "").strip()
    parsed = urlparse(text)
    path = parsed.path if parsed.scheme else text
    segment = path.rstrip("/").rsplit("/", 1)[-1] if path else ""
    return segment or fallback


def random_count(upper: int) -> int:
    return int(_rng.random() * upper)


def random_choice(values: List[Any]) -> Any:
    return values[int(_rng.random() * len(values))]


def mock_channel_stats(channel_id: str, url: str) -> Dict[str, Any]:
    return {
        "channel_id": channel_id,
        "name": f"Channel {channel_id}",
        "url": url,
        "subscriber_count": random_count(100_000),
        "video_count": random_count(500),
        "view_count": random_count(10_000_000),
        "thumbnail_url": f"https://picsum.photos/seed/{channel_id}/200/200",
    }


def mock_channel_videos(channel_id: str, count: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Sample uploads, one day apart, newest first."""
    current = now or datetime.now(timezone.utc)
    videos = []
    for index in range(max(count, 0)):
        video_id = f"video-{index}-{channel_id}"
        videos.append(
            {
                "video_id": video_id,
                "title": f"Sample Video {index}",
                "description": f"This is a sample video description for video {index}",
                "published_at": current - timedelta(days=index),
                "view_count": random_count(50_000),
                "like_count": random_count(5_000),
                "comment_count": random_count(500),
                "thumbnail_url": f"https://picsum.photos/seed/{video_id}/320/180",
                "tags": ["sample", "video", f"tag-{index}"],
            }
        )
    return videos


def mock_competitor_stats(competitor_channel_id: str, url: str) -> Dict[str, Any]:
    return {
        "competitor_channel_id": competitor_channel_id,
        "name": f"Competitor {competitor_channel_id}",
        "url": url,
        "subscriber_count": random_count(500_000),
        "video_count": random_count(1_000),
        "view_count": random_count(50_000_000),
    }

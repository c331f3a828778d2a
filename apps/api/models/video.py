"""Video model for connected channels."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
import uuid

from database import Base


class Video(Base):
    """Video belonging to a connected channel (matched on the external channel id)."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    channel_id = Column(String, nullable=False, index=True)
    video_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    thumbnail_url = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

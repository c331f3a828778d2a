"""Connected YouTube channel."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
import uuid

from database import Base


class Channel(Base):
    """Channel a user connected; stats are refreshed on re-sync."""

    __tablename__ = "channels"
    __table_args__ = (UniqueConstraint("user_id", "channel_id", name="uq_channels_user_channel"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    channel_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    subscriber_count = Column(Integer, nullable=False, default=0)
    video_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    thumbnail_url = Column(String, nullable=True)
    is_analyzed = Column(Boolean, nullable=False, default=False)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

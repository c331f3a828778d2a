"""Competitor model for tracked channels."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
import uuid

from database import Base


class Competitor(Base):
    """Competitor channel being tracked (premium feature)."""

    __tablename__ = "competitors"
    __table_args__ = (
        UniqueConstraint("user_id", "competitor_channel_id", name="uq_competitors_user_channel"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    competitor_channel_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    subscriber_count = Column(Integer, nullable=False, default=0)
    video_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=False, default="")
    is_premium = Column(Boolean, nullable=False, default=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

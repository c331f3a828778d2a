"""Trending topic model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from datetime import datetime, timezone
import uuid

from database import Base


class TrendingTopic(Base):
    __tablename__ = "trending_topics"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    topic = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    relevance_score = Column(Integer, nullable=True)
    sources = Column(JSON, nullable=False, default=list)
    is_premium = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

"""Content idea model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from datetime import datetime, timezone
import uuid

from database import Base


class ContentIdea(Base):
    """Generated or manually entered video idea."""

    __tablename__ = "content_ideas"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    category = Column(String, nullable=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    is_generated = Column(Boolean, nullable=False, default=False)
    inspiration_sources = Column(JSON, nullable=False, default=list)
    potential_keywords = Column(JSON, nullable=False, default=list)
    estimated_viewership = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

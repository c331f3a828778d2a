"""Dashboard insight model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from datetime import datetime, timezone
import uuid

from database import Base


INSIGHT_CATEGORIES = ("performance", "opportunity", "suggestion", "trend")


class Insight(Base):
    """Insight row; the full set is replaced on every refresh."""

    __tablename__ = "insights"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    priority = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

"""Routers package."""

from . import (
    health,
    auth,
    youtube,
    content_ideas,
    trending_topics,
    competitor,
    insights,
    billing,
    premium,
    demo,
    relay,
)

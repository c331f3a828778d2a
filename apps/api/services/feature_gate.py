"""Premium/free access policy shared by queries and UI affordances."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, TypeVar

from services.errors import PremiumRequiredError

T = TypeVar("T")

PREMIUM_FEATURES = (
    "competitor_analysis",
    "competitor_insights",
    "advanced_content_ideas",
    "premium_trending_topics",
    "premium_content",
)


def _flag(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, dict):
        return bool(value.get(name, False))
    return bool(getattr(value, name, False))


def is_premium_user(user: Any) -> bool:
    return _flag(user, "is_premium")


def can_access(resource: Any, user: Optional[Any]) -> bool:
    """Non-premium resources are always visible; premium ones only to premium users."""
    if not _flag(resource, "is_premium"):
        return True
    return is_premium_user(user)


def filter_accessible(resources: Iterable[T], user: Optional[Any]) -> List[T]:
    return [resource for resource in resources if can_access(resource, user)]


def require_premium(user: Optional[Any], feature: str, message: Optional[str] = None) -> None:
    if not is_premium_user(user):
        raise PremiumRequiredError(feature, message)


def entitlements(user: Optional[Any]) -> Dict[str, Any]:
    premium = is_premium_user(user)
    return {
        "is_premium": premium,
        "features": {feature: premium for feature in PREMIUM_FEATURES},
    }

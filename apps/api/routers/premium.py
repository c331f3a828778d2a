"""Premium sample content, gated on the premium flag."""

from fastapi import APIRouter, Depends

from models.user import User
from routers.auth_scope import get_auth_facade, get_current_user
from services.auth_facade import AUTH_MODE_DEMO, AuthFacade
from services.feature_gate import is_premium_user, require_premium

router = APIRouter()


@router.get("/content")
async def premium_content(
    facade: AuthFacade = Depends(get_auth_facade),
    user: User = Depends(get_current_user),
):
    """Premium users, and sessions whose plan claim is premium, see the content."""
    if not (is_premium_user(user) or facade.has({"plan": "premium"})):
        require_premium(user, "premium_content", "Upgrade to access premium content.")

    demo = facade.mode == AUTH_MODE_DEMO
    return {
        "title": "Demo Premium Content" if demo else "Premium Content",
        "sections": [
            {
                "heading": "Advanced Growth Playbook",
                "body": "A month-by-month plan for scaling uploads without burning out.",
            },
            {
                "heading": "Performance Predictions",
                "body": "Projected views for your next uploads based on recent engagement.",
            },
        ],
        "demo": demo,
    }

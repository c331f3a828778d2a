"""Billing router: pricing tiers, demo upgrade and entitlements."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, ensure_user_scope, get_auth_context, get_current_user
from routers.rate_limit import rate_limit
from services.feature_gate import entitlements
from services.users import update_premium_status

router = APIRouter()
logger = logging.getLogger(__name__)

PLANS = [
    {
        "id": "free",
        "name": "Free",
        "price_monthly": 0,
        "tagline": "Get started with basic features",
        "features": [
            "Connect 1 YouTube channel",
            "3 content ideas per month",
            "Basic trending topics",
        ],
    },
    {
        "id": "pro",
        "name": "Pro",
        "price_monthly": 19,
        "tagline": "Perfect for growing creators",
        "most_popular": True,
        "features": [
            "Connect 3 YouTube channels",
            "Unlimited content ideas",
            "All trending topics",
            "Competitor analysis (3 competitors)",
            "Advanced content ideas",
        ],
    },
    {
        "id": "premium",
        "name": "Premium",
        "price_monthly": 49,
        "tagline": "For serious content creators",
        "features": [
            "Connect unlimited channels",
            "Unlimited content ideas",
            "All trending topics",
            "Unlimited competitor analysis",
            "Advanced content ideas",
            "Performance predictions",
            "Priority support",
        ],
    },
]


class UpgradeRequest(BaseModel):
    plan: Literal["pro", "premium"] = "premium"
    user_id: Optional[str] = None


@router.get("/plans")
async def list_plans():
    """Marketing tiers; every paid tier maps to the same premium flag."""
    return {"plans": PLANS}


@router.post("/upgrade")
async def upgrade(
    request: UpgradeRequest,
    _rate_limit: None = Depends(rate_limit("billing_upgrade", limit=20, window_seconds=3600)),
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Simulated checkout: no payment processor, just flips the premium flag."""
    scoped_user_id = ensure_user_scope(auth.user_id, request.user_id)
    await update_premium_status(scoped_user_id, True, db)
    logger.info("User %s upgraded to %s", scoped_user_id, request.plan)
    return {"ok": True, "plan": request.plan, "is_premium": True}


@router.post("/downgrade")
async def downgrade(
    auth: AuthContext = Depends(get_auth_context),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await update_premium_status(auth.user_id, False, db)
    return {"ok": True, "plan": "free", "is_premium": False}


@router.get("/entitlements")
async def get_entitlements(user: User = Depends(get_current_user)):
    return entitlements(user)

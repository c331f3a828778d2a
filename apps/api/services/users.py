"""User records: upsert on sign-in, lookup and premium status."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.user import User
from services.errors import RecordNotFoundError


logger = logging.getLogger(__name__)


async def get_user_by_id(user_id: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


def _refresh_profile(
    user: User,
    now: datetime,
    *,
    name: Optional[str],
    email: Optional[str],
    is_premium: Optional[bool],
) -> None:
    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if is_premium is not None:
        user.is_premium = bool(is_premium)
    user.last_login_at = now


async def create_or_update_user(
    user_id: str,
    db: AsyncSession,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    is_premium: Optional[bool] = None,
) -> User:
    """Create the user on first sign-in, otherwise refresh profile fields.

    Parallel first requests for a new user race to insert the same id; the
    losers roll back and update the row the winner created.
    """
    now = datetime.now(timezone.utc)
    user = await get_user_by_id(user_id, db)
    if user is None:
        user = User(
            id=user_id,
            name=name,
            email=email,
            is_premium=bool(is_premium) if is_premium is not None else False,
            created_at=now,
            last_login_at=now,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            user = await get_user_by_id(user_id, db)
            if user is None:
                raise
            logger.info("User %s was created by a concurrent request", user_id)
            _refresh_profile(user, now, name=name, email=email, is_premium=is_premium)
            await db.commit()
    else:
        _refresh_profile(user, now, name=name, email=email, is_premium=is_premium)
        await db.commit()

    await db.refresh(user)
    return user


async def ensure_user(user_id: str, db: AsyncSession, *, email: Optional[str] = None) -> User:
    """Return the user row, creating a minimal one for first-time callers."""
    user = await get_user_by_id(user_id, db)
    if user is not None:
        return user
    return await create_or_update_user(user_id, db, email=email)


async def update_premium_status(user_id: str, is_premium: bool, db: AsyncSession) -> bool:
    user = await get_user_by_id(user_id, db)
    if user is None:
        raise RecordNotFoundError("User", user_id)
    user.is_premium = bool(is_premium)
    await db.commit()
    return True

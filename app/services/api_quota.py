"""
API token quota tracking.
Each API token holder may make api_calls_limit calls per window; the window
restarts (count back to zero, new deadline) the first time a call arrives
after the deadline has passed.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.user import User
from app.utils.auth import generate_api_token

logger = logging.getLogger(__name__)


def quota_window() -> timedelta:
    return timedelta(hours=settings.API_QUOTA_WINDOW_HOURS)


def reset_usage_if_expired(user: User, db: Session, now: Optional[datetime] = None) -> bool:
    """
    Start a new quota window when the current one has ended.
    A user with no deadline yet gets one starting now.
    Returns True if a reset happened.
    """
    now = now or datetime.utcnow()
    if user.api_calls_reset_at is not None and now <= user.api_calls_reset_at:
        return False

    user.api_calls_count = 0
    user.api_calls_reset_at = now + quota_window()
    db.commit()
    db.refresh(user)
    logger.info("[QUOTA] Usage window reset for user %s, next reset at %s", user.id, user.api_calls_reset_at)
    return True


def consume_api_call(user: User, db: Session, now: Optional[datetime] = None) -> int:
    """
    Count one API call against the user's quota.
    Raises 429 once the limit is reached. Returns the new call count.
    """
    reset_usage_if_expired(user, db, now)

    if user.api_calls_count >= user.api_calls_limit:
        logger.warning("[QUOTA] User %s hit API limit (%s/%s)", user.id, user.api_calls_count, user.api_calls_limit)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="API call limit exceeded"
        )

    # Conditional increment so concurrent calls cannot overshoot the limit
    incremented = db.query(User).filter(
        User.id == user.id,
        User.api_calls_count < User.api_calls_limit
    ).update(
        {User.api_calls_count: User.api_calls_count + 1},
        synchronize_session=False
    )
    db.commit()
    if incremented != 1:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="API call limit exceeded"
        )
    db.refresh(user)
    return user.api_calls_count


def issue_api_token(user: User, db: Session, now: Optional[datetime] = None) -> str:
    """Replace the user's API token and start a fresh quota window."""
    now = now or datetime.utcnow()
    user.api_token = generate_api_token()
    user.api_calls_count = 0
    user.api_calls_reset_at = now + quota_window()
    db.commit()
    db.refresh(user)
    return user.api_token


def revoke_api_token(user: User, db: Session) -> None:
    user.api_token = None
    db.commit()

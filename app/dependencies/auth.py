from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session
from typing import Optional
import logging
from app.db.session import get_db
from app.models.user import User
from app.services.api_quota import consume_api_call
from app.utils.auth import verify_token

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid header format. Expected 'Bearer <token>'"
        )

    token = authorization.replace("Bearer ", "", 1).strip()

    # Reject common invalid token values sent by front ends with an empty session
    if token.lower() in ["null", "undefined", "none", ""]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token"
        )
    return token


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the session token to an active user.
    The token carries the user id and role; the user row is re-read on every
    request so deactivation takes effect immediately.
    """
    token = _bearer_token(authorization)
    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID claim"
        )

    user = db.query(User).filter(
        User.id == user_id,
        User.is_active == True
    ).first()
    if not user:
        logger.info("[AUTH] Token for missing or inactive user %s rejected", user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user


def require_credits(user: User = Depends(get_current_user)) -> User:
    """Gate for paid operations: the caller needs at least one credit."""
    if user.credits < 1:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient credits"
        )
    return user


def get_api_user_id(
    x_api_token: Optional[str] = Header(None, alias="X-API-Token"),
    db: Session = Depends(get_db)
) -> int:
    """
    Quota gate for machine clients. Counts the call against the token owner's
    quota and hands the route only the owner's id.
    """
    if not x_api_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API token required"
        )

    user = db.query(User).filter(
        User.api_token == x_api_token,
        User.is_active == True
    ).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API token"
        )

    consume_api_call(user, db)
    return user.id

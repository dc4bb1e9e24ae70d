import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.credit_transaction import CreditTransaction, TRANSACTION_ADD, TRANSACTION_SUBTRACT
from app.models.monitored_domain import MonitoredDomain
from app.models.user import User

logger = logging.getLogger(__name__)


def record_transaction(db: Session, user_id: int, change: int, description: str) -> Optional[CreditTransaction]:
    """Stage a ledger row for a signed balance change. Zero changes are not recorded."""
    if change == 0:
        return None
    entry = CreditTransaction(
        user_id=user_id,
        amount=abs(change),
        transaction_type=TRANSACTION_ADD if change > 0 else TRANSACTION_SUBTRACT,
        description=description
    )
    db.add(entry)
    return entry


def update_user(
    db: Session,
    user: User,
    credits: Optional[int] = None,
    api_calls_limit: Optional[int] = None,
    is_active: Optional[bool] = None
) -> User:
    """
    Apply an admin update. Only credits, api_calls_limit and is_active can change;
    a credit change is written to the ledger in the same commit.
    """
    if credits is None and api_calls_limit is None and is_active is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid update fields provided"
        )

    if credits is not None:
        record_transaction(db, user.id, credits - user.credits, "Admin adjustment")
        user.credits = credits
    if api_calls_limit is not None:
        user.api_calls_limit = api_calls_limit
    if is_active is not None:
        user.is_active = is_active

    db.commit()
    db.refresh(user)
    logger.info("[ADMIN] Updated user %s", user.id)
    return user


def add_credits(db: Session, user: User, amount: int) -> User:
    if amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credit amount"
        )
    db.query(User).filter(User.id == user.id).update(
        {User.credits: User.credits + amount},
        synchronize_session=False
    )
    record_transaction(db, user.id, amount, "Admin credit addition")
    db.commit()
    db.refresh(user)
    logger.info("[ADMIN] Added %s credits to user %s", amount, user.id)
    return user


def recent_transactions(db: Session, user_id: int, limit: int = 10) -> List[Dict]:
    rows = db.query(CreditTransaction).filter(
        CreditTransaction.user_id == user_id
    ).order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc()).limit(limit).all()

    return [
        {
            "id": row.id,
            "amount": row.amount,
            "transaction_type": row.transaction_type,
            "description": row.description,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]


def user_stats(db: Session, user: User) -> Dict:
    domain_count = db.query(MonitoredDomain).filter(
        MonitoredDomain.user_id == user.id
    ).count()
    return {
        "domain_count": domain_count,
        "recent_transactions": recent_transactions(db, user.id),
    }

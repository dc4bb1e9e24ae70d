"""
Per-user registry of monitored domains: add, remove, list and manual checks.
Shared by the user routes and the admin's own-domain routes.
"""
import logging
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.intervals import CheckInterval, DEFAULT_INTERVAL_LABEL
from app.models.domain_history import DomainHistory
from app.models.monitored_domain import MonitoredDomain
from app.models.user import User
from app.services.domain_checker import DomainChecker, SettleResult

logger = logging.getLogger(__name__)

CREDITS_PER_CHECK = 1


def serialize_domain(domain: MonitoredDomain) -> Dict:
    return {
        "id": domain.id,
        "user_id": domain.user_id,
        "domain": domain.domain,
        "status": domain.status,
        "check_interval": domain.check_interval,
        "interval_label": CheckInterval.label_for(domain.check_interval),
        "credits_per_check": domain.credits_per_check,
        "last_checked": domain.last_checked.isoformat() if domain.last_checked else None,
        "created_at": domain.created_at.isoformat() if domain.created_at else None,
    }


def account_summary(user: User) -> Dict:
    return {
        "credits": user.credits,
        "api_calls_count": user.api_calls_count,
        "api_calls_limit": user.api_calls_limit,
        "api_token": user.api_token,
    }


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def get_owned_domain(db: Session, user_id: int, domain_id: int) -> MonitoredDomain:
    """Load a domain only if it belongs to user_id."""
    domain = db.query(MonitoredDomain).filter(
        MonitoredDomain.id == domain_id,
        MonitoredDomain.user_id == user_id
    ).first()
    if not domain:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Domain not found"
        )
    return domain


def list_domains(db: Session, user_id: int) -> Dict:
    """Domains for one owner plus a fresh snapshot of the owner's credits and quota."""
    user = get_user_or_404(db, user_id)
    domains = db.query(MonitoredDomain).filter(
        MonitoredDomain.user_id == user_id
    ).order_by(MonitoredDomain.id).all()

    return {
        "domains": [serialize_domain(d) for d in domains],
        "user_info": account_summary(user),
        "valid_intervals": CheckInterval.choices(),
    }


def normalize_domain_name(name: str) -> str:
    return (name or "").strip().lower()


def add_domain(db: Session, user_id: int, domain_name: str, interval_label: str = DEFAULT_INTERVAL_LABEL) -> MonitoredDomain:
    """
    Register a domain and charge one credit up front.
    The insert and the charge commit together.
    """
    name = normalize_domain_name(domain_name)
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Domain is required"
        )
    interval = CheckInterval.from_label(interval_label or DEFAULT_INTERVAL_LABEL)

    existing = db.query(MonitoredDomain).filter(
        MonitoredDomain.user_id == user_id,
        MonitoredDomain.domain == name
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Domain already being monitored"
        )

    charged = db.query(User).filter(
        User.id == user_id,
        User.credits >= CREDITS_PER_CHECK
    ).update(
        {User.credits: User.credits - CREDITS_PER_CHECK},
        synchronize_session=False
    )
    if charged != 1:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient credits"
        )

    domain = MonitoredDomain(
        user_id=user_id,
        domain=name,
        check_interval=interval.seconds,
        credits_per_check=CREDITS_PER_CHECK
    )
    db.add(domain)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same domain; the charge rolls back too
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Domain already being monitored"
        )
    db.refresh(domain)
    logger.info("Domain %s added for user %s (interval %s)", name, user_id, interval.value)
    return domain


def remove_domain(db: Session, user_id: int, domain_id: int) -> None:
    """Delete an owned domain. Credits already spent are not refunded."""
    domain = get_owned_domain(db, user_id, domain_id)
    db.delete(domain)
    db.commit()
    logger.info("Domain %s removed for user %s", domain_id, user_id)


def check_domain(db: Session, checker: DomainChecker, user_id: int, domain_id: int) -> Dict:
    """Manual check of an owned domain, charged to the owner. Returns the refreshed list."""
    domain = get_owned_domain(db, user_id, domain_id)
    outcome = checker.check_domain_now(db, domain)

    if outcome == SettleResult.INSUFFICIENT_CREDITS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient credits"
        )
    if outcome == SettleResult.STALE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Domain was checked by another request, try again"
        )

    db.expire_all()
    return list_domains(db, user_id)


def domain_history(db: Session, user_id: int, domain_id: int, limit: int = 50) -> List[Dict]:
    get_owned_domain(db, user_id, domain_id)
    entries = db.query(DomainHistory).filter(
        DomainHistory.domain_id == domain_id
    ).order_by(DomainHistory.checked_at.desc(), DomainHistory.id.desc()).limit(limit).all()

    return [
        {
            "id": entry.id,
            "status": entry.status,
            "credits_used": entry.credits_used,
            "checked_at": entry.checked_at.isoformat() if entry.checked_at else None,
        }
        for entry in entries
    ]

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.dependencies.auth import require_admin
from app.models.monitored_domain import MonitoredDomain
from app.models.user import User, ROLE_ADMIN
from app.schemas.admin import AdminUserUpdate, CreditAddRequest
from app.schemas.auth import UserResponse
from app.schemas.domain import DomainCreate
from app.services import credit_ledger, domain_registry
from app.services.api_quota import issue_api_token, revoke_api_token
from app.services.domain_checker import DomainChecker, get_domain_checker

logger = logging.getLogger(__name__)

# Every route here requires a session token with the admin role
router = APIRouter(dependencies=[Depends(require_admin)])


def _user_payload(user: User) -> dict:
    data = UserResponse.model_validate(user).model_dump()
    data["created_at"] = user.created_at.isoformat() if user.created_at else None
    data["updated_at"] = user.updated_at.isoformat() if user.updated_at else None
    return data


# ---------------------------------------------------------------------------
# Admin's own domains
# ---------------------------------------------------------------------------

@router.get("/domains")
def get_admin_domains(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return domain_registry.list_domains(db, admin.id)


@router.post("/domains")
def add_admin_domain(
    payload: DomainCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    if admin.credits < 1:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient credits"
        )
    domain = domain_registry.add_domain(db, admin.id, payload.domain, payload.check_interval)
    return {
        "message": "Domain added successfully",
        "domain": domain_registry.serialize_domain(domain),
        **domain_registry.list_domains(db, admin.id)
    }


@router.post("/domains/{domain_id}/check")
def check_admin_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    checker: DomainChecker = Depends(get_domain_checker)
):
    if admin.credits < 1:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient credits"
        )
    try:
        result = domain_registry.check_domain(db, checker, admin.id, domain_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("[ADMIN] Check domain error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check domain"
        )
    return {
        "message": "Domain checked successfully",
        **result
    }


@router.delete("/domains/{domain_id}")
def remove_admin_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    domain_registry.remove_domain(db, admin.id, domain_id)
    return {"message": "Domain removed successfully"}


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------

@router.get("/users")
def get_all_users(db: Session = Depends(get_db)):
    """All non-admin users, each with their monitored domains."""
    users = db.query(User).filter(User.role != ROLE_ADMIN).order_by(User.id).all()
    return {
        "users": [
            {
                **_user_payload(user),
                "domains": [domain_registry.serialize_domain(d) for d in user.domains],
            }
            for user in users
        ]
    }


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    updates: AdminUserUpdate,
    db: Session = Depends(get_db)
):
    user = domain_registry.get_user_or_404(db, user_id)
    try:
        user = credit_ledger.update_user(
            db,
            user,
            credits=updates.credits,
            api_calls_limit=updates.api_calls_limit,
            is_active=updates.is_active
        )
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("[ADMIN] Update user error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user"
        )

    return {
        "message": "User updated successfully",
        "user": _user_payload(user)
    }


@router.post("/users/{user_id}/credits")
def add_user_credits(
    user_id: int,
    payload: CreditAddRequest,
    db: Session = Depends(get_db)
):
    user = domain_registry.get_user_or_404(db, user_id)
    user = credit_ledger.add_credits(db, user, payload.amount)
    return {
        "message": "Credits added successfully",
        "credits": user.credits
    }


@router.get("/users/{user_id}/stats")
def get_user_stats(user_id: int, db: Session = Depends(get_db)):
    user = domain_registry.get_user_or_404(db, user_id)
    return {
        "user": _user_payload(user),
        "stats": credit_ledger.user_stats(db, user)
    }


@router.get("/users/{user_id}/domains")
def get_user_domains(user_id: int, db: Session = Depends(get_db)):
    user = domain_registry.get_user_or_404(db, user_id)
    domains = db.query(MonitoredDomain).filter(
        MonitoredDomain.user_id == user.id
    ).order_by(MonitoredDomain.id).all()
    return {
        "user": {"id": user.id, "username": user.username, "credits": user.credits},
        "domains": [domain_registry.serialize_domain(d) for d in domains]
    }


@router.post("/users/{user_id}/domains/{domain_id}/check")
def check_user_domain(
    user_id: int,
    domain_id: int,
    db: Session = Depends(get_db),
    checker: DomainChecker = Depends(get_domain_checker)
):
    """Manual check of a user's domain, charged to that user."""
    domain_registry.get_user_or_404(db, user_id)
    try:
        result = domain_registry.check_domain(db, checker, user_id, domain_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("[ADMIN] Check user domain error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check domain"
        )
    return {
        "message": "Domain checked successfully",
        **result
    }


@router.post("/users/{user_id}/api-token")
def generate_user_api_token(user_id: int, db: Session = Depends(get_db)):
    user = domain_registry.get_user_or_404(db, user_id)
    api_token = issue_api_token(user, db)
    logger.info("[ADMIN] Issued API token for user %s", user.id)
    return {"apiToken": api_token}


@router.delete("/users/{user_id}/api-token")
def revoke_user_api_token(user_id: int, db: Session = Depends(get_db)):
    user = domain_registry.get_user_or_404(db, user_id)
    revoke_api_token(user, db)
    logger.info("[ADMIN] Revoked API token for user %s", user.id)
    return {"message": "API token revoked successfully"}

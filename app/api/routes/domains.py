import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.dependencies.auth import get_current_user, require_credits
from app.models.user import User
from app.schemas.domain import DomainCreate
from app.services import domain_registry
from app.services.domain_checker import DomainChecker, get_domain_checker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_all_domains(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """List the caller's domains with their credit and quota snapshot"""
    return domain_registry.list_domains(db, user.id)


@router.post("")
def add_domain(
    payload: DomainCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_credits)
):
    try:
        domain_registry.add_domain(db, user.id, payload.domain, payload.check_interval)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Add domain error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add domain"
        )

    return {
        "message": "Domain added successfully",
        **domain_registry.list_domains(db, user.id)
    }


@router.delete("/{domain_id}")
def remove_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    domain_registry.remove_domain(db, user.id, domain_id)
    return {
        "message": "Domain removed successfully",
        **domain_registry.list_domains(db, user.id)
    }


@router.post("/{domain_id}/check")
def check_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_credits),
    checker: DomainChecker = Depends(get_domain_checker)
):
    """Check one domain right now; costs the domain's credits_per_check."""
    try:
        result = domain_registry.check_domain(db, checker, user.id, domain_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Check domain error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check domain"
        )

    return {
        "message": "Domain checked successfully",
        **result
    }


@router.get("/{domain_id}/history")
def get_domain_history(
    domain_id: int,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return {
        "history": domain_registry.domain_history(db, user.id, domain_id, limit=min(max(limit, 1), 500))
    }

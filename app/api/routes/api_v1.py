"""
Machine-to-machine API, authenticated with an X-API-Token header.
Every call here counts against the token owner's daily quota.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.dependencies.auth import get_api_user_id
from app.services import domain_registry

router = APIRouter()


@router.get("/domains")
def list_domains(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_api_user_id)
):
    return domain_registry.list_domains(db, user_id)


@router.get("/domains/{domain_id}")
def get_domain(
    domain_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_api_user_id)
):
    domain = domain_registry.get_owned_domain(db, user_id, domain_id)
    return {"domain": domain_registry.serialize_domain(domain)}


@router.get("/account")
def get_account(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_api_user_id)
):
    user = domain_registry.get_user_or_404(db, user_id)
    return {"user_info": domain_registry.account_summary(user)}

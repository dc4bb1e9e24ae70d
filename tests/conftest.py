"""Pytest configuration: in-memory SQLite database and a fake block status oracle."""
import os

# Set test environment variables BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-testing")
os.environ["DOMAIN_CHECK_ENABLED"] = "false"
os.environ["ORACLE_BATCH_PAUSE_SECONDS"] = "0"

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.models.user import User, ROLE_USER, ROLE_ADMIN
from app.services.block_check_client import BlockCheckError
from app.services.domain_checker import DomainChecker, get_domain_checker
from app.utils.auth import create_access_token, hash_password


class FakeBlockCheckClient:
    """Stands in for the oracle. Unknown domains are reported as not blocked."""

    def __init__(self):
        self.blocked: Dict[str, bool] = {}
        self.fail = False
        self.single_calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    def check_domain(self, domain: str) -> bool:
        self.single_calls.append(domain)
        if self.fail:
            raise BlockCheckError("oracle unreachable")
        return self.blocked.get(domain, False)

    def check_domains(self, domains: List[str]) -> Dict[str, bool]:
        self.batch_calls.append(list(domains))
        if self.fail:
            raise BlockCheckError("oracle unreachable")
        # Mirror the oracle: only domains it knows about are in the response
        return {d: self.blocked[d] for d in domains if d in self.blocked}


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def oracle():
    return FakeBlockCheckClient()


@pytest.fixture
def checker(oracle):
    return DomainChecker(session_factory=SessionLocal, client=oracle, batch_pause=0)


@pytest.fixture
def client(checker):
    """Fixture for FastAPI test client wired to the fake oracle."""
    app.dependency_overrides[get_domain_checker] = lambda: checker
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(
        username: Optional[str] = None,
        password: str = "password123",
        credits: int = 100,
        role: str = ROLE_USER,
        is_active: bool = True,
        api_calls_limit: int = 1000,
    ) -> User:
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@domainmonitor.io",
            hashed_password=hash_password(password),
            role=role,
            credits=credits,
            api_calls_limit=api_calls_limit,
            api_calls_count=0,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user(username="admin", role=ROLE_ADMIN, credits=999999)


@pytest.fixture
def auth_headers():
    """Build a Bearer header for a user."""
    def _auth_headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _auth_headers

"""Tests for the create_admin operator script."""
from app.models.user import User
from scripts.create_admin import ADMIN_API_CALLS_LIMIT, create_admin


class TestCreateAdmin:
    def test_creates_admin(self, db):
        user = create_admin("ops", "Ops@DomainMonitor.io", "S3cret!", 5000)

        stored = db.query(User).filter(User.id == user.id).first()
        assert stored.email == "ops@domainmonitor.io"
        assert stored.is_admin
        assert stored.credits == 5000
        assert stored.api_calls_limit == ADMIN_API_CALLS_LIMIT

    def test_promotes_existing_user(self, db, make_user):
        existing = make_user(username="alice", is_active=False)
        original_hash = existing.hashed_password

        create_admin("ignored", "alice@domainmonitor.io", "new-password", 5000)

        db.expire_all()
        stored = db.query(User).filter(User.id == existing.id).first()
        assert stored.is_admin
        assert stored.is_active
        assert stored.hashed_password == original_hash
        assert db.query(User).count() == 1

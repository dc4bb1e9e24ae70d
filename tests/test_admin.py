"""Tests for the admin routes."""
from unittest.mock import MagicMock

from app.main import app
from app.models.credit_transaction import CreditTransaction
from app.models.user import User
from app.services.domain_checker import get_domain_checker


def _reload_user(db, user_id):
    db.expire_all()
    return db.query(User).filter(User.id == user_id).first()


class TestAdminAccess:
    """Admin routes reject non-admin callers."""

    def test_regular_user_forbidden(self, client, make_user, auth_headers):
        user = make_user()

        assert client.get("/admin/users", headers=auth_headers(user)).status_code == 403

    def test_anonymous_unauthorized(self, client):
        assert client.get("/admin/users").status_code == 401


class TestUserManagement:
    """Tests for listing and updating users."""

    def test_list_users_excludes_admins(self, client, admin_user, make_user, auth_headers):
        alice = make_user(username="alice")
        client.post("/domains", json={"domain": "alice.com"}, headers=auth_headers(alice))

        users = client.get("/admin/users", headers=auth_headers(admin_user)).json()["users"]

        assert [u["username"] for u in users] == ["alice"]
        assert [d["domain"] for d in users[0]["domains"]] == ["alice.com"]
        assert "hashed_password" not in users[0]

    def test_update_credits_logs_transaction(self, client, db, admin_user, make_user, auth_headers):
        user = make_user(credits=100)

        response = client.put(
            f"/admin/users/{user.id}",
            json={"credits": 40, "role": "admin", "email": "hacker@domainmonitor.io"},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["user"]["credits"] == 40

        stored = _reload_user(db, user.id)
        assert stored.credits == 40
        assert stored.role == "user"
        assert stored.email != "hacker@domainmonitor.io"

        entry = db.query(CreditTransaction).filter(CreditTransaction.user_id == user.id).one()
        assert entry.amount == 60
        assert entry.transaction_type == "subtract"
        assert entry.description == "Admin adjustment"

    def test_update_limit_and_active(self, client, db, admin_user, make_user, auth_headers):
        user = make_user()

        response = client.put(
            f"/admin/users/{user.id}",
            json={"api_calls_limit": 50, "is_active": False},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        stored = _reload_user(db, user.id)
        assert stored.api_calls_limit == 50
        assert stored.is_active is False
        assert db.query(CreditTransaction).count() == 0

    def test_update_without_fields(self, client, admin_user, make_user, auth_headers):
        user = make_user()

        response = client.put(f"/admin/users/{user.id}", json={"role": "admin"}, headers=auth_headers(admin_user))

        assert response.status_code == 400

    def test_negative_credits_rejected(self, client, admin_user, make_user, auth_headers):
        user = make_user()

        response = client.put(f"/admin/users/{user.id}", json={"credits": -5}, headers=auth_headers(admin_user))

        assert response.status_code == 422

    def test_update_unknown_user(self, client, admin_user, auth_headers):
        response = client.put("/admin/users/9999", json={"credits": 5}, headers=auth_headers(admin_user))

        assert response.status_code == 404


class TestCredits:
    """Tests for POST /admin/users/{id}/credits and stats."""

    def test_add_credits(self, client, db, admin_user, make_user, auth_headers):
        user = make_user(credits=10)

        response = client.post(
            f"/admin/users/{user.id}/credits",
            json={"amount": 25},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["credits"] == 35
        entry = db.query(CreditTransaction).filter(CreditTransaction.user_id == user.id).one()
        assert entry.transaction_type == "add"
        assert entry.amount == 25

    def test_add_non_positive_amount(self, client, admin_user, make_user, auth_headers):
        user = make_user()

        response = client.post(
            f"/admin/users/{user.id}/credits",
            json={"amount": 0},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 400

    def test_stats(self, client, admin_user, make_user, auth_headers):
        user = make_user()
        client.post("/domains", json={"domain": "a.com"}, headers=auth_headers(user))
        client.post(f"/admin/users/{user.id}/credits", json={"amount": 5}, headers=auth_headers(admin_user))

        stats = client.get(f"/admin/users/{user.id}/stats", headers=auth_headers(admin_user)).json()["stats"]

        assert stats["domain_count"] == 1
        assert len(stats["recent_transactions"]) == 1


class TestAdminDomains:
    """Tests for the admin's own domains and checks on users' domains."""

    def test_admin_own_domains(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)

        added = client.post("/admin/domains", json={"domain": "ops.com", "check_interval": "30min"}, headers=headers)
        assert added.status_code == 200
        domain_id = added.json()["domain"]["id"]

        listed = client.get("/admin/domains", headers=headers).json()
        assert [d["domain"] for d in listed["domains"]] == ["ops.com"]

        assert client.post(f"/admin/domains/{domain_id}/check", headers=headers).status_code == 200
        assert client.delete(f"/admin/domains/{domain_id}", headers=headers).status_code == 200
        assert client.get("/admin/domains", headers=headers).json()["domains"] == []

    def test_check_user_domain_charges_user(self, client, db, oracle, admin_user, make_user, auth_headers):
        user = make_user(credits=10)
        domain_id = client.post("/domains", json={"domain": "a.com"}, headers=auth_headers(user)).json()["domains"][0]["id"]
        oracle.blocked["a.com"] = True

        response = client.post(
            f"/admin/users/{user.id}/domains/{domain_id}/check",
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert _reload_user(db, user.id).credits == 8
        assert _reload_user(db, admin_user.id).credits == 999999

        domains = client.get(f"/admin/users/{user.id}/domains", headers=auth_headers(admin_user)).json()["domains"]
        assert domains[0]["status"] is True

    def test_check_user_domain_unexpected_error(self, client, db, admin_user, make_user, auth_headers):
        user = make_user(credits=10)
        domain_id = client.post("/domains", json={"domain": "a.com"}, headers=auth_headers(user)).json()["domains"][0]["id"]
        broken_checker = MagicMock()
        broken_checker.check_domain_now.side_effect = RuntimeError("db went away")
        app.dependency_overrides[get_domain_checker] = lambda: broken_checker

        response = client.post(
            f"/admin/users/{user.id}/domains/{domain_id}/check",
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to check domain"
        assert _reload_user(db, user.id).credits == 9

    def test_check_domain_of_wrong_user(self, client, admin_user, make_user, auth_headers):
        alice = make_user()
        bob = make_user()
        domain_id = client.post("/domains", json={"domain": "a.com"}, headers=auth_headers(alice)).json()["domains"][0]["id"]

        response = client.post(
            f"/admin/users/{bob.id}/domains/{domain_id}/check",
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 404


class TestAdminApiTokens:
    """Tests for issuing and revoking a user's API token."""

    def test_issue_and_revoke(self, client, db, admin_user, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(admin_user)

        api_token = client.post(f"/admin/users/{user.id}/api-token", headers=headers).json()["apiToken"]
        assert client.get("/v1/account", headers={"X-API-Token": api_token}).status_code == 200

        assert client.delete(f"/admin/users/{user.id}/api-token", headers=headers).status_code == 200
        assert client.get("/v1/account", headers={"X-API-Token": api_token}).status_code == 401
        assert _reload_user(db, user.id).api_token is None

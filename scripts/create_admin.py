#!/usr/bin/env python3
"""
Create (or promote) an admin account.

Admins manage users, credits and API tokens through /admin. Run from project root:
  python scripts/create_admin.py --email admin@yourcompany.com --password 'S3cret!'
  python scripts/create_admin.py --username ops --email ops@yourcompany.com --password '...' --credits 5000

If a user with the email already exists it is promoted to admin and its
password is left unchanged.

Requires: DATABASE_URL in environment (.env or export).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Run from project root; ensure app is importable
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.user import User, ROLE_ADMIN
from app.utils.auth import hash_password

ADMIN_CREDITS = 999999
ADMIN_API_CALLS_LIMIT = 999999


def create_admin(username: str, email: str, password: str, credits: int) -> User:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = ROLE_ADMIN
            user.is_active = True
            print(f"▶ Promoting existing user {user.id} ({user.email}) to admin")
        else:
            user = User(
                username=username,
                email=email,
                hashed_password=hash_password(password),
                role=ROLE_ADMIN,
                credits=credits,
                api_calls_limit=ADMIN_API_CALLS_LIMIT,
                api_calls_count=0,
                is_active=True,
            )
            db.add(user)
        db.commit()
        db.refresh(user)
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--credits", type=int, default=ADMIN_CREDITS)
    args = parser.parse_args()

    try:
        user = create_admin(args.username, args.email, args.password, args.credits)
    except Exception as e:
        print(f"❌ Error creating admin user: {e}")
        return 1

    print("✅ Admin user ready")
    print(f"   ID: {user.id}")
    print(f"   Email: {user.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

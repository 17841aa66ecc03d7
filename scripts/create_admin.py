"""
Create or promote an admin account.

    python scripts/create_admin.py admin@example.com 'a-strong-password'

An existing user with that email is promoted (and gets the new password);
otherwise a password user is created with role=admin.
"""
import sys
import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from cryptovault.core.security import hash_password
from cryptovault.db.session import SessionLocal
from cryptovault.models.user import User
from cryptovault.services.accounts import get_user_by_email


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print("usage: create_admin.py EMAIL PASSWORD", file=sys.stderr)
        return 2
    email, password = argv

    db: Session = SessionLocal()
    try:
        user = get_user_by_email(db, email)
        if user:
            user.role = "admin"
            user.password_hash = hash_password(password)
            user.auth_id = user.auth_id or str(uuid.uuid4())
            user.updated_at = datetime.utcnow()
            action = "Promoted"
        else:
            user = User(
                auth_id=str(uuid.uuid4()),
                email=email,
                password_hash=hash_password(password),
                is_verified=True,
                role="admin",
            )
            db.add(user)
            action = "Created"

        db.commit()
        print(f"{action} admin {user.email} ({user.id})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

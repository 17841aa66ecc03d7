from datetime import datetime, timedelta

import pytest

from cryptovault.core.config import settings
from cryptovault.models.user import User
from cryptovault.services.accounts import lock_accounts, unlock_accounts

KEY = {"X-API-Key": "test-cron-key"}
ADDRESS = "0x" + "7" * 40


def make_user(db, email, **fields) -> User:
    user = User(email=email, **fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class TestCronKey:
    @pytest.mark.parametrize(
        "path",
        ["/api/maintenance/cleanup-nonces", "/api/maintenance/lock-accounts", "/api/maintenance/unlock-accounts"],
    )
    def test_missing_or_wrong_key_is_401(self, client, path):
        assert client.post(path).status_code == 401
        assert client.post(path, headers={"X-API-Key": "wrong"}).status_code == 401

    def test_unconfigured_key_rejects_everything(self, client, monkeypatch):
        monkeypatch.setattr(settings, "cron_api_key", None)

        response = client.post("/api/maintenance/cleanup-nonces", headers=KEY)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized - Invalid API key"}


class TestCleanupNonces:
    def test_purges_expired_nonces(self, client, nonce_store):
        nonce_store.create(ADDRESS)
        nonce_store._records[ADDRESS].expires_at = 0

        response = client.post("/api/maintenance/cleanup-nonces", headers=KEY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "cleaned": 1,
            "message": "Cleaned up 1 expired nonces",
        }
        assert nonce_store.get(ADDRESS) is None


class TestAccountLocks:
    def test_lock_accounts_over_threshold(self, db_session):
        now = datetime(2026, 3, 1, 9, 0)
        noisy = make_user(db_session, "noisy@example.com", failed_login_attempts=5)
        quiet = make_user(db_session, "quiet@example.com", failed_login_attempts=2)

        locked = lock_accounts(db_session, max_attempts=5, lock_minutes=30, now=now)

        assert locked == 1
        db_session.refresh(noisy)
        db_session.refresh(quiet)
        assert noisy.locked_until == now + timedelta(minutes=30)
        assert quiet.locked_until is None

    def test_already_locked_accounts_not_relocked(self, db_session):
        now = datetime(2026, 3, 1, 9, 0)
        make_user(
            db_session,
            "locked@example.com",
            failed_login_attempts=9,
            locked_until=now + timedelta(minutes=10),
        )

        assert lock_accounts(db_session, max_attempts=5, lock_minutes=30, now=now) == 0

    def test_unlock_expired_locks(self, db_session):
        now = datetime(2026, 3, 1, 9, 0)
        expired = make_user(
            db_session,
            "expired@example.com",
            failed_login_attempts=6,
            locked_until=now - timedelta(minutes=1),
        )
        make_user(
            db_session,
            "active-lock@example.com",
            failed_login_attempts=6,
            locked_until=now + timedelta(minutes=1),
        )

        assert unlock_accounts(db_session, now=now) == 1
        db_session.refresh(expired)
        assert expired.locked_until is None
        assert expired.failed_login_attempts == 0

    def test_lock_endpoint(self, client, db_session):
        make_user(db_session, "noisy@example.com", failed_login_attempts=settings.max_failed_login_attempts)

        response = client.post("/api/maintenance/lock-accounts", headers=KEY)

        assert response.status_code == 200
        assert response.json()["cleaned"] == 1
        assert response.json()["message"] == "Locked 1 accounts due to excessive login attempts"

    def test_unlock_endpoint(self, client):
        response = client.post("/api/maintenance/unlock-accounts", headers=KEY)

        assert response.json() == {"success": True, "cleaned": 0, "message": "Unlocked 0 accounts"}

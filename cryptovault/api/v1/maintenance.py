"""
Maintenance endpoints, called by an external scheduler.
"""
import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from cryptovault.core.config import settings
from cryptovault.core.deps import get_db, get_nonce_store
from cryptovault.core.errors import AuthError
from cryptovault.services.accounts import lock_accounts, unlock_accounts
from cryptovault.services.nonce_store import NonceStore

logger = logging.getLogger(__name__)


def require_cron_key(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")) -> None:
    expected = settings.cron_api_key
    if not expected or not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise AuthError("Unauthorized - Invalid API key")


router = APIRouter(dependencies=[Depends(require_cron_key)])


@router.post("/maintenance/cleanup-nonces")
def cleanup_nonces(store: NonceStore = Depends(get_nonce_store)):
    cleaned = store.purge_expired()
    logger.info("Purged %d expired nonces", cleaned)
    return {"success": True, "cleaned": cleaned, "message": f"Cleaned up {cleaned} expired nonces"}


@router.post("/maintenance/lock-accounts")
def lock_excessive_attempts(db: Session = Depends(get_db)):
    locked = lock_accounts(db, settings.max_failed_login_attempts, settings.account_lock_minutes)
    logger.info("Locked %d accounts", locked)
    return {
        "success": True,
        "cleaned": locked,
        "message": f"Locked {locked} accounts due to excessive login attempts",
    }


@router.post("/maintenance/unlock-accounts")
def unlock_expired_locks(db: Session = Depends(get_db)):
    unlocked = unlock_accounts(db)
    logger.info("Unlocked %d accounts", unlocked)
    return {"success": True, "cleaned": unlocked, "message": f"Unlocked {unlocked} accounts"}

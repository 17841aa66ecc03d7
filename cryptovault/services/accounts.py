"""
Accounts Service
User lookup, wallet-first onboarding and password accounts.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cryptovault.core.errors import AuthError, ForbiddenError, ValidationError
from cryptovault.core.security import hash_password, verify_password
from cryptovault.models.asset import DEFAULT_ASSETS, Asset
from cryptovault.models.user import User
from cryptovault.models.wallet import Wallet

logger = logging.getLogger(__name__)


def wallet_placeholder_email(address: str) -> str:
    return f"wallet-{address.lower()}@wallet.local"


def get_user_by_wallet(db: Session, address: str) -> Optional[User]:
    stmt = select(User).where(User.primary_wallet_address == address.lower())
    return db.scalar(stmt)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    return db.scalar(stmt)


def resolve_session_user(db: Session, claims: dict[str, Any]) -> Optional[User]:
    """
    Map verified session claims onto a user row.

    Password sessions carry ``uid`` (looked up by id); wallet sessions only
    ``sub`` (looked up by primary wallet address).
    """
    uid = claims.get("uid")
    if uid:
        return db.get(User, str(uid))
    sub = claims.get("sub")
    if sub:
        return get_user_by_wallet(db, str(sub))
    return None


def connect_wallet_user(db: Session, address: str) -> Tuple[User, bool]:
    """
    Find the user owning ``address`` or onboard a new one.

    A new user, their primary wallet and the zero-balance default assets are
    written in a single transaction; any failure rolls all of them back.

    Returns:
        (user, is_new_wallet)
    """
    address = address.lower()
    user = get_user_by_wallet(db, address)
    if user:
        return user, False

    try:
        user = User(
            email=wallet_placeholder_email(address),
            primary_wallet_address=address,
            is_verified=True,
        )
        db.add(user)
        db.flush()  # get user.id

        wallet = Wallet(
            user_id=user.id,
            wallet_address=address,
            is_primary=True,
            is_active=True,
        )
        db.add(wallet)
        db.flush()

        for symbol, name in DEFAULT_ASSETS:
            db.add(
                Asset(
                    user_id=user.id,
                    wallet_id=wallet.id,
                    symbol=symbol,
                    name=name,
                    balance=0.0,
                    balance_usd=0.0,
                    price_usd=0.0,
                )
            )
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent connect for the same address
        db.rollback()
        existing = get_user_by_wallet(db, address)
        if existing is None:
            raise
        return existing, False
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Wallet onboarding rolled back for %s", address)
        raise

    db.refresh(user)
    logger.info("Onboarded wallet user %s for %s", user.id, address)
    return user, True


def register_password_user(db: Session, email: str, password: str) -> User:
    if get_user_by_email(db, email):
        raise ValidationError("User already registered")

    user = User(
        auth_id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("User already registered")
    db.refresh(user)
    return user


def authenticate_password_user(
    db: Session,
    email: str,
    password: str,
    now: Optional[datetime] = None,
) -> User:
    """
    Check email/password credentials.

    Raises:
        AuthError: Unknown email or wrong password
        ForbiddenError: Account locked or not active
    """
    now = now or datetime.utcnow()
    user = get_user_by_email(db, email)
    if user is None or not user.password_hash:
        raise AuthError("Invalid login credentials")

    if user.locked_until and user.locked_until > now:
        raise ForbiddenError("Account is temporarily locked. Please try again later.")

    if not verify_password(password, user.password_hash):
        user.failed_login_attempts += 1
        db.commit()
        logger.info("Failed sign-in for user %s (%d attempts)", user.id, user.failed_login_attempts)
        raise AuthError("Invalid login credentials")

    if user.account_status != "active":
        raise ForbiddenError(f"Account is {user.account_status}")

    if user.failed_login_attempts:
        user.failed_login_attempts = 0
        db.commit()
    return user


def lock_accounts(
    db: Session,
    max_attempts: int,
    lock_minutes: int,
    now: Optional[datetime] = None,
) -> int:
    """Lock accounts with too many failed sign-ins. Returns the number locked."""
    now = now or datetime.utcnow()
    stmt = (
        update(User)
        .where(User.failed_login_attempts >= max_attempts)
        .where((User.locked_until.is_(None)) | (User.locked_until <= now))
        .values(locked_until=now + timedelta(minutes=lock_minutes))
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def unlock_accounts(db: Session, now: Optional[datetime] = None) -> int:
    """Clear expired locks. Returns the number unlocked."""
    now = now or datetime.utcnow()
    stmt = (
        update(User)
        .where(User.locked_until.is_not(None))
        .where(User.locked_until <= now)
        .values(locked_until=None, failed_login_attempts=0)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def user_balances(db: Session) -> List[dict[str, Any]]:
    """Total USD balance and asset count per user."""
    stmt = (
        select(
            User.id,
            User.email,
            func.coalesce(func.sum(Asset.balance_usd), 0.0),
            func.count(Asset.id),
        )
        .outerjoin(Asset, Asset.user_id == User.id)
        .group_by(User.id, User.email)
        .order_by(User.created_at.asc())
    )
    return [
        {
            "userId": user_id,
            "email": email,
            "totalBalance": float(total or 0.0),
            "assetCount": int(count or 0),
        }
        for user_id, email, total, count in db.execute(stmt).all()
    ]

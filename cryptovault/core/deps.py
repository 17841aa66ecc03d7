from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cryptovault.core.config import settings
from cryptovault.core.errors import AuthError, ForbiddenError
from cryptovault.core.security import verify_session
from cryptovault.db.session import get_db
from cryptovault.models.user import User
from cryptovault.services.accounts import resolve_session_user
from cryptovault.services.nonce_store import get_nonce_store

__all__ = [
    "get_db",
    "get_nonce_store",
    "extract_session_token",
    "get_session_claims",
    "get_current_user",
    "require_admin",
]


def extract_session_token(request: Request) -> Optional[str]:
    """
    Pick the session credential for a request.

    The ``sv_session`` cookie wins over an ``Authorization: Bearer`` header.
    """
    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        return cookie

    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None


def get_session_claims(request: Request) -> dict[str, Any]:
    token = extract_session_token(request)
    if not token:
        raise AuthError("Authentication required")

    claims = verify_session(token, settings.session_jwt_secret)
    if claims is None:
        raise AuthError("Invalid or expired token")
    return claims


def _ensure_active(user: User) -> User:
    if user.account_status != "active":
        raise ForbiddenError(f"Account is {user.account_status}")
    return user


def get_current_user(
    claims: dict[str, Any] = Depends(get_session_claims),
    db: Session = Depends(get_db),
) -> User:
    user = resolve_session_user(db, claims)
    if user is None:
        raise AuthError("User not found")
    return _ensure_active(user)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise ForbiddenError("Admin access required")
    return current_user

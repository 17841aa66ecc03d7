from __future__ import annotations

import time
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from cryptovault.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEFAULT_SESSION_TTL = 60 * 60 * 2


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def sign_session(
    payload: dict[str, Any],
    secret: str,
    expires_in_seconds: int = DEFAULT_SESSION_TTL,
) -> str:
    """
    Sign a session token carrying ``{sub, uid?, iat, exp}``.

    Args:
        payload: Subject claims (``sub`` and optionally ``uid``)
        secret: HMAC key
        expires_in_seconds: Lifetime fixed at creation

    Returns:
        Compact ``header.body.signature`` token
    """
    iat = int(time.time())
    body = {**payload, "iat": iat, "exp": iat + int(expires_in_seconds)}
    return jwt.encode(body, secret, algorithm=settings.session_jwt_alg)


def verify_session(token: str, secret: str) -> Optional[dict[str, Any]]:
    """
    Verify a session token.

    Returns the decoded payload, or None when the token is malformed, the
    signature does not match, it has expired, or it names no subject.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.session_jwt_alg],
            options={"verify_aud": False},
        )
    except JWTError:
        return None

    if not payload.get("sub") and not payload.get("uid"):
        return None
    return payload


def create_session_token(sub: str, uid: Optional[str] = None) -> str:
    claims: dict[str, Any] = {"sub": sub}
    if uid:
        claims["uid"] = uid
    return sign_session(claims, settings.session_jwt_secret, settings.session_ttl_seconds)

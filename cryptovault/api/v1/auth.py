from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Response
from sqlalchemy.orm import Session

from cryptovault.core.config import settings
from cryptovault.core.deps import get_current_user, get_db, get_nonce_store
from cryptovault.core.errors import AuthError, ValidationError
from cryptovault.core.rate_limit import limit_auth_requests
from cryptovault.core.security import create_session_token
from cryptovault.models.user import User
from cryptovault.schemas.auth import (
    NonceResponse,
    PasswordCredentials,
    SessionInfo,
    UserProfile,
    WalletConnectRequest,
)
from cryptovault.services import audit
from cryptovault.services.accounts import (
    authenticate_password_user,
    connect_wallet_user,
    register_password_user,
)
from cryptovault.services.nonce_store import NonceStore
from cryptovault.services.wallet_auth import is_valid_address, signature_matches

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(limit_auth_requests)])


def _set_session_cookies(response: Response, token: str) -> None:
    max_age = settings.session_ttl_seconds
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    # readable by the browser so the client can tell the cookie was accepted
    response.set_cookie(
        settings.session_flag_cookie_name,
        "1",
        max_age=max_age,
        httponly=False,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, path="/")
    response.delete_cookie(settings.session_flag_cookie_name, path="/")


def _profile(user: User) -> dict:
    return UserProfile.model_validate(user).model_dump(mode="json")


@router.get("/auth/nonce", response_model=NonceResponse)
def get_nonce(
    address: Optional[str] = Query(default=None),
    store: NonceStore = Depends(get_nonce_store),
):
    if not is_valid_address(address):
        raise ValidationError("Invalid wallet address")
    return NonceResponse(nonce=store.create(address))


@router.post("/auth/wallet-connect")
def wallet_connect(
    response: Response,
    payload: Optional[WalletConnectRequest] = Body(default=None),
    address_query: Optional[str] = Query(default=None, alias="address"),
    address_header: Optional[str] = Header(default=None, alias="X-Wallet-Address"),
    db: Session = Depends(get_db),
    store: NonceStore = Depends(get_nonce_store),
):
    payload = payload or WalletConnectRequest()

    # 1) Claimed address: body, then query, then header
    candidates = (payload.wallet_address, payload.address, address_query, address_header)
    address = next((c.strip() for c in candidates if c and c.strip()), None)
    if not is_valid_address(address):
        raise ValidationError("Invalid wallet address")

    # 2) Signature flow: nonce must be live, signer must match, nonce is then burned
    if payload.signature and payload.nonce:
        expected = store.get(address)
        if not expected or expected != payload.nonce:
            raise ValidationError("Invalid or expired nonce.")

        if not signature_matches(payload.nonce, payload.signature, address):
            logger.info("Wallet-connect signature mismatch for %s", address.lower())
            raise AuthError("Signature verification failed")

        if not store.consume(address, payload.nonce):
            raise ValidationError("Invalid or expired nonce.")

    # 3) Seed-phrase import: control of the wallet was proven client-side.
    # A lone nonce without a signature lands here too and is not checked.
    else:
        if not settings.allow_unsigned_wallet_connect:
            raise AuthError("Signature required")
        logger.warning("Unsigned wallet-connect accepted for %s", address.lower())

    # 4) Find or onboard the wallet's user
    user, is_new = connect_wallet_user(db, address)

    audit.record_audit_event(
        db,
        audit.WALLET_CONNECTED,
        user_id=user.id,
        entity_type="users",
        entity_id=user.id,
        new_values={
            "wallet_address": address.lower(),
            "is_new_wallet": is_new,
            "signed": bool(payload.signature),
        },
    )

    # 5) Session cookie keyed by wallet address + user id
    token = create_session_token(sub=address.lower(), uid=user.id)
    _set_session_cookies(response, token)

    return {
        "user": {"id": user.id, "address": address.lower()},
        "profile": _profile(user),
        "isNewWallet": is_new,
    }


@router.post("/auth/signup")
def signup(payload: PasswordCredentials, db: Session = Depends(get_db)):
    user = register_password_user(db, payload.email, payload.password)
    return {
        "user": {"id": user.id, "email": user.email, "auth_id": user.auth_id},
        "profile": _profile(user),
        "message": "User created successfully",
    }


@router.post("/auth/signin")
def signin(response: Response, payload: PasswordCredentials, db: Session = Depends(get_db)):
    user = authenticate_password_user(db, payload.email, payload.password)

    token = create_session_token(sub=user.id, uid=user.id)
    _set_session_cookies(response, token)

    session = SessionInfo(access_token=token, expires_in=settings.session_ttl_seconds)
    return {
        "session": session.model_dump(),
        "user": {"id": user.id, "email": user.email},
        "profile": _profile(user),
    }


@router.post("/auth/signout")
def signout(response: Response):
    # stateless tokens: dropping the cookies is all there is
    _clear_session_cookies(response)
    return {"message": "Signed out successfully"}


@router.get("/auth/session")
def get_session(current_user: User = Depends(get_current_user)):
    return {
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "address": current_user.primary_wallet_address,
        },
        "profile": _profile(current_user),
    }

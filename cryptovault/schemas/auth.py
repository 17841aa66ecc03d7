from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cryptovault.schemas.withdrawal import CamelModel


class NonceResponse(BaseModel):
    nonce: str


class WalletConnectRequest(CamelModel):
    wallet_address: Optional[str] = None
    address: Optional[str] = None
    signature: Optional[str] = None
    nonce: Optional[str] = None


class PasswordCredentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserProfile(BaseModel):
    id: str
    email: str
    primary_wallet_address: Optional[str] = None
    is_verified: bool
    account_status: str
    kyc_status: str
    preferred_currency: str
    notification_preferences: dict[str, Any]
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionInfo(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptovault.db.base import Base
from cryptovault.models._ids import new_id

if TYPE_CHECKING:
    from cryptovault.models.wallet import Wallet


def default_notification_preferences() -> dict[str, Any]:
    return {
        "email_on_transaction": True,
        "email_on_withdrawal": True,
        "email_on_price_alert": False,
        "push_notifications": False,
    }


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # password users carry an auth_id; wallet-only users a primary wallet address
    auth_id: Mapped[str | None] = mapped_column(String(36), unique=True, index=True, nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    primary_wallet_address: Mapped[str | None] = mapped_column(
        String(42), unique=True, index=True, nullable=True
    )

    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    account_status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # active / suspended / closed
    kyc_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending / verified / rejected
    preferred_currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    notification_preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=default_notification_preferences
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")  # user / admin

    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    wallets: Mapped[list["Wallet"]] = relationship(back_populates="user")

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptovault.db.base import Base
from cryptovault.models._ids import new_id

if TYPE_CHECKING:
    from cryptovault.models.asset import Asset
    from cryptovault.models.user import User


class Wallet(Base):
    __tablename__ = "wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    wallet_address: Mapped[str] = mapped_column(String(42), index=True, nullable=False)
    wallet_type: Mapped[str | None] = mapped_column(String(16), nullable=True)  # metamask / coinbase / ledger / trezor
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    connected_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship(back_populates="wallets")
    assets: Mapped[list["Asset"]] = relationship(back_populates="wallet")

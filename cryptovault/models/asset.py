from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptovault.db.base import Base
from cryptovault.models._ids import new_id

if TYPE_CHECKING:
    from cryptovault.models.wallet import Wallet

DEFAULT_ASSETS = (
    ("ETH", "Ethereum"),
    ("BTC", "Bitcoin"),
    ("USDT", "Tether"),
)


class Asset(Base):
    __tablename__ = "assets"
    __table_args__ = (UniqueConstraint("wallet_id", "symbol", name="uq_assets_wallet_symbol"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    wallet_id: Mapped[str] = mapped_column(ForeignKey("wallets.id"), index=True, nullable=False)

    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    balance_usd: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    price_usd: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    wallet: Mapped["Wallet"] = relationship(back_populates="assets")

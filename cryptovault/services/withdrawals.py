"""
Withdrawal Service
Creates withdrawal requests against wallet balances and moves them through
the three-stage admin workflow.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cryptovault.core.errors import ForbiddenError, NotFoundError, StateError, ValidationError
from cryptovault.models.asset import Asset
from cryptovault.models.user import User
from cryptovault.models.wallet import Wallet
from cryptovault.models.withdrawal import WithdrawalRequest
from cryptovault.services import audit
from cryptovault.services.fees import quote_fee

logger = logging.getLogger(__name__)

MIN_STAGE = 1
MAX_STAGE = 3

STAGES = (
    (1, "Withdrawal Initiated", "Your withdrawal request has been received and verified"),
    (2, "Bank Processing", "Awaiting bank processing and verification"),
    (3, "Transfer Complete", "Funds transferred to your bank account"),
)

STATUSES = ("pending", "processing", "completed", "failed", "cancelled")
TERMINAL_STATUSES = ("completed", "failed", "cancelled")
REFUND_STATUSES = ("failed", "cancelled")


@dataclass
class WithdrawalInput:
    wallet_id: str
    symbol: str
    amount: float
    destination_address: str
    network: str
    email: Optional[str] = None
    flow_completed: bool = False


def _find_asset(db: Session, wallet_id: str, symbol: str) -> Optional[Asset]:
    assets = db.scalars(select(Asset).where(Asset.wallet_id == wallet_id)).all()
    wanted = symbol.upper()
    for asset in assets:
        if asset.symbol.upper() == wanted:
            return asset
    return None


def create_withdrawal(db: Session, user: User, data: WithdrawalInput) -> WithdrawalRequest:
    """
    Validate and persist a withdrawal request, debiting the asset.

    The debit is a conditional update (``balance >= total``) committed in the
    same transaction as the withdrawal row, so two concurrent requests cannot
    both spend the same balance.

    Raises:
        ForbiddenError: Wallet missing or owned by someone else
        ValidationError: Asset not held in the wallet
        StateError: Balance does not cover amount plus fee
    """
    wallet = db.scalar(
        select(Wallet).where(Wallet.id == data.wallet_id, Wallet.user_id == user.id)
    )
    if wallet is None:
        raise ForbiddenError("Wallet not found or does not belong to user")

    asset = _find_asset(db, wallet.id, data.symbol)
    if asset is None:
        raise ValidationError(f"{data.symbol} not found in wallet")

    quote = quote_fee(data.amount)
    price = asset.price_usd or 0.0
    total = quote.total

    if asset.balance < total:
        raise StateError(
            f"Insufficient balance including fees. Required: {total} {asset.symbol}"
        )

    try:
        debit = db.execute(
            update(Asset)
            .where(Asset.id == asset.id, Asset.balance >= total)
            .values(
                balance=Asset.balance - total,
                balance_usd=(Asset.balance - total) * Asset.price_usd,
            )
            .execution_options(synchronize_session=False)
        )
        if debit.rowcount != 1:
            db.rollback()
            raise StateError(
                f"Insufficient balance including fees. Required: {total} {asset.symbol}"
            )

        withdrawal = WithdrawalRequest(
            user_id=user.id,
            wallet_id=wallet.id,
            asset_id=asset.id,
            symbol=asset.symbol,
            amount=data.amount,
            amount_usd=data.amount * price,
            destination_address=data.destination_address,
            network=data.network,
            fee_amount=quote.fee,
            fee_usd=quote.fee * price,
            contact_email=data.email,
            status="pending",
            stage=MIN_STAGE,
            flow_completed=data.flow_completed,
        )
        db.add(withdrawal)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(withdrawal)

    audit.record_audit_event(
        db,
        audit.WITHDRAWAL_REQUESTED,
        user_id=user.id,
        entity_type="withdrawal_requests",
        entity_id=withdrawal.id,
        new_values={
            "symbol": withdrawal.symbol,
            "amount": withdrawal.amount,
            "destination_address": withdrawal.destination_address,
            "network": withdrawal.network,
            "fee_usd": withdrawal.fee_usd,
        },
    )
    logger.info(
        "Withdrawal %s created: %s %s (fee %s) for user %s",
        withdrawal.id, withdrawal.amount, withdrawal.symbol, withdrawal.fee_amount, user.id,
    )
    return withdrawal


def get_withdrawal(db: Session, withdrawal_id: str) -> WithdrawalRequest:
    withdrawal = db.get(WithdrawalRequest, withdrawal_id)
    if withdrawal is None:
        raise NotFoundError("Withdrawal not found")
    return withdrawal


def get_user_withdrawal(db: Session, user: User, withdrawal_id: str) -> WithdrawalRequest:
    withdrawal = db.get(WithdrawalRequest, withdrawal_id)
    if withdrawal is None or withdrawal.user_id != user.id:
        raise NotFoundError("Withdrawal not found")
    return withdrawal


def list_withdrawals(db: Session, user_id: Optional[str] = None) -> List[WithdrawalRequest]:
    stmt = select(WithdrawalRequest)
    if user_id is not None:
        stmt = stmt.where(WithdrawalRequest.user_id == user_id)
    stmt = stmt.order_by(WithdrawalRequest.created_at.desc())
    return list(db.scalars(stmt).all())


def progress_report(withdrawal: WithdrawalRequest) -> List[dict]:
    return [
        {
            "id": stage_id,
            "title": title,
            "description": description,
            "completed": withdrawal.stage >= stage_id,
        }
        for stage_id, title, description in STAGES
    ]


def update_stage(db: Session, withdrawal_id: str, stage: int, actor_id: Optional[str] = None) -> WithdrawalRequest:
    """
    Move a withdrawal to ``stage``.

    Forward jumps are allowed; going backwards is not, and finished
    withdrawals keep the stage they ended on. The write is conditional on
    the stored row, so a stale read cannot lower a stage written meanwhile.
    """
    if not isinstance(stage, int) or isinstance(stage, bool) or not MIN_STAGE <= stage <= MAX_STAGE:
        raise ValidationError("Stage must be 1, 2, or 3")

    withdrawal = get_withdrawal(db, withdrawal_id)
    if withdrawal.status in TERMINAL_STATUSES:
        raise StateError(f"Cannot change stage of withdrawal in status={withdrawal.status}")
    if stage < withdrawal.stage:
        raise StateError(f"Stage cannot move backwards (current stage {withdrawal.stage})")

    previous = withdrawal.stage
    result = db.execute(
        update(WithdrawalRequest)
        .where(
            WithdrawalRequest.id == withdrawal.id,
            WithdrawalRequest.stage <= stage,
            WithdrawalRequest.status.not_in(TERMINAL_STATUSES),
        )
        .values(stage=stage, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise StateError("Withdrawal was updated by another request; reload and retry")
    db.commit()
    db.refresh(withdrawal)

    if previous != stage:
        audit.record_audit_event(
            db,
            audit.WITHDRAWAL_STAGE_UPDATED,
            user_id=actor_id,
            entity_type="withdrawal_requests",
            entity_id=withdrawal.id,
            new_values={"stage": stage, "previous_stage": previous},
        )
    return withdrawal


def update_status(db: Session, withdrawal_id: str, status: str, actor_id: Optional[str] = None) -> WithdrawalRequest:
    """
    Change a withdrawal's status.

    Terminal requests are frozen. Failing or cancelling a request returns
    amount + fee to the asset it was debited from. The status write only
    applies to a non-terminal row, and the refund rides in the same
    transaction, so two concurrent requests cannot both refund.
    """
    if status not in STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(STATUSES)}")

    withdrawal = get_withdrawal(db, withdrawal_id)
    if withdrawal.status in TERMINAL_STATUSES:
        raise StateError(f"Cannot change withdrawal in status={withdrawal.status}")

    previous = withdrawal.status
    now = datetime.utcnow()
    values = {"status": status, "updated_at": now}
    if status == "completed":
        values["completed_at"] = now

    try:
        result = db.execute(
            update(WithdrawalRequest)
            .where(
                WithdrawalRequest.id == withdrawal.id,
                WithdrawalRequest.status.not_in(TERMINAL_STATUSES),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            raise StateError("Withdrawal was updated by another request; reload and retry")

        if status in REFUND_STATUSES:
            refund = withdrawal.amount + withdrawal.fee_amount
            db.execute(
                update(Asset)
                .where(Asset.id == withdrawal.asset_id)
                .values(
                    balance=Asset.balance + refund,
                    balance_usd=(Asset.balance + refund) * Asset.price_usd,
                )
                .execution_options(synchronize_session=False)
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(withdrawal)

    audit.record_audit_event(
        db,
        audit.WITHDRAWAL_STATUS_UPDATED,
        user_id=actor_id,
        entity_type="withdrawal_requests",
        entity_id=withdrawal.id,
        new_values={"status": status, "previous_status": previous},
    )
    return withdrawal

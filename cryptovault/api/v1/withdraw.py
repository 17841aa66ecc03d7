from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cryptovault.core.deps import get_db, get_current_user, get_session_claims
from cryptovault.core.errors import ForbiddenError, NotFoundError
from cryptovault.models.user import User
from cryptovault.models.withdrawal import WithdrawalRequest
from cryptovault.schemas.withdrawal import (
    FeeQuoteOut,
    WithdrawalCreate,
    WithdrawalCreated,
    WithdrawalDetail,
    WithdrawalSummary,
)
from cryptovault.services.accounts import resolve_session_user
from cryptovault.services.fees import quote_fee
from cryptovault.services.withdrawals import (
    WithdrawalInput,
    create_withdrawal,
    get_user_withdrawal,
    list_withdrawals,
    progress_report,
)

router = APIRouter()


def summary_out(w: WithdrawalRequest) -> WithdrawalSummary:
    return WithdrawalSummary(
        id=w.id,
        user_id=w.user_id,
        wallet_id=w.wallet_id,
        email=w.user.email if w.user else None,
        symbol=w.symbol,
        amount=w.amount,
        network=w.network,
        destination_address=w.destination_address,
        status=w.status,
        stage=w.stage or 1,
        flow_completed=bool(w.flow_completed),
        created_at=w.created_at,
    )


def detail_out(w: WithdrawalRequest) -> WithdrawalDetail:
    return WithdrawalDetail(
        **summary_out(w).model_dump(),
        amount_usd=w.amount_usd,
        fee=w.fee_amount,
        fee_usd=w.fee_usd,
        tx_hash=w.tx_hash,
        completed_at=w.completed_at,
        updated_at=w.updated_at,
        stages=progress_report(w),
    )


@router.get("/withdraw/fee-quote", response_model=FeeQuoteOut)
def fee_quote(amount: float = Query(..., gt=0, allow_inf_nan=False)):
    quote = quote_fee(amount)
    return FeeQuoteOut(amount=quote.amount, fee_rate=quote.rate, fee=quote.fee, total=quote.total)


@router.post("/withdraw", response_model=WithdrawalCreated, status_code=201)
def post_withdraw(
    payload: WithdrawalCreate,
    claims: dict = Depends(get_session_claims),
    db: Session = Depends(get_db),
):
    # a valid token whose user row is gone is a 404 here, not a 401
    user = resolve_session_user(db, claims)
    if user is None:
        raise NotFoundError("User not found")
    if user.account_status != "active":
        raise ForbiddenError(f"Account is {user.account_status}")

    withdrawal = create_withdrawal(
        db,
        user,
        WithdrawalInput(
            wallet_id=str(payload.wallet_id),
            symbol=payload.symbol,
            amount=payload.amount,
            destination_address=payload.destination_address,
            network=payload.network,
            email=payload.email,
            flow_completed=payload.flow_completed,
        ),
    )
    return WithdrawalCreated(
        id=withdrawal.id,
        status=withdrawal.status,
        stage=withdrawal.stage,
        amount=withdrawal.amount,
        amount_usd=withdrawal.amount_usd,
        fee=withdrawal.fee_amount,
        fee_usd=withdrawal.fee_usd,
    )


@router.get("/withdraw", response_model=list[WithdrawalSummary])
def get_my_withdrawals(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [summary_out(w) for w in list_withdrawals(db, user_id=current_user.id)]


@router.get("/withdraw/{withdrawal_id}", response_model=WithdrawalDetail)
def get_my_withdrawal(
    withdrawal_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return detail_out(get_user_withdrawal(db, current_user, withdrawal_id))

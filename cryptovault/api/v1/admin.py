from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cryptovault.api.v1.withdraw import detail_out, summary_out
from cryptovault.core.deps import get_db, require_admin
from cryptovault.models.user import User
from cryptovault.schemas.admin import StageUpdate, StageUpdated, StatusUpdate, UserBalance
from cryptovault.services.accounts import user_balances
from cryptovault.services.withdrawals import (
    get_withdrawal,
    list_withdrawals,
    update_stage,
    update_status,
)

router = APIRouter(dependencies=[Depends(require_admin)])


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


@router.get("/admin/user-balances")
def get_user_balances(db: Session = Depends(get_db)):
    """Total USD balance and asset count for every user."""
    return {"data": [_dump(UserBalance(**row)) for row in user_balances(db)]}


@router.get("/admin/withdrawal-requests")
def get_withdrawal_requests(db: Session = Depends(get_db)):
    return {"data": [_dump(summary_out(w)) for w in list_withdrawals(db)]}


@router.get("/admin/withdrawal-requests/{withdrawal_id}")
def get_withdrawal_request(withdrawal_id: str, db: Session = Depends(get_db)):
    return {"data": _dump(detail_out(get_withdrawal(db, withdrawal_id)))}


@router.patch("/admin/withdrawal-requests/{withdrawal_id}/status")
def patch_withdrawal_status(
    withdrawal_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    withdrawal = update_status(db, withdrawal_id, payload.status, actor_id=admin.id)
    return {"data": _dump(detail_out(withdrawal))}


@router.patch("/admin/withdrawal-requests/{withdrawal_id}/stage")
def patch_withdrawal_stage(
    withdrawal_id: str,
    payload: StageUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Advance a withdrawal through the three processing stages.

    - **stage**: target stage, 1..3; may skip ahead but never move back
    """
    withdrawal = update_stage(db, withdrawal_id, payload.stage, actor_id=admin.id)
    return {
        "data": _dump(
            StageUpdated(
                id=withdrawal.id,
                stage=withdrawal.stage,
                status=withdrawal.status,
                updated_at=withdrawal.updated_at,
            )
        )
    }

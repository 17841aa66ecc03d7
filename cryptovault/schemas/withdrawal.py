from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WithdrawalCreate(CamelModel):
    wallet_id: UUID
    symbol: str = Field(..., min_length=1, max_length=20)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    destination_address: str = Field(..., min_length=1)
    network: str = Field(..., min_length=1)
    email: EmailStr
    flow_completed: bool = False


class WithdrawalCreated(CamelModel):
    id: str
    status: str
    stage: int
    amount: float
    amount_usd: float
    fee: float
    fee_usd: float


class FeeQuoteOut(CamelModel):
    amount: float
    fee_rate: float
    fee: float
    total: float


class ProgressStage(CamelModel):
    id: int
    title: str
    description: str
    completed: bool


class WithdrawalSummary(CamelModel):
    id: str
    user_id: str
    wallet_id: str
    email: Optional[str] = None
    symbol: str
    amount: float
    network: str
    destination_address: str
    status: str
    stage: int
    flow_completed: bool
    created_at: datetime


class WithdrawalDetail(WithdrawalSummary):
    amount_usd: float
    fee: float
    fee_usd: float
    tx_hash: Optional[str] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime
    stages: list[ProgressStage] = []

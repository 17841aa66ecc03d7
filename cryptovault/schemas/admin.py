from datetime import datetime

from pydantic import BaseModel

from cryptovault.schemas.withdrawal import CamelModel


class StageUpdate(BaseModel):
    stage: int


class StatusUpdate(BaseModel):
    status: str


class StageUpdated(CamelModel):
    id: str
    stage: int
    status: str
    updated_at: datetime


class UserBalance(CamelModel):
    user_id: str
    email: str
    total_balance: float
    asset_count: int

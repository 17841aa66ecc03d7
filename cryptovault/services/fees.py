"""
Withdrawal fee schedule.

The same schedule backs the UI preview (fee-quote endpoint) and the amount
actually charged when a withdrawal is created.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from cryptovault.core.config import settings

# (exclusive upper bound in asset units, rate); None = no upper bound
FEE_TIERS: Tuple[Tuple[Optional[float], float], ...] = (
    (1, 0.02),
    (10, 0.015),
    (1000, 0.01),
    (10000, 0.005),
    (None, 0.003),
)


@dataclass(frozen=True)
class FeeQuote:
    amount: float
    rate: float
    fee: float

    @property
    def total(self) -> float:
        return self.amount + self.fee


def fee_rate(amount: float) -> float:
    for upper, rate in FEE_TIERS:
        if upper is None or amount < upper:
            return rate
    raise AssertionError("fee tiers must end with an unbounded bracket")


def quote_fee(amount: float, min_fee: Optional[float] = None) -> FeeQuote:
    if amount <= 0:
        raise ValueError("Amount must be positive")
    if min_fee is None:
        min_fee = settings.withdrawal_min_fee
    rate = fee_rate(amount)
    return FeeQuote(amount=amount, rate=rate, fee=max(amount * rate, min_fee))

from .auth import (
    NonceResponse,
    PasswordCredentials,
    SessionInfo,
    UserProfile,
    WalletConnectRequest,
)
from .withdrawal import (
    FeeQuoteOut,
    WithdrawalCreate,
    WithdrawalCreated,
    WithdrawalDetail,
    WithdrawalSummary,
)
from .admin import StageUpdate, StatusUpdate, UserBalance

__all__ = [
    "NonceResponse",
    "PasswordCredentials",
    "SessionInfo",
    "UserProfile",
    "WalletConnectRequest",
    "FeeQuoteOut",
    "WithdrawalCreate",
    "WithdrawalCreated",
    "WithdrawalDetail",
    "WithdrawalSummary",
    "StageUpdate",
    "StatusUpdate",
    "UserBalance",
]

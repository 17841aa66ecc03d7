from .user import User
from .wallet import Wallet
from .asset import Asset
from .withdrawal import WithdrawalRequest
from .audit import AuditLog

__all__ = ["User", "Wallet", "Asset", "WithdrawalRequest", "AuditLog"]

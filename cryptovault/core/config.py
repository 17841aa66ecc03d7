from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SESSION_SECRET = "dev-session-secret-CHANGE-ME"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "CryptoVault API"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+pysqlite:///./cryptovault.db"

    # Session tokens (sv_session cookie / Bearer)
    session_jwt_secret: str = DEV_SESSION_SECRET
    session_jwt_alg: str = "HS256"
    session_ttl_seconds: int = 60 * 60 * 2  # 2 hours
    session_cookie_name: str = "sv_session"
    session_flag_cookie_name: str = "sv_session_set"
    session_cookie_secure: bool = False

    # Wallet-connect nonces
    nonce_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    nonce_ttl_seconds: int = 300
    allow_unsigned_wallet_connect: bool = True

    # /api/auth/* rate limiting
    auth_rate_limit: int = 30
    auth_rate_window_seconds: int = 60

    # Withdrawals
    withdrawal_min_fee: float = 0.0001

    # Maintenance (cron) endpoints
    cron_api_key: Optional[str] = None
    max_failed_login_attempts: int = 5
    account_lock_minutes: int = 30

    health_check_timeout_seconds: float = 5.0


settings = Settings()

import os

# must be set before cryptovault.core.config is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SESSION_JWT_SECRET"] = "test-session-secret"
os.environ["CRON_API_KEY"] = "test-cron-key"
os.environ["NONCE_BACKEND"] = "memory"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cryptovault.core.deps import get_db, get_nonce_store
from cryptovault.core.rate_limit import auth_rate_limiter
from cryptovault.core.security import create_session_token, hash_password
from cryptovault.db.base import Base
from cryptovault.main import app
from cryptovault.models.asset import Asset
from cryptovault.models.user import User
from cryptovault.services.accounts import connect_wallet_user
from cryptovault.services.nonce_store import InMemoryNonceStore

engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

WALLET_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb1"


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh schema and rate-limit windows for every test"""
    Base.metadata.create_all(bind=engine)
    auth_rate_limiter.reset()
    yield
    app.dependency_overrides.clear()
    auth_rate_limiter.reset()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def other_session():
    """A second session on the same database, standing in for a concurrent request"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def nonce_store():
    return InMemoryNonceStore(ttl_seconds=300)


@pytest.fixture
def client(nonce_store):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_nonce_store] = lambda: nonce_store
    with TestClient(app) as c:
        yield c


@pytest.fixture
def wallet_user(db_session):
    user, _ = connect_wallet_user(db_session, WALLET_ADDRESS)
    return user


@pytest.fixture
def admin_user(db_session):
    user = User(
        auth_id="admin-auth-id",
        email="admin@example.com",
        password_hash=hash_password("admin-pass"),
        is_verified=True,
        role="admin",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers():
    """Bearer headers for a user, built the way signin/wallet-connect build them"""

    def _headers(user: User) -> dict:
        sub = user.primary_wallet_address or user.id
        token = create_session_token(sub=sub, uid=user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def fund(db_session):
    """Set the balance (and USD price) of one of a user's default assets"""

    def _fund(user: User, symbol: str, balance: float, price_usd: float = 0.0) -> Asset:
        asset = db_session.scalar(
            select(Asset).where(Asset.user_id == user.id, Asset.symbol == symbol)
        )
        asset.balance = balance
        asset.price_usd = price_usd
        asset.balance_usd = balance * price_usd
        db_session.commit()
        db_session.refresh(asset)
        return asset

    return _fund

# cryptovault/services/nonce_store.py
"""
Single-use wallet-connect challenges.

A nonce is issued per wallet address (lower-cased), overwrites any earlier
nonce for that address, expires after a fixed TTL and can be redeemed once.
"""
from __future__ import annotations

import secrets
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional

import redis

from cryptovault.core.config import settings


def generate_nonce() -> str:
    # 16 random bytes, hex encoded
    return secrets.token_hex(16)


class NonceStore(ABC):
    ttl_seconds: int

    @abstractmethod
    def create(self, address: str) -> str:
        """Issue a fresh nonce for ``address``, replacing any previous one."""

    @abstractmethod
    def get(self, address: str) -> Optional[str]:
        """Return the live nonce for ``address`` or None."""

    @abstractmethod
    def consume(self, address: str, nonce: str) -> bool:
        """Redeem ``nonce`` for ``address``. True at most once per nonce."""

    def purge_expired(self) -> int:
        return 0

    def ping(self) -> bool:
        return True


@dataclass
class NonceRecord:
    nonce: str
    expires_at: float


class InMemoryNonceStore(NonceStore):
    """Process-local store. Not shared between workers."""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[str, NonceRecord] = {}
        self._lock = threading.Lock()

    def create(self, address: str) -> str:
        nonce = generate_nonce()
        with self._lock:
            self._records[address.lower()] = NonceRecord(nonce, self._clock() + self.ttl_seconds)
        return nonce

    def get(self, address: str) -> Optional[str]:
        key = address.lower()
        with self._lock:
            rec = self._records.get(key)
            if rec is None:
                return None
            if rec.expires_at < self._clock():
                del self._records[key]
                return None
            return rec.nonce

    def consume(self, address: str, nonce: str) -> bool:
        key = address.lower()
        with self._lock:
            rec = self._records.get(key)
            if rec is None:
                return False
            if rec.expires_at < self._clock():
                del self._records[key]
                return False
            if rec.nonce != nonce:
                return False
            del self._records[key]
            return True

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, rec in self._records.items() if rec.expires_at < now]
            for key in expired:
                del self._records[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


# GET + compare + DEL in one server-side step so two instances can't both redeem
_CONSUME_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if current and current == ARGV[1] then
    redis.call('DEL', KEYS[1])
    return 1
end
return 0
"""


class RedisNonceStore(NonceStore):
    """Shared store for multi-instance deployments. Redis handles expiry."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = 300) -> None:
        self.r = client
        self.ttl_seconds = ttl_seconds
        self._consume = self.r.register_script(_CONSUME_SCRIPT)

    @staticmethod
    def key(address: str) -> str:
        return f"wallet:nonce:{address.lower()}"

    def create(self, address: str) -> str:
        nonce = generate_nonce()
        self.r.set(self.key(address), nonce, ex=self.ttl_seconds)
        return nonce

    def get(self, address: str) -> Optional[str]:
        return self.r.get(self.key(address))

    def consume(self, address: str, nonce: str) -> bool:
        if not nonce:
            return False
        return bool(self._consume(keys=[self.key(address)], args=[nonce]))

    def ping(self) -> bool:
        return bool(self.r.ping())


def build_nonce_store() -> NonceStore:
    if settings.nonce_backend == "redis":
        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.health_check_timeout_seconds,
        )
        return RedisNonceStore(client, ttl_seconds=settings.nonce_ttl_seconds)
    return InMemoryNonceStore(ttl_seconds=settings.nonce_ttl_seconds)


@lru_cache
def get_nonce_store() -> NonceStore:
    return build_nonce_store()

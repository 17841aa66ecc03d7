import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from cryptovault.core.config import settings
from cryptovault.core.deps import get_db, get_nonce_store
from cryptovault.services.nonce_store import NonceStore

logger = logging.getLogger(__name__)

router = APIRouter()

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="health")


def _check(fn) -> str:
    future = _executor.submit(fn)
    try:
        return "ok" if future.result(timeout=settings.health_check_timeout_seconds) else "error"
    except FutureTimeout:
        logger.warning("Health check timed out after %ss", settings.health_check_timeout_seconds)
        return "timeout"
    except Exception:
        logger.warning("Health check failed", exc_info=True)
        return "error"


@router.get("/health")
def health(db: Session = Depends(get_db), store: NonceStore = Depends(get_nonce_store)):
    bind = db.get_bind()

    def ping_database() -> bool:
        # own connection, checked out and returned on the worker thread
        with bind.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    database = _check(ping_database)
    nonce_store = _check(store.ping)

    ok = database == "ok" and nonce_store == "ok"
    body = {"status": "ok" if ok else "error", "database": database, "nonceStore": nonce_store}
    return JSONResponse(status_code=200 if ok else 503, content=body)

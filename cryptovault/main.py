import logging

from fastapi import FastAPI

from cryptovault.api.router import api_router
from cryptovault.core.config import DEV_SESSION_SECRET, settings
from cryptovault.core.errors import register_exception_handlers
from cryptovault.core.logging_config import configure_logging
from cryptovault.db.base import Base
from cryptovault.db.session import engine
from cryptovault import models  # noqa: F401  (register tables)

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(title=settings.app_name)
register_exception_handlers(app)
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
def startup_prepare():
    if settings.database_url.startswith("sqlite"):
        # local/dev convenience; Postgres schemas come from alembic
        Base.metadata.create_all(bind=engine)
    if settings.session_jwt_secret == DEV_SESSION_SECRET:
        logger.warning("SESSION_JWT_SECRET is the built-in development value; set it in production")
    logger.info("%s started (nonce backend: %s)", settings.app_name, settings.nonce_backend)

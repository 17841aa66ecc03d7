"""
Audit trail for security- and money-relevant actions.

Events are written after the business transaction has committed, so a failed
audit write never undoes or fails the request that triggered it.
"""
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cryptovault.models.audit import AuditLog

logger = logging.getLogger(__name__)

WALLET_CONNECTED = "WALLET_CONNECTED"
WITHDRAWAL_REQUESTED = "WITHDRAWAL_REQUESTED"
WITHDRAWAL_STATUS_UPDATED = "WITHDRAWAL_STATUS_UPDATED"
WITHDRAWAL_STAGE_UPDATED = "WITHDRAWAL_STAGE_UPDATED"


def record_audit_event(
    db: Session,
    action: str,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    new_values: Optional[dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """
    Persist one audit row (best effort).

    Returns:
        The stored AuditLog, or None when the write failed
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        new_values=new_values,
        status="success",
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record audit event %s for %s %s", action, entity_type, entity_id)
        return None
    return entry

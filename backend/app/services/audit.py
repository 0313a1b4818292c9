import logging
from typing import Optional
from sqlmodel import Session
from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_admin_action(db: Session, action: str, details: str, performed_by_id: Optional[int]) -> AuditLog:
    """Record an admin action; the caller owns the commit"""
    logger.info("admin action %s by user %s: %s", action, performed_by_id, details)
    entry = AuditLog(action=action, details=details, performed_by_id=performed_by_id)
    db.add(entry)
    return entry

"""
Audit logging for security events
"""
import json
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voluntold.models.audit_log import AuditLog, AuditEventType

logger = logging.getLogger(__name__)


def log_security_event(
    db: Session,
    event_type: AuditEventType,
    tenant_id: Optional[uuid.UUID] = None,
    profile_id: Optional[uuid.UUID] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    details: Optional[dict] = None
):
    """
    Record a security event in audit_logs.

    Commits on its own, so call it after the surrounding operation has
    committed. A failure here is logged and rolled back; it never fails the
    request.

    Args:
        db: Database session
        event_type: Type of security event
        tenant_id: Tenant the event belongs to (None for global events)
        profile_id: Acting or affected user profile
        resource_type: Type of resource (e.g., "admin_token")
        resource_id: Identifier of the resource; never a raw token
        ip_address: IP address of the request
        user_agent: User agent string
        details: Additional details (stored JSON-encoded)
    """
    try:
        audit_log = AuditLog(
            tenant_id=tenant_id,
            profile_id=profile_id,
            event_type=event_type,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=json.dumps(details, default=str) if details else None
        )
        db.add(audit_log)
        db.commit()
    except SQLAlchemyError:
        logger.exception("audit.write_failed", extra={"event_type": event_type.value})
        db.rollback()

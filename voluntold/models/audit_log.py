from sqlalchemy import Column, String, DateTime, Text, Uuid, Enum as SQLEnum
import uuid
from datetime import datetime
import enum
from voluntold.db.session import Base


class AuditEventType(str, enum.Enum):
    """Types of security events to audit"""
    ADMIN_INVITED = "admin_invited"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    ADMIN_TOKEN_REDEEMED = "admin_token_redeemed"
    TOKEN_CONSUME_FAILED = "token_consume_failed"
    MEMBER_ACCESS_REDEEMED = "member_access_redeemed"
    ADMIN_SIGNIN_FAILED = "admin_signin_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # No foreign keys: audit rows outlive the tenants and profiles they mention
    tenant_id = Column(Uuid, nullable=True, index=True)
    profile_id = Column(Uuid, nullable=True, index=True)
    event_type = Column(
        SQLEnum(AuditEventType, name="audit_event_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    resource_type = Column(String, nullable=True)  # e.g. "admin_token", "api_endpoint"
    resource_id = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    details = Column(Text, nullable=True)  # JSON string with additional details
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
import uuid
from datetime import datetime
from voluntold.db.session import Base


class MemberToken(Base):
    """
    Magic link credential giving a member passwordless access to one tenant's
    member portal. One-time use and short-lived.
    """
    __tablename__ = "member_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    token = Column(String(255), nullable=False, unique=True, index=True)
    member_email = Column(String(255), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

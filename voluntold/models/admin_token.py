from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Uuid, Enum as SQLEnum
import uuid
from datetime import datetime
import enum
from voluntold.db.session import Base


class AdminTokenType(str, enum.Enum):
    INVITATION = "invitation"
    PASSWORD_RESET = "password_reset"


class AdminToken(Base):
    """
    Single-use credential to set up or reset an admin password.
    Valid only while is_used is false and expires_at has not passed.
    """
    __tablename__ = "admin_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    token = Column(String(255), nullable=False, unique=True, index=True)
    admin_email = Column(String(255), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)  # null: super admin reset
    token_type = Column(
        SQLEnum(AdminTokenType, name="admin_token_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    created_by = Column(Uuid, ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True)  # null: self-initiated
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

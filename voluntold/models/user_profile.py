from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint, Uuid, Enum as SQLEnum, text
import uuid
from datetime import datetime
import enum
from voluntold.db.session import Base


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    MEMBER = "member"


ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN)


class UserProfile(Base):
    """
    One principal's relationship to one tenant, or the global super admin
    record when tenant_id is null. The same email appears once per tenant.
    """
    __tablename__ = "user_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, index=True)  # Always stored lowercase
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.MEMBER,
    )
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)  # Null until setup completes
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("email", "tenant_id", name="uq_user_profiles_email_tenant"),
        # NULL tenant_ids never collide in the constraint above
        Index(
            "uq_user_profiles_email_global",
            "email",
            unique=True,
            postgresql_where=text("tenant_id IS NULL"),
            sqlite_where=text("tenant_id IS NULL"),
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

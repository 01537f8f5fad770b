from voluntold.models.tenant import Tenant
from voluntold.models.user_profile import UserProfile, UserRole, ADMIN_ROLES
from voluntold.models.admin_token import AdminToken, AdminTokenType
from voluntold.models.member_token import MemberToken
from voluntold.models.audit_log import AuditLog, AuditEventType

__all__ = [
    "Tenant", "UserProfile", "UserRole", "ADMIN_ROLES",
    "AdminToken", "AdminTokenType", "MemberToken",
    "AuditLog", "AuditEventType",
]

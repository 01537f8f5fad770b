from typing import List, Literal, Optional
from uuid import UUID

from voluntold.schemas.base import CamelModel

AccessType = Literal["super_admin", "tenant_admin", "member"]


class AccessOption(CamelModel):
    """One sign-in context: the super admin dashboard or one tenant."""
    id: str  # 'super_admin' or '<access_type>_<tenant_id>'
    name: str
    access_type: AccessType
    tenant_id: Optional[UUID] = None
    organization_name: Optional[str] = None


class AccessSummary(CamelModel):
    has_admin_access: bool = False
    has_member_access: bool = False
    access_options: List[AccessOption] = []
    total_options: int = 0


class CheckUserRoleRequest(CamelModel):
    email: str


class SignInRequest(CamelModel):
    email: str
    option_id: Optional[str] = None  # Chosen AccessOption.id after a select_option step


class AdminRedirect(CamelModel):
    """Context handed to the admin password sign-in page."""
    path: str
    email: str
    access_type: AccessType
    tenant_id: Optional[UUID] = None
    organization_name: Optional[str] = None


SignInStep = Literal["check_email", "select_option", "admin_sign_in", "member_link"]


class SignInResponse(CamelModel):
    step: SignInStep
    success: bool = True
    message: Optional[str] = None
    options: Optional[List[AccessOption]] = None
    redirect: Optional[AdminRedirect] = None

from pydantic import Field
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from voluntold.schemas.base import CamelModel


class AdminSignInRequest(CamelModel):
    email: str
    password: str
    tenant_id: Optional[UUID] = None  # Organization chosen after requires_org_selection


class AdminOrganization(CamelModel):
    tenant_id: UUID
    tenant_name: str
    tenant_slug: str
    role: str


class AdminSignInResponse(CamelModel):
    """Either an access token or the list of organizations to choose from."""
    requires_org_selection: bool = False
    user_type: Optional[str] = None
    organizations: Optional[List[AdminOrganization]] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    organization_name: Optional[str] = None
    user_role: Optional[str] = None
    tenant_id: Optional[UUID] = None


class AdminMe(CamelModel):
    profile_id: UUID
    email: str
    role: str
    tenant_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AdminInviteRequest(CamelModel):
    email: str
    first_name: str
    last_name: str
    tenant_id: UUID
    role: Optional[str] = "tenant_admin"


class AdminInviteResponse(CamelModel):
    success: bool = True
    message: str
    invitation_url: str
    email_sent: bool = True


class PasswordResetRequest(CamelModel):
    email: str
    tenant_id: Optional[UUID] = None  # Narrows the reset when one email administers several tenants


class GenericSuccessResponse(CamelModel):
    success: bool = True
    message: str


class SetupPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str


class TenantInfo(CamelModel):
    id: Optional[UUID] = None
    name: str
    slug: str


class AdminInfo(CamelModel):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TokenInfoResponse(CamelModel):
    success: bool = True
    token_type: str
    admin_info: AdminInfo
    tenant: Optional[TenantInfo] = None
    expires_at: datetime


class SetupPasswordResponse(CamelModel):
    success: bool = True
    message: str
    tenant: Optional[TenantInfo] = None

from typing import Optional
from uuid import UUID

from voluntold.schemas.admin import TenantInfo
from voluntold.schemas.base import CamelModel


class MemberAccessRequest(CamelModel):
    email: str
    tenant_id: UUID


class MemberAccessResponse(CamelModel):
    success: bool
    message: str
    organization_name: Optional[str] = None


class MemberInfo(CamelModel):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class MemberSessionResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    member: MemberInfo
    tenant: TenantInfo

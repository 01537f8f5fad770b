"""
Administrator password sign-in and bearer token authentication.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from voluntold.core.audit import log_security_event
from voluntold.core.config import Settings
from voluntold.core.errors import InsufficientPermissions, InvalidTenant, Unauthorized, ValidationError
from voluntold.core.security import create_access_token, decode_access_token, verify_password
from voluntold.db.store import get_tenant, list_tenants, memberships_for_email, profiles_for_email
from voluntold.models.audit_log import AuditEventType
from voluntold.models.tenant import Tenant
from voluntold.models.user_profile import ADMIN_ROLES, UserProfile, UserRole
from voluntold.schemas.admin import AdminOrganization, AdminSignInResponse
from voluntold.utils.emails import normalize_email

logger = logging.getLogger(__name__)

ADMIN_ROLE_VALUES = frozenset(role.value for role in ADMIN_ROLES)


@dataclass(frozen=True)
class AdminPrincipal:
    """The authenticated administrator behind a bearer token."""
    profile_id: uuid.UUID
    email: str
    role: UserRole
    tenant_id: Optional[uuid.UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def _issue_session(
    settings: Settings,
    profile: UserProfile,
    tenant: Optional[Tenant],
) -> AdminSignInResponse:
    access_token = create_access_token(
        data={
            "sub": profile.email,
            "profile_id": str(profile.id),
            "tenant_id": str(tenant.id) if tenant else None,
            "role": profile.role.value,
            "scope": "admin",
        },
        secret_key=settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return AdminSignInResponse(
        requires_org_selection=False,
        user_type=profile.role.value,
        access_token=access_token,
        token_type="bearer",
        organization_name=tenant.name if tenant else None,
        user_role=profile.role.value,
        tenant_id=tenant.id if tenant else None,
    )


def sign_in_admin(
    db: Session,
    settings: Settings,
    email: str,
    password: str,
    tenant_id: Optional[uuid.UUID] = None,
    ip_address: Optional[str] = None,
) -> AdminSignInResponse:
    """
    Sign in an administrator. If they administer more than one organization and
    tenant_id is not provided, returns the organizations to choose from instead
    of a token.
    """
    normalized_email = normalize_email(email)
    if not normalized_email or not password:
        raise ValidationError("Email and password are required")

    matching = [
        p for p in profiles_for_email(db, normalized_email, ADMIN_ROLES)
        if verify_password(password, p.password_hash)
    ]
    if not matching:
        # Don't reveal whether the email exists
        log_security_event(
            db,
            event_type=AuditEventType.ADMIN_SIGNIN_FAILED,
            resource_type="admin_signin",
            ip_address=ip_address,
            details={"reason": "invalid_credentials"},
        )
        raise Unauthorized("Invalid email or password")

    super_admin = next((p for p in matching if p.role == UserRole.SUPER_ADMIN), None)
    tenant_admins = {p.tenant_id: p for p in matching if p.role == UserRole.TENANT_ADMIN}

    if tenant_id is not None:
        if tenant_id in tenant_admins:
            return _issue_session(settings, tenant_admins[tenant_id], get_tenant(db, tenant_id))
        if super_admin is None:
            raise InsufficientPermissions("You do not have admin access to this organization")
        tenant = get_tenant(db, tenant_id)
        if tenant is None:
            raise InvalidTenant("Organization not found")
        return _issue_session(settings, super_admin, tenant)

    if super_admin is not None:
        tenants = list_tenants(db)
        if not tenants:
            return _issue_session(settings, super_admin, None)
        organizations = [
            AdminOrganization(tenant_id=t.id, tenant_name=t.name, tenant_slug=t.slug, role=UserRole.SUPER_ADMIN.value)
            for t in tenants
        ]
        return AdminSignInResponse(requires_org_selection=True, user_type="super_admin", organizations=organizations)

    if len(tenant_admins) > 1:
        organizations: List[AdminOrganization] = [
            AdminOrganization(
                tenant_id=m.tenant_id,
                tenant_name=m.tenant_name,
                tenant_slug=m.tenant_slug,
                role=m.role.value,
            )
            for m in memberships_for_email(db, normalized_email, [UserRole.TENANT_ADMIN])
            if m.tenant_id in tenant_admins
        ]
        return AdminSignInResponse(requires_org_selection=True, user_type="tenant_admin", organizations=organizations)

    only_tenant_id, profile = next(iter(tenant_admins.items()))
    return _issue_session(settings, profile, get_tenant(db, only_tenant_id))


def authenticate_admin_token(db: Session, settings: Settings, token: str) -> AdminPrincipal:
    """Resolve a bearer token to the admin profile it was issued for."""
    payload = decode_access_token(token, settings.SECRET_KEY)
    if payload is None or not payload.get("profile_id"):
        raise Unauthorized("Invalid authentication credentials")

    try:
        profile_id = uuid.UUID(payload["profile_id"])
    except (ValueError, TypeError):
        raise Unauthorized("Invalid authentication credentials")

    # Member sessions share the signing key; only admin sign-in sets this scope
    if payload.get("scope") != "admin" or payload.get("role") not in ADMIN_ROLE_VALUES:
        raise InsufficientPermissions("Admin access required")

    profile = db.get(UserProfile, profile_id)
    if profile is None:
        raise Unauthorized("User not found")
    if not profile.is_admin or profile.role.value != payload["role"]:
        raise InsufficientPermissions("Admin access required")

    tenant_id = profile.tenant_id
    if payload.get("tenant_id"):
        try:
            tenant_id = uuid.UUID(payload["tenant_id"])
        except (ValueError, TypeError):
            raise Unauthorized("Invalid authentication credentials")

    return AdminPrincipal(
        profile_id=profile.id,
        email=profile.email,
        role=profile.role,
        tenant_id=tenant_id,
        first_name=profile.first_name,
        last_name=profile.last_name,
    )

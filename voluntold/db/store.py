"""
Query helpers shared by the services.

Profile/tenant joins come back as TenantMembership rows so callers never deal
with raw result tuples.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional
import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from voluntold.models.admin_token import AdminToken
from voluntold.models.member_token import MemberToken
from voluntold.models.tenant import Tenant
from voluntold.models.user_profile import UserProfile, UserRole


@dataclass(frozen=True)
class TenantMembership:
    profile_id: uuid.UUID
    email: str
    role: UserRole
    tenant_id: uuid.UUID
    tenant_name: str
    tenant_slug: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def profiles_for_email(
    db: Session,
    email: str,
    roles: Optional[Iterable[UserRole]] = None,
) -> List[UserProfile]:
    """All profiles for an already-normalized email, oldest first."""
    query = db.query(UserProfile).filter(UserProfile.email == email)
    if roles is not None:
        query = query.filter(UserProfile.role.in_(list(roles)))
    return query.order_by(UserProfile.created_at, UserProfile.id).all()


def memberships_for_email(
    db: Session,
    email: str,
    roles: Optional[Iterable[UserRole]] = None,
) -> List[TenantMembership]:
    """Tenant-scoped profiles for an email joined with their tenant."""
    query = (
        db.query(UserProfile, Tenant)
        .join(Tenant, UserProfile.tenant_id == Tenant.id)
        .filter(UserProfile.email == email)
    )
    if roles is not None:
        query = query.filter(UserProfile.role.in_(list(roles)))
    rows = query.order_by(Tenant.name, UserProfile.role).all()
    return [
        TenantMembership(
            profile_id=profile.id,
            email=profile.email,
            role=profile.role,
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            tenant_slug=tenant.slug,
            first_name=profile.first_name,
            last_name=profile.last_name,
        )
        for profile, tenant in rows
    ]


def get_tenant(db: Session, tenant_id: Optional[uuid.UUID]) -> Optional[Tenant]:
    if tenant_id is None:
        return None
    return db.query(Tenant).filter(Tenant.id == tenant_id).first()


def list_tenants(db: Session) -> List[Tenant]:
    return db.query(Tenant).order_by(Tenant.name).all()


def get_profile(db: Session, email: str, tenant_id: Optional[uuid.UUID]) -> Optional[UserProfile]:
    """The profile for (email, tenant); tenant None selects the global record."""
    query = db.query(UserProfile).filter(UserProfile.email == email)
    if tenant_id is None:
        query = query.filter(UserProfile.tenant_id.is_(None))
    else:
        query = query.filter(UserProfile.tenant_id == tenant_id)
    return query.first()


def find_unused_admin_token(db: Session, token: str) -> Optional[AdminToken]:
    return db.query(AdminToken).filter(
        AdminToken.token == token,
        AdminToken.is_used.is_(False),
    ).first()


def consume_admin_token(db: Session, token_id: uuid.UUID, used_at) -> bool:
    """
    Mark a token used in a single conditional UPDATE. Returns False when
    another request consumed it first. Not committed here.
    """
    result = db.execute(
        update(AdminToken)
        .where(AdminToken.id == token_id, AdminToken.is_used.is_(False))
        .values(is_used=True, used_at=used_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def find_unused_member_token(db: Session, token: str) -> Optional[MemberToken]:
    return db.query(MemberToken).filter(
        MemberToken.token == token,
        MemberToken.used_at.is_(None),
    ).first()


def consume_member_token(db: Session, token_id: uuid.UUID, used_at) -> bool:
    result = db.execute(
        update(MemberToken)
        .where(MemberToken.id == token_id, MemberToken.used_at.is_(None))
        .values(used_at=used_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1

"""
Role resolution for the single sign-in flow.

Given an email, list every context the principal can sign in to: the super
admin dashboard and one entry per tenant relationship. The result is computed
on every request and never cached.
"""
from typing import List, Set, Tuple
import logging

from sqlalchemy.orm import Session

from voluntold.db.store import memberships_for_email, profiles_for_email
from voluntold.models.user_profile import UserRole
from voluntold.schemas.access import AccessOption, AccessSummary
from voluntold.utils.emails import normalize_email

logger = logging.getLogger(__name__)

SUPER_ADMIN_OPTION_ID = "super_admin"
SUPER_ADMIN_OPTION_NAME = "Super Admin Dashboard"


def resolve_access(db: Session, email: str) -> AccessSummary:
    """
    Build the AccessSummary for an email.

    The caller validates the email first. An unknown email yields the same
    shape as a known one with no options. Store errors propagate; no partial
    summary is ever returned.
    """
    normalized_email = normalize_email(email)

    profiles = profiles_for_email(db, normalized_email)
    if not profiles:
        return AccessSummary()

    access_options: List[AccessOption] = []
    has_admin_access = False
    has_member_access = False

    if any(p.role == UserRole.SUPER_ADMIN for p in profiles):
        access_options.append(AccessOption(
            id=SUPER_ADMIN_OPTION_ID,
            name=SUPER_ADMIN_OPTION_NAME,
            access_type="super_admin",
        ))
        # Super admin can access everything
        has_admin_access = True
        has_member_access = True

    seen: Set[Tuple[str, str]] = set()
    for membership in memberships_for_email(db, normalized_email):
        if membership.role == UserRole.TENANT_ADMIN:
            access_type = "tenant_admin"
            display_name = f"{membership.tenant_name} (Admin)"
        else:
            access_type = "member"
            display_name = f"{membership.tenant_name} (Member)"

        key = (access_type, str(membership.tenant_id))
        if key in seen:
            continue
        seen.add(key)

        access_options.append(AccessOption(
            id=f"{access_type}_{membership.tenant_id}",
            name=display_name,
            access_type=access_type,
            tenant_id=membership.tenant_id,
            organization_name=membership.tenant_name,
        ))
        if access_type == "tenant_admin":
            has_admin_access = True
        has_member_access = True

    logger.info(
        "role_resolver.resolved",
        extra={"total_options": len(access_options), "has_admin_access": has_admin_access},
    )
    return AccessSummary(
        has_admin_access=has_admin_access,
        has_member_access=has_member_access,
        access_options=access_options,
        total_options=len(access_options),
    )

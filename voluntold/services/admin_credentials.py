"""
Admin credential lifecycle: invitation and password-reset tokens.

Tokens are issued -> consumed | expired. Both end states are final. A token is
consumed with a conditional UPDATE in the same transaction that stores the new
password hash, so two concurrent redemptions of one token cannot both succeed.
"""
from datetime import datetime, timedelta
from typing import List, Optional
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voluntold.core.audit import log_security_event
from voluntold.core.config import Settings
from voluntold.core.errors import (
    Conflict,
    InfrastructureError,
    InsufficientPermissions,
    InvalidTenant,
    InvalidToken,
    TokenExpired,
    ValidationError,
    WeakPassword,
)
from voluntold.core.logging_config import token_hint
from voluntold.core.security import generate_credential_token, get_password_hash
from voluntold.db.store import (
    consume_admin_token,
    find_unused_admin_token,
    get_profile,
    get_tenant,
    profiles_for_email,
)
from voluntold.models.admin_token import AdminToken, AdminTokenType
from voluntold.models.audit_log import AuditEventType
from voluntold.models.user_profile import ADMIN_ROLES, UserProfile, UserRole
from voluntold.schemas.admin import (
    AdminInfo,
    AdminInviteResponse,
    GenericSuccessResponse,
    SetupPasswordResponse,
    TenantInfo,
    TokenInfoResponse,
)
from voluntold.services.admin_signin import AdminPrincipal
from voluntold.services.email import EmailSender
from voluntold.services.onboarding_email import (
    build_setup_url,
    send_admin_invitation_email,
    send_password_reset_email,
)
from voluntold.utils.emails import normalize_email, require_valid_email

logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = "If an admin account with that email exists, we've sent a password reset link."

INVITABLE_ROLES = (UserRole.TENANT_ADMIN,)


def _can_invite(db: Session, requester: AdminPrincipal, tenant_id: uuid.UUID) -> bool:
    """Super admins may invite anywhere; tenant admins only into their own tenant."""
    for profile in profiles_for_email(db, requester.email, ADMIN_ROLES):
        if profile.role == UserRole.SUPER_ADMIN:
            return True
        if profile.role == UserRole.TENANT_ADMIN and profile.tenant_id == tenant_id:
            return True
    return False


def _delete_token(db: Session, token_id: uuid.UUID) -> None:
    try:
        db.query(AdminToken).filter(AdminToken.id == token_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("admin_token.compensating_delete_failed", extra={"token_id": str(token_id)})


def issue_invitation(
    db: Session,
    email_sender: EmailSender,
    settings: Settings,
    *,
    email: str,
    first_name: str,
    last_name: str,
    tenant_id: uuid.UUID,
    role: Optional[str],
    requester: AdminPrincipal,
) -> AdminInviteResponse:
    """
    Invite an administrator for a tenant.

    Creates the invitation token, then the invitee's profile without a password
    hash, then sends the setup email. If the profile cannot be written the token
    is deleted again. A failed email does not fail the invitation.
    """
    normalized_email = require_valid_email(email)
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not first_name or not last_name:
        raise ValidationError("First name and last name are required")

    try:
        invited_role = UserRole(role or UserRole.TENANT_ADMIN.value)
    except ValueError:
        raise ValidationError("Invalid role")
    if invited_role not in INVITABLE_ROLES:
        raise ValidationError("Invalid role")

    if not _can_invite(db, requester, tenant_id):
        raise InsufficientPermissions("You do not have permission to invite admins to this organization")

    existing = get_profile(db, normalized_email, tenant_id)
    if existing is not None and existing.is_admin:
        raise Conflict("An admin with this email already exists for this organization")

    tenant = get_tenant(db, tenant_id)
    if tenant is None:
        raise InvalidTenant("Organization not found")
    tenant_name = tenant.name

    token = generate_credential_token()
    admin_token = AdminToken(
        token=token,
        admin_email=normalized_email,
        tenant_id=tenant_id,
        token_type=AdminTokenType.INVITATION,
        created_by=requester.profile_id,
        expires_at=datetime.utcnow() + timedelta(days=settings.INVITATION_EXPIRES_DAYS),
    )
    try:
        db.add(admin_token)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("admin_invite.token_insert_failed", extra={"tenant_id": str(tenant_id)})
        raise InfrastructureError("Failed to create invitation") from e
    token_id = admin_token.id

    try:
        if existing is not None:
            # Elevate the member record; (email, tenant) stays unique
            existing.role = invited_role
            existing.first_name = existing.first_name or first_name
            existing.last_name = existing.last_name or last_name
            existing.password_hash = None
            elevated = True
        else:
            db.add(UserProfile(
                email=normalized_email,
                role=invited_role,
                tenant_id=tenant_id,
                first_name=first_name,
                last_name=last_name,
                password_hash=None,
            ))
            elevated = False
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("admin_invite.profile_write_failed", extra={"tenant_id": str(tenant_id)})
        _delete_token(db, token_id)
        raise InfrastructureError("Failed to create admin profile") from e

    setup_url = build_setup_url(settings.SITE_URL, token)
    email_sent = send_admin_invitation_email(
        email_sender,
        to_email=normalized_email,
        first_name=first_name,
        tenant_name=tenant_name,
        setup_url=setup_url,
        expires_days=settings.INVITATION_EXPIRES_DAYS,
    )
    if not email_sent:
        logger.warning(
            "admin_invite.email_failed",
            extra={"tenant_id": str(tenant_id), "token_hint": token_hint(token)},
        )

    logger.info(
        "admin_invite.created",
        extra={"tenant_id": str(tenant_id), "elevated_member": elevated, "token_hint": token_hint(token)},
    )
    log_security_event(
        db,
        event_type=AuditEventType.ADMIN_INVITED,
        tenant_id=tenant_id,
        profile_id=requester.profile_id,
        resource_type="admin_token",
        resource_id=str(token_id),
        details={"role": invited_role.value, "elevated_member": elevated, "email_sent": email_sent},
    )

    return AdminInviteResponse(
        success=True,
        message=f"Invitation sent to {normalized_email}" if email_sent
        else f"Invitation created for {normalized_email}, but the email could not be sent",
        invitation_url=setup_url,
        email_sent=email_sent,
    )


def _select_reset_profile(
    profiles: List[UserProfile],
    tenant_id: Optional[uuid.UUID],
) -> Optional[UserProfile]:
    """
    Pick the admin record a reset applies to. An explicit tenant wins, and
    the super admin record stands in for any tenant. Without a tenant, the
    super admin record, otherwise the oldest admin record.
    """
    super_admin = next((p for p in profiles if p.role == UserRole.SUPER_ADMIN), None)
    if tenant_id is not None:
        match = next((p for p in profiles if p.tenant_id == tenant_id), None)
        return match or super_admin
    if super_admin is not None:
        return super_admin
    return profiles[0] if profiles else None


def issue_password_reset(
    db: Session,
    email_sender: EmailSender,
    settings: Settings,
    email: str,
    tenant_id: Optional[uuid.UUID] = None,
) -> GenericSuccessResponse:
    """
    Start a password reset. The reply never depends on whether the email
    belongs to an admin, and store or email failures are swallowed after
    logging for the same reason.
    """
    normalized_email = normalize_email(email)
    if not normalized_email:
        raise ValidationError("Email is required")

    response = GenericSuccessResponse(success=True, message=PASSWORD_RESET_MESSAGE)

    try:
        profile = _select_reset_profile(profiles_for_email(db, normalized_email, ADMIN_ROLES), tenant_id)
        if profile is None:
            logger.info("password_reset.no_admin")
            return response

        token = generate_credential_token()
        admin_token = AdminToken(
            token=token,
            admin_email=normalized_email,
            tenant_id=profile.tenant_id,
            token_type=AdminTokenType.PASSWORD_RESET,
            created_by=None,
            expires_at=datetime.utcnow() + timedelta(hours=settings.PASSWORD_RESET_EXPIRES_HOURS),
        )
        db.add(admin_token)
        db.commit()
        token_id = admin_token.id
        profile_id = profile.id
        profile_tenant_id = profile.tenant_id
        first_name = profile.first_name
    except SQLAlchemyError:
        db.rollback()
        logger.exception("password_reset.store_failed")
        return response

    sent = send_password_reset_email(
        email_sender,
        to_email=normalized_email,
        first_name=first_name,
        reset_url=build_setup_url(settings.SITE_URL, token),
        expires_hours=settings.PASSWORD_RESET_EXPIRES_HOURS,
    )
    if not sent:
        logger.warning("password_reset.email_failed", extra={"token_hint": token_hint(token)})

    log_security_event(
        db,
        event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
        tenant_id=profile_tenant_id,
        profile_id=profile_id,
        resource_type="admin_token",
        resource_id=str(token_id),
        details={"email_sent": sent},
    )
    return response


def _load_valid_token(db: Session, token: str) -> AdminToken:
    admin_token = find_unused_admin_token(db, token)
    if admin_token is None:
        logger.info("admin_token.not_found", extra={"token_hint": token_hint(token)})
        raise InvalidToken("Admin token not found or already used")
    if datetime.utcnow() > admin_token.expires_at:
        logger.info("admin_token.expired", extra={"token_hint": token_hint(token)})
        raise TokenExpired()
    return admin_token


def _tenant_info(db: Session, tenant_id: Optional[uuid.UUID]) -> Optional[TenantInfo]:
    tenant = get_tenant(db, tenant_id)
    if tenant is None:
        return None
    return TenantInfo(id=tenant.id, name=tenant.name, slug=tenant.slug)


def get_token_info(db: Session, token: str) -> TokenInfoResponse:
    """Describe a valid token for the setup page without consuming it."""
    admin_token = _load_valid_token(db, token)
    profile = get_profile(db, admin_token.admin_email, admin_token.tenant_id)
    return TokenInfoResponse(
        success=True,
        token_type=admin_token.token_type.value,
        admin_info=AdminInfo(
            email=admin_token.admin_email,
            first_name=profile.first_name if profile else None,
            last_name=profile.last_name if profile else None,
        ),
        tenant=_tenant_info(db, admin_token.tenant_id),
        expires_at=admin_token.expires_at,
    )


def redeem_token(db: Session, settings: Settings, token: str, new_password: str) -> SetupPasswordResponse:
    """
    Set an admin password with an invitation or reset token and consume the
    token. The password is checked before anything is read from the store.
    """
    if len(new_password or "") < settings.PASSWORD_MIN_LENGTH:
        raise WeakPassword(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")

    admin_token = _load_valid_token(db, token)
    token_id = admin_token.id
    token_type = admin_token.token_type
    admin_email = admin_token.admin_email
    tenant_id = admin_token.tenant_id

    profile = get_profile(db, admin_email, tenant_id)
    if profile is None or not profile.is_admin:
        logger.warning("admin_token.profile_missing", extra={"token_id": str(token_id)})
        raise InvalidToken("No admin profile for token")

    consume_failed = False
    try:
        consumed = consume_admin_token(db, token_id, datetime.utcnow())
    except SQLAlchemyError:
        # The password update still goes ahead; the anomaly is logged and audited
        db.rollback()
        logger.exception("admin_token.consume_failed", extra={"token_id": str(token_id)})
        consume_failed = True
        consumed = True
    if not consumed:
        db.rollback()
        logger.info("admin_token.lost_race", extra={"token_id": str(token_id)})
        raise InvalidToken("Admin token consumed by a concurrent request")

    try:
        profile = get_profile(db, admin_email, tenant_id)
        profile.password_hash = get_password_hash(new_password)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("admin_token.password_update_failed", extra={"token_id": str(token_id)})
        raise InfrastructureError("Failed to update password") from e

    profile_id = profile.id
    if consume_failed:
        log_security_event(
            db,
            event_type=AuditEventType.TOKEN_CONSUME_FAILED,
            tenant_id=tenant_id,
            profile_id=profile_id,
            resource_type="admin_token",
            resource_id=str(token_id),
        )
    log_security_event(
        db,
        event_type=AuditEventType.ADMIN_TOKEN_REDEEMED,
        tenant_id=tenant_id,
        profile_id=profile_id,
        resource_type="admin_token",
        resource_id=str(token_id),
        details={"token_type": token_type.value},
    )

    if token_type == AdminTokenType.INVITATION:
        message = "Admin account set up successfully!"
    else:
        message = "Password reset successfully!"
    return SetupPasswordResponse(success=True, message=message, tenant=_tenant_info(db, tenant_id))

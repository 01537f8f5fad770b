"""
Passwordless member access ("magic links").

A member asks for access to one tenant's portal; we mint a short-lived,
single-use token and email a link embedding it. Redeeming the link trades
the token for a member session JWT.
"""
from datetime import datetime, timedelta
import logging
import uuid

from sqlalchemy.orm import Session

from voluntold.core.audit import log_security_event
from voluntold.core.config import Settings
from voluntold.core.errors import InvalidToken, TokenExpired
from voluntold.core.logging_config import token_hint
from voluntold.core.security import create_access_token, generate_credential_token
from voluntold.db.store import consume_member_token, find_unused_member_token, get_profile, get_tenant
from voluntold.models.audit_log import AuditEventType
from voluntold.models.member_token import MemberToken
from voluntold.schemas.admin import TenantInfo
from voluntold.schemas.member import MemberAccessResponse, MemberInfo, MemberSessionResponse
from voluntold.services.email import EmailSender
from voluntold.services.onboarding_email import build_member_access_url, send_member_access_email
from voluntold.utils.emails import require_valid_email

logger = logging.getLogger(__name__)

# Same reply whether or not the email belongs to the tenant
GENERIC_ACCESS_MESSAGE = (
    "If your email address is registered with Voluntold, you should receive an access link shortly. "
    "Please check your inbox and spam folder."
)
EMAIL_FAILED_MESSAGE = "We couldn't send your access link. Please try again."


def request_member_access(
    db: Session,
    email_sender: EmailSender,
    settings: Settings,
    email: str,
    tenant_id: uuid.UUID,
) -> MemberAccessResponse:
    """Mint a magic link for (email, tenant) and email it."""
    normalized_email = require_valid_email(email)

    profile = get_profile(db, normalized_email, tenant_id)
    tenant = get_tenant(db, tenant_id)
    if profile is None or tenant is None:
        logger.info("member_access.no_profile", extra={"tenant_id": str(tenant_id)})
        return MemberAccessResponse(success=True, message=GENERIC_ACCESS_MESSAGE)

    token = generate_credential_token()
    member_token = MemberToken(
        token=token,
        member_email=normalized_email,
        tenant_id=tenant.id,
        expires_at=datetime.utcnow() + timedelta(hours=settings.MEMBER_ACCESS_EXPIRES_HOURS),
    )
    db.add(member_token)
    db.commit()
    db.refresh(member_token)

    member_name = " ".join(n for n in (profile.first_name, profile.last_name) if n) or "Member"
    sent = send_member_access_email(
        email_sender,
        to_email=normalized_email,
        member_name=member_name,
        tenant_name=tenant.name,
        access_url=build_member_access_url(settings.SITE_URL, token),
        expires_hours=settings.MEMBER_ACCESS_EXPIRES_HOURS,
    )
    if not sent:
        # An unsent link must not stay redeemable
        logger.error(
            "member_access.email_failed",
            extra={"tenant_id": str(tenant.id), "token_hint": token_hint(token)},
        )
        db.query(MemberToken).filter(MemberToken.id == member_token.id).delete(synchronize_session=False)
        db.commit()
        return MemberAccessResponse(success=False, message=EMAIL_FAILED_MESSAGE)

    logger.info("member_access.link_sent", extra={"tenant_id": str(tenant.id), "token_hint": token_hint(token)})
    return MemberAccessResponse(
        success=True,
        message=(
            f"Access link sent! Check your email for a secure link to access your {tenant.name} member portal. "
            f"The link will expire in {settings.MEMBER_ACCESS_EXPIRES_HOURS} hours."
        ),
        organization_name=tenant.name,
    )


def redeem_member_token(db: Session, settings: Settings, token: str) -> MemberSessionResponse:
    """Consume a magic link token and open a member session."""
    member_token = find_unused_member_token(db, token)
    if member_token is None:
        raise InvalidToken("Member token not found or already used")
    if datetime.utcnow() > member_token.expires_at:
        raise TokenExpired()

    token_id = member_token.id
    email = member_token.member_email
    tenant_id = member_token.tenant_id

    if not consume_member_token(db, token_id, datetime.utcnow()):
        db.rollback()
        raise InvalidToken("Member token consumed by a concurrent request")
    db.commit()

    profile = get_profile(db, email, tenant_id)
    tenant = get_tenant(db, tenant_id)
    if profile is None or tenant is None:
        # Profile or tenant removed after the link was issued
        raise InvalidToken("Member no longer belongs to tenant")

    access_token = create_access_token(
        data={
            "sub": email,
            "profile_id": str(profile.id),
            "tenant_id": str(tenant.id),
            "role": "member",
            "scope": "member",
        },
        secret_key=settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    log_security_event(
        db,
        event_type=AuditEventType.MEMBER_ACCESS_REDEEMED,
        tenant_id=tenant.id,
        profile_id=profile.id,
        resource_type="member_token",
        resource_id=str(token_id),
    )
    return MemberSessionResponse(
        access_token=access_token,
        member=MemberInfo(email=email, first_name=profile.first_name, last_name=profile.last_name),
        tenant=TenantInfo(id=tenant.id, name=tenant.name, slug=tenant.slug),
    )

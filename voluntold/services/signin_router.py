"""
Single sign-in routing.

Turns an AccessSummary into the next step of the sign-in flow:

- no options: generic "check your email" reply, identical for unknown emails
- one option: route straight to it
- several options: ask the principal to choose, then route the chosen one

Admin options are redirected to the password sign-in page. Member options are
handed to the member access service, whose message is passed through as is.
"""
from dataclasses import dataclass
from typing import List, Optional, Union
import logging

from sqlalchemy.orm import Session

from voluntold.core.config import Settings
from voluntold.schemas.access import AccessOption, AccessSummary, AdminRedirect, SignInResponse
from voluntold.services.email import EmailSender
from voluntold.services.member_access import request_member_access
from voluntold.services.role_resolver import resolve_access
from voluntold.utils.emails import require_valid_email

logger = logging.getLogger(__name__)

GENERIC_SIGNIN_MESSAGE = (
    "If an account exists for that email, you'll receive sign-in instructions shortly."
)
ADMIN_SIGNIN_PATH = "/admin/login"


@dataclass(frozen=True)
class NoAccess:
    pass


@dataclass(frozen=True)
class SingleOption:
    option: AccessOption


@dataclass(frozen=True)
class MultipleOptions:
    options: List[AccessOption]


RouteDecision = Union[NoAccess, SingleOption, MultipleOptions]


def decide_route(summary: AccessSummary) -> RouteDecision:
    if summary.total_options == 0:
        return NoAccess()
    if summary.total_options == 1:
        return SingleOption(summary.access_options[0])
    return MultipleOptions(list(summary.access_options))


def dispatch_option(
    db: Session,
    email_sender: EmailSender,
    settings: Settings,
    email: str,
    option: AccessOption,
) -> SignInResponse:
    """Carry out the route for one chosen option."""
    if option.access_type in ("super_admin", "tenant_admin"):
        # No token and no email: the admin signs in with a password
        return SignInResponse(
            step="admin_sign_in",
            redirect=AdminRedirect(
                path=ADMIN_SIGNIN_PATH,
                email=email,
                access_type=option.access_type,
                tenant_id=option.tenant_id,
                organization_name=option.organization_name,
            ),
        )

    result = request_member_access(db, email_sender, settings, email, option.tenant_id)
    return SignInResponse(step="member_link", success=result.success, message=result.message)


def sign_in(
    db: Session,
    email_sender: EmailSender,
    settings: Settings,
    email: str,
    option_id: Optional[str] = None,
) -> SignInResponse:
    normalized_email = require_valid_email(email)
    summary = resolve_access(db, normalized_email)
    decision = decide_route(summary)

    if isinstance(decision, NoAccess):
        return SignInResponse(step="check_email", message=GENERIC_SIGNIN_MESSAGE)

    if option_id is not None:
        chosen = next((o for o in summary.access_options if o.id == option_id), None)
        if chosen is None:
            # Unknown choice answers exactly like an unknown email
            logger.info("signin.unknown_option")
            return SignInResponse(step="check_email", message=GENERIC_SIGNIN_MESSAGE)
        return dispatch_option(db, email_sender, settings, normalized_email, chosen)

    if isinstance(decision, MultipleOptions):
        return SignInResponse(
            step="select_option",
            message="Choose how you'd like to sign in.",
            options=decision.options,
        )

    return dispatch_option(db, email_sender, settings, normalized_email, decision.option)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from voluntold.api.deps import get_email_sender, get_settings
from voluntold.core.config import Settings
from voluntold.core.rate_limit import rate_limit
from voluntold.db.session import get_db
from voluntold.schemas.access import AccessSummary, CheckUserRoleRequest, SignInRequest, SignInResponse
from voluntold.services.email import EmailSender
from voluntold.services.role_resolver import resolve_access
from voluntold.services.signin_router import sign_in as route_sign_in
from voluntold.utils.emails import require_valid_email

router = APIRouter()


@router.post(
    "/check-user-role",
    response_model=AccessSummary,
    dependencies=[Depends(rate_limit("check_user_role", max_requests=30, window_seconds=60))],
)
def check_user_role(
    request_data: CheckUserRoleRequest,
    db: Session = Depends(get_db),
):
    """
    List the sign-in contexts an email holds.
    Unknown emails get the same shape with no options.
    """
    email = require_valid_email(request_data.email)
    return resolve_access(db, email)


@router.post(
    "/sign-in",
    response_model=SignInResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("sign_in", max_requests=10, window_seconds=300))],
)
def sign_in(
    request_data: SignInRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
):
    """
    Single sign-in entry point. Routes straight to the only option, asks the
    user to pick when there are several, and otherwise replies generically.
    """
    return route_sign_in(db, email_sender, settings, request_data.email, request_data.option_id)

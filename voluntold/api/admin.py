from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from voluntold.api.deps import get_client_ip, get_current_admin, get_email_sender, get_settings
from voluntold.core.config import Settings
from voluntold.core.rate_limit import rate_limit
from voluntold.db.session import get_db
from voluntold.schemas.admin import (
    AdminInviteRequest,
    AdminInviteResponse,
    AdminMe,
    AdminSignInRequest,
    AdminSignInResponse,
    GenericSuccessResponse,
    PasswordResetRequest,
    SetupPasswordRequest,
    SetupPasswordResponse,
    TokenInfoResponse,
)
from voluntold.services import admin_credentials
from voluntold.services.admin_signin import AdminPrincipal, sign_in_admin
from voluntold.services.email import EmailSender

router = APIRouter()


@router.post(
    "/sign-in",
    response_model=AdminSignInResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("admin_sign_in", max_requests=10, window_seconds=300))],
)
def admin_sign_in(
    credentials: AdminSignInRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client_ip: str = Depends(get_client_ip),
):
    """
    Password sign-in for administrators. If the admin manages more than one
    organization and tenantId is not provided, returns the organizations to
    choose from.
    """
    return sign_in_admin(
        db,
        settings,
        credentials.email,
        credentials.password,
        tenant_id=credentials.tenant_id,
        ip_address=client_ip,
    )


@router.get("/me", response_model=AdminMe)
def read_admin_me(current_admin: AdminPrincipal = Depends(get_current_admin)):
    return AdminMe(
        profile_id=current_admin.profile_id,
        email=current_admin.email,
        role=current_admin.role.value,
        tenant_id=current_admin.tenant_id,
        first_name=current_admin.first_name,
        last_name=current_admin.last_name,
    )


@router.post("/invite", response_model=AdminInviteResponse, status_code=status.HTTP_200_OK)
def invite_admin(
    invite_data: AdminInviteRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
    current_admin: AdminPrincipal = Depends(get_current_admin),
):
    """Invite an administrator to an organization (super admin or that organization's admin)."""
    return admin_credentials.issue_invitation(
        db,
        email_sender,
        settings,
        email=invite_data.email,
        first_name=invite_data.first_name,
        last_name=invite_data.last_name,
        tenant_id=invite_data.tenant_id,
        role=invite_data.role,
        requester=current_admin,
    )


@router.post(
    "/password-reset",
    response_model=GenericSuccessResponse,
    dependencies=[Depends(rate_limit("password_reset", max_requests=5, window_seconds=900))],
)
def request_password_reset(
    reset_data: PasswordResetRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
):
    return admin_credentials.issue_password_reset(
        db, email_sender, settings, reset_data.email, tenant_id=reset_data.tenant_id
    )


@router.get("/setup-password", response_model=TokenInfoResponse)
def get_setup_token_info(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Validate an invitation or reset token for the setup page. Does not consume it."""
    return admin_credentials.get_token_info(db, token)


@router.post(
    "/setup-password",
    response_model=SetupPasswordResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("setup_password", max_requests=10, window_seconds=300))],
)
def setup_password(
    setup_data: SetupPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return admin_credentials.redeem_token(db, settings, setup_data.token, setup_data.password)

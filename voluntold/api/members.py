from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from voluntold.api.deps import get_email_sender, get_settings
from voluntold.core.config import Settings
from voluntold.core.rate_limit import rate_limit
from voluntold.db.session import get_db
from voluntold.schemas.member import MemberAccessRequest, MemberAccessResponse, MemberSessionResponse
from voluntold.services.email import EmailSender
from voluntold.services.member_access import redeem_member_token, request_member_access

router = APIRouter()


@router.post(
    "/access",
    response_model=MemberAccessResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("member_access", max_requests=5, window_seconds=300))],
)
def request_access(
    access_data: MemberAccessRequest,
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
):
    """Email a one-time member portal link."""
    return request_member_access(db, email_sender, settings, access_data.email, access_data.tenant_id)


@router.post("/access/{token}", response_model=MemberSessionResponse)
def redeem_access(
    token: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return redeem_member_token(db, settings, token)

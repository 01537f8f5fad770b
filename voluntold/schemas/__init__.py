from voluntold.schemas.access import AccessOption, AccessSummary, SignInRequest, SignInResponse
from voluntold.schemas.admin import (
    AdminInviteRequest, AdminInviteResponse, AdminSignInRequest, AdminSignInResponse,
    PasswordResetRequest, SetupPasswordRequest, SetupPasswordResponse, TokenInfoResponse,
)
from voluntold.schemas.member import MemberAccessRequest, MemberAccessResponse, MemberSessionResponse

__all__ = [
    "AccessOption", "AccessSummary", "SignInRequest", "SignInResponse",
    "AdminInviteRequest", "AdminInviteResponse", "AdminSignInRequest", "AdminSignInResponse",
    "PasswordResetRequest", "SetupPasswordRequest", "SetupPasswordResponse", "TokenInfoResponse",
    "MemberAccessRequest", "MemberAccessResponse", "MemberSessionResponse",
]

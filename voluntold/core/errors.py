"""
Error taxonomy for the access core.

Services raise these; the handler registered in main.py maps them to
JSON responses of the form {"detail": public_message}.
"""
from fastapi import status


class VoluntoldError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    @property
    def detail(self) -> str:
        """Message safe to show to the caller."""
        return self.message


class ValidationError(VoluntoldError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class Unauthorized(VoluntoldError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class InsufficientPermissions(VoluntoldError):
    status_code = status.HTTP_403_FORBIDDEN
    public_message = "Insufficient permissions"


class Conflict(VoluntoldError):
    status_code = status.HTTP_409_CONFLICT
    public_message = "Conflict"


class InvalidTenant(VoluntoldError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid tenant"


class InvalidToken(VoluntoldError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid or expired token"

    @property
    def detail(self) -> str:
        # Never tell the caller which token check failed
        return InvalidToken.public_message


class TokenExpired(InvalidToken):
    public_message = "Token has expired"


class WeakPassword(VoluntoldError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Password must be at least 8 characters long"


class InfrastructureError(VoluntoldError):
    """Store or email provider failure. Detail is logged, never returned."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"

    @property
    def detail(self) -> str:
        return InfrastructureError.public_message

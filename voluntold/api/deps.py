from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from voluntold.core.config import Settings
from voluntold.core.errors import Unauthorized
from voluntold.db.session import get_db
from voluntold.services.admin_signin import AdminPrincipal, authenticate_admin_token
from voluntold.services.email import EmailSender

# auto_error=False so a missing header comes back as 401, not 403
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AdminPrincipal:
    """
    Authenticated admin behind the bearer token. 401 for a missing or invalid
    token, 403 when the token belongs to a non-admin profile.
    """
    if credentials is None:
        raise Unauthorized("Not authenticated")
    return authenticate_admin_token(db, settings, credentials.credentials)

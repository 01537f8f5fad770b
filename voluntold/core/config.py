from pydantic_settings import BaseSettings
from typing import Optional, List


def _parse_allowed_origins(v: str) -> List[str]:
    """Parse comma-separated origins string; strip whitespace; keep non-empty."""
    if not v or not v.strip():
        return []
    return [o.strip() for o in v.split(",") if o.strip()]


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/voluntold"
    AUTO_CREATE_TABLES: bool = False  # Tests and local sqlite only; production uses alembic

    # CORS: comma-separated extra origins for production (e.g. https://voluntold.net)
    # Default localhost origins are always included.
    ALLOWED_ORIGINS_EXTRA: str = ""

    def get_allowed_origins(self) -> List[str]:
        """Return CORS allowed origins: default localhost + ALLOWED_ORIGINS_EXTRA."""
        return _DEFAULT_CORS_ORIGINS + _parse_allowed_origins(self.ALLOWED_ORIGINS_EXTRA)

    # Auth
    SECRET_KEY: str = "supersecret_jwt_key_change_in_production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PASSWORD_MIN_LENGTH: int = 8

    # Token lifetimes
    INVITATION_EXPIRES_DAYS: int = 7
    PASSWORD_RESET_EXPIRES_HOURS: int = 1
    MEMBER_ACCESS_EXPIRES_HOURS: int = 2

    # Email (Resend HTTP API)
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "Voluntold <notifications@voluntold.net>"
    EMAIL_TIMEOUT_SECONDS: float = 15.0

    # Frontend origin used to build setup / magic links
    SITE_URL: str = "http://localhost:3000"

    # Rate limiting on public endpoints
    RATE_LIMIT_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Bootstrap super admin (scripts/seed_super_admin.py)
    SUPER_ADMIN_EMAIL: str = "admin@voluntold.local"
    SUPER_ADMIN_PASSWORD: str = "changeme-please"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        # Environment variables win over the .env file

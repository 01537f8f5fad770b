"""
Email address normalization.

Every lookup and insert goes through normalize_email so addresses compare
case-insensitively.
"""
import re
from typing import Optional

from voluntold.core.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: Optional[str]) -> str:
    """Normalize email for matching (lowercase, strip whitespace)"""
    if not email:
        return ""
    return email.strip().lower()


def require_valid_email(email: Optional[str]) -> str:
    """Normalize, or raise ValidationError for empty / malformed input."""
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")
    if not _EMAIL_RE.match(normalized):
        raise ValidationError("Invalid email format")
    return normalized

"""
Password hashing, random credential tokens and access JWTs.
"""
import secrets
from datetime import datetime, timedelta
from typing import Optional

import jwt
from passlib.hash import pbkdf2_sha256

ALGORITHM = "HS256"

# 32 bytes of entropy -> 43 url-safe characters
TOKEN_BYTES = 32


def get_password_hash(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False for profiles that have not set a password yet."""
    if not hashed_password:
        return False
    try:
        return pbkdf2_sha256.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a pbkdf2_sha256 hash
        return False


def generate_credential_token() -> str:
    """Unguessable single-use token for setup, reset and magic links."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def create_access_token(data: dict, secret_key: str, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> Optional[dict]:
    """Return the payload, or None if the token is malformed, forged or expired."""
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None

"""
Authentication utilities: password hashing, session JWTs and magic-link tokens
"""

import re
import jwt
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from typing import Optional
from config.settings import settings

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# JWT configuration
ALGORITHM = "HS256"
SESSION_DAYS = 7
SESSION_MAX_AGE_SECONDS = SESSION_DAYS * 24 * 60 * 60
MAGIC_LINK_PURPOSE = "magic_link"


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against its hash. Identities without a password never match."""
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def _require_secret() -> str:
    if not settings.jwt_secret_key:
        raise ValueError("JWT_SECRET_KEY is not set. Cannot sign or verify tokens.")
    return settings.jwt_secret_key


def create_jwt(user_id: str) -> str:
    """Create a session JWT for a user"""
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(days=SESSION_DAYS)
    }
    return jwt.encode(payload, _require_secret(), algorithm=ALGORITHM)


def decode_jwt(token: str):
    """Decode a session JWT. Returns None if invalid, expired, or not a session token."""
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("purpose"):
        return None
    return payload


def create_magic_link_token(identity_id: str, next_url: str, expires_minutes: Optional[int] = None) -> str:
    """
    Create a single-purpose token embedded in sign-in links.

    Args:
        identity_id: Identity the link signs in
        next_url: Where to send the browser after verification
        expires_minutes: Lifetime, defaults to MAGIC_LINK_EXPIRY_MINUTES

    Returns:
        Signed token string
    """
    minutes = expires_minutes if expires_minutes is not None else settings.magic_link_expiry_minutes
    payload = {
        "sub": identity_id,
        "purpose": MAGIC_LINK_PURPOSE,
        "next": next_url,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, _require_secret(), algorithm=ALGORITHM)


def decode_magic_link_token(token: str):
    """Decode a magic-link token. Returns None if invalid, expired, or a session token."""
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if payload.get("purpose") != MAGIC_LINK_PURPOSE:
        return None
    return payload


def validate_password_strength(password: str) -> None:
    """
    Validate a user-chosen password.

    Enforces:
    - Minimum length: 8 characters
    - At least one lowercase letter, one uppercase letter and one digit

    Raises:
        ValueError: If password does not meet strength requirements
    """
    if not password:
        raise ValueError("Password cannot be empty")
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r'[a-z]', password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r'[A-Z]', password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r'[0-9]', password):
        raise ValueError("Password must contain at least one number")

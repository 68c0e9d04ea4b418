"""Password hashing and signed bearer token management."""

import uuid
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
import bcrypt
from .config import settings


# ==================== Password Hashing ====================

def _password_bytes(password: str) -> bytes:
    # bcrypt rejects input longer than 72 bytes
    return password.encode('utf-8')[:72]


def hash_password(password: str) -> str:
    """Hash a plain text password with a per-password bcrypt salt."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a plain text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ==================== Token Management ====================

def issue_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    """Issue a signed access token whose subject is the user id."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and verify a token. Returns the claims, or None if invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str) -> uuid.UUID | None:
    """Return the user id carried by a valid token, or None.

    Bad signatures, expired tokens and subjects that are not UUIDs all
    collapse to None so callers cannot tell them apart.
    """
    claims = decode_token(token)
    if not claims:
        return None
    subject = claims.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        return uuid.UUID(subject)
    except ValueError:
        return None

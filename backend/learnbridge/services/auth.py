"""
Credentials: bcrypt password hashes and HS256 access tokens.
Tokens carry sub (user id), role and a numeric exp; nothing is stored server-side.
"""
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from learnbridge.config import settings

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 71


def _password_bytes(password: str) -> bytes:
    return (password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    if password is None:
        raise ValueError("password is required")
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False for a wrong password or a stored hash bcrypt cannot parse."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: UUID, role: str, expires_in: timedelta | None = None) -> str:
    lifetime = expires_in if expires_in is not None else timedelta(hours=settings.jwt_expire_hours)
    expires_at = datetime.now(timezone.utc) + lifetime
    claims = {"sub": str(user_id), "role": role, "exp": int(expires_at.timestamp())}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> tuple[dict | None, str | None]:
    """(claims, None) for a good token, else (None, "expired" | "invalid")."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return None, "expired"
    except JWTError:
        return None, "invalid"
    return claims, None

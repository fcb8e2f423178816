"""
Shared dependencies: current user from Bearer token, optional user for public views,
the admin gate and paging params.
"""
import logging
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.errors import AuthenticationError, AuthorizationError
from learnbridge.models.user import ROLE_ADMIN, User
from learnbridge.services.auth import decode_access_token
from learnbridge.services.queries import PageRequest

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _user_from_token(token: str, db: Session) -> User:
    payload, reason = decode_access_token(token)
    if payload is None or "sub" not in payload:
        logger.debug("Auth failed: %s token", reason or "invalid")
        raise AuthenticationError("Token expired." if reason == "expired" else "Invalid token.")
    try:
        user_id = UUID(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token.") from None
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Token is valid but user not found.")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Require valid Bearer token; return User or 401."""
    if not credentials or not (getattr(credentials, "credentials", None) or "").strip():
        logger.debug("Auth failed: no Bearer token in request")
        raise AuthenticationError("Access denied. No token provided.")
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Public routes: the caller if a valid token was sent, else None (a bad token is treated as anonymous)."""
    if not credentials or not (credentials.credentials or "").strip():
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except AuthenticationError:
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ROLE_ADMIN:
        raise AuthorizationError("Access denied. Admin privileges required.")
    return current_user


def page_params(page: int = 1, limit: int = 0) -> PageRequest:
    """?page=&limit= query params; PageRequest clamps bad values."""
    return PageRequest(page=page, limit=limit)

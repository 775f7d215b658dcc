# app/security.py
"""
Caller identity from a signed JWT bearer token.
Claims: `sub` → user id, `is_admin` (bool) or `roles` containing "admin" → admin flag.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    is_admin: bool = False


def identity_from_claims(payload: dict) -> CallerIdentity:
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )
    roles = payload.get("roles") or []
    is_admin = bool(payload.get("is_admin")) or (
        isinstance(roles, list) and "admin" in {str(r).lower() for r in roles}
    )
    return CallerIdentity(user_id=str(user_id), is_admin=is_admin)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CallerIdentity:
    if not creds or creds.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
        )
    try:
        payload = jwt.decode(creds.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return identity_from_claims(payload)


def require_admin(caller: CallerIdentity = Depends(get_current_user)) -> CallerIdentity:
    if not caller.is_admin:
        logger.warning(f"Admin-only route refused for user {caller.user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return caller


def ensure_owner_or_admin(caller: CallerIdentity, owner_id: str):
    if caller.is_admin or caller.user_id == owner_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not allowed to access this reservation",
    )


def create_access_token(user_id: str, is_admin: bool = False, expires_at=None) -> str:
    """Mint a token the API accepts. Used by the dev token script and tests."""
    claims = {"sub": user_id, "is_admin": is_admin}
    if expires_at is not None:
        claims["exp"] = expires_at
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

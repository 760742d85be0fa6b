"""
auth.py – JWT identity helpers for TestArena.

Accounts live outside this service; it only verifies bearer tokens signed
with the shared secret.  Administrators carry an ``admin`` claim.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from . import config

# ── JWT helpers ───────────────────────────────────────────────────────────────


def create_access_token(user_id: int, email: str = "", is_admin: bool = False) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=config.TOKEN_EXPIRE_DAYS)
    payload = {
        "sub":   str(user_id),
        "email": email,
        "admin": bool(is_admin),
        "exp":   expire,
    }
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None


def _user_from_payload(payload: dict) -> Optional[dict]:
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return {
        "user_id":  user_id,
        "email":    payload.get("email", ""),
        "is_admin": bool(payload.get("admin", False)),
    }


# ── FastAPI security scheme ───────────────────────────────────────────────────

_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> dict:
    """Dependency: raises HTTP 401 if token is missing or invalid.
    Returns ``{"user_id": int, "email": str, "is_admin": bool}``."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(credentials.credentials)
    user = _user_from_payload(payload) if payload else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[dict]:
    """Dependency: returns user dict if token valid, else None (no error raised)."""
    if not credentials:
        return None
    payload = decode_token(credentials.credentials)
    return _user_from_payload(payload) if payload else None


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency: raises HTTP 403 unless the token carries the admin claim."""
    if not current_user.get("is_admin"):
        raise HTTPException(status_code=403, detail="Admin access required.")
    return current_user

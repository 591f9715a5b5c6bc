"""Bearer token helpers (JWT issue/decode)."""

from datetime import timedelta
from typing import Optional
import jwt

from app.core.clock import utc_now
from app.core.config import get_settings

settings = get_settings()

USER_ROLES = ("customer", "mechanic")


def create_access_token(user_id: str, role: str, name: Optional[str] = None) -> str:
    """Issue an access token for a marketplace user."""
    expire = utc_now() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "role": role,
        "name": name,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

    if payload.get("role") not in USER_ROLES:
        return None
    return payload

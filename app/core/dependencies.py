"""
Common dependencies for FastAPI routes.
"""

from datetime import datetime
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.clock import utc_now
from app.core.exceptions import UnauthorizedException
from app.core.security import decode_token

# HTTP Bearer token security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.
    Returns user dict with 'id', 'role' and 'name'.
    """
    payload = decode_token(credentials.credentials)

    if not payload:
        raise UnauthorizedException("Invalid or expired token")

    return {
        "id": payload["sub"],
        "role": payload["role"],
        "name": payload.get("name"),
    }


def get_clock() -> Callable[[], datetime]:
    """Time provider injected into services; overridden in tests."""
    return utc_now

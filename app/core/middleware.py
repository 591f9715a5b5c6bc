"""Shared FastAPI middleware."""

from __future__ import annotations

import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class MaxBodySizeMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than MAX_REQUEST_BODY_BYTES (job payloads are small JSON)."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        limit = int(get_settings().MAX_REQUEST_BODY_BYTES)

        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            logger.warning(f"Rejected {request.method} {request.url.path}: declared body {declared} bytes")
            return JSONResponse({"detail": "Payload too large."}, status_code=413)

        if request.method in ("POST", "PUT", "PATCH"):
            # Starlette caches request.body() so handlers can still read it.
            body = await request.body()
            if len(body) > limit:
                logger.warning(f"Rejected {request.method} {request.url.path}: body {len(body)} bytes")
                return JSONResponse({"detail": "Payload too large."}, status_code=413)

        return await call_next(request)

"""
Custom application exceptions.

Domain errors raised by the job and conversation core extend AppException so
routes can let them propagate and FastAPI renders the matching status code.
"""

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundException(AppException):
    """Resource not found exception (unknown job, vehicle or conversation)."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class UnauthorizedException(AppException):
    """Missing, invalid or expired bearer token."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(AppException):
    """Authenticated but not allowed to act on the resource."""

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN)


class ValidationException(AppException):
    """Malformed input, e.g. a participant pair without two distinct ids."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class InvalidTransitionException(AppException):
    """Requested job status edge is not in the adjacency table."""

    def __init__(self, current_status: str, requested_status: str, detail: str = None):
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            detail=detail or f"Cannot move job from '{current_status}' to '{requested_status}'",
            status_code=status.HTTP_409_CONFLICT,
        )


class ConversationUnavailableException(AppException):
    """Conversation store could not be reached during find-or-create."""

    def __init__(self, detail: str = "Conversation service unavailable"):
        super().__init__(detail=detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class JobStoreUnavailableException(AppException):
    """Job store could not be reached."""

    def __init__(self, detail: str = "Job service unavailable"):
        super().__init__(detail=detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

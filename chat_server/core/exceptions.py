"""
Domain errors raised by the service layer.

Every error is an HTTPException so routers can let it propagate unchanged;
the application handler renders it as {"detail": ..., "code": ...}.
"""
from typing import Optional

from fastapi import HTTPException, status


class ChatException(HTTPException):
    """Base class for all domain errors."""

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
        )


class UnauthenticatedError(ChatException):
    """No caller identity is present."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(ChatException):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ForbiddenError(ChatException):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Forbidden"


class BadRequestError(ChatException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_detail = "Invalid request"


class ConflictError(ChatException):
    status_code_default = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Conflicting state"


class DuplicateRequestError(ConflictError):
    code = "duplicate_request"
    default_detail = "Friend request already sent"


class ReverseRequestExistsError(ConflictError):
    code = "reverse_request_exists"
    default_detail = "This user has already sent you a friend request"


class AlreadyFriendsError(ConflictError):
    code = "already_friends"
    default_detail = "Already friends"


class AlreadyProcessedError(ConflictError):
    code = "already_processed"
    default_detail = "Request already processed"

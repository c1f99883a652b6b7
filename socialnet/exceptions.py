"""
Error taxonomy raised by the services.

The transport maps each class to its ``status_code``; the services never
return placeholders in place of an authorization failure.
"""
from typing import Optional

from fastapi import status


class SocialNetworkError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)


class NotFoundError(SocialNetworkError):
    """Resource is absent or not visible to the actor."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"

    def __init__(self, model: Optional[str] = None):
        message = f"Not found. Couldn't find {model}" if model else None
        super().__init__(message, code="NOT_FOUND")


class ForbiddenError(SocialNetworkError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden. You are not allowed to perform this action"


class ConflictError(SocialNetworkError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"

    def __init__(self, code: Optional[str] = None):
        super().__init__(f"Conflict. {code}" if code else None, code=code)


class ValidationError(SocialNetworkError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation Error"


class UnauthorizedError(SocialNetworkError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized. You must login to access this content."

"""API exceptions with a stable error body.

Every error raised by the services reaches the client as::

    {"detail": {"error": {"code": "...", "message": "...", "details": {...}}}}

so the presentation layer can tell a missing entity from an ownership
violation or an invariant conflict without parsing messages.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class APIException(HTTPException):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            status_code=status_code,
            detail={"error": {"code": code, "message": message, "details": details}},
        )
        self.code = code
        self.message = message
        self.details = details


class NotFoundError(APIException):
    """The referenced entity id is unknown."""

    def __init__(self, resource: str, resource_id: Any = None) -> None:
        message = f"{resource} not found"
        if resource_id is not None:
            message += f" (ID: {resource_id})"
        super().__init__(
            code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ForbiddenError(APIException):
    """The entity belongs to another user."""

    def __init__(self, message: str = "Not authorized to access this resource") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
        )


class ConflictError(APIException):
    """The operation would break a tracking invariant (double start, double stop)."""

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class ValidationError(APIException):
    """A required field is missing or malformed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=422,
            details=details,
        )

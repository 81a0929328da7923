"""Custom exception hierarchy for the program administration API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class EmptyResultError(AppError):
    """Raised when the parent resource of a request does not exist.

    Rendered as ``204 No Content`` rather than 404 on the endpoints that
    follow the empty-result convention.
    """

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(message=f"{resource} not found", code="NO_CONTENT", status_code=204)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message=message, code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "Forbidden") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class ValidationError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=400)


class InvalidStateError(AppError):
    """Raised when an action targets an entity in a terminal state."""

    def __init__(self, reason: str = "Already decided") -> None:
        super().__init__(message=reason, code="INVALID_STATE", status_code=400)

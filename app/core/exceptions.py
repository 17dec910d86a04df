"""
Typed errors for authorization & administration.

Every error is an `HTTPException` subclass, so services and guards can
raise them directly and FastAPI renders them as `{"detail": ...}`
without a custom handler.  Callers that need to tell the kinds apart
(tests, non-HTTP code) catch the concrete class.
"""

from typing import Any

from fastapi import HTTPException, status


class NotAuthenticated(HTTPException):
    """No resolved principal where one is required."""

    def __init__(self, detail: str = "You must be logged in to access this resource"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    """Authenticated, but the required permission is not satisfied."""

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You don't have permission: {permission}",
        )


class NotFound(HTTPException):
    def __init__(self, entity: str, entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found",
        )


class InvalidPermission(HTTPException):
    """A permission string outside the catalog was offered for grant/revoke."""

    def __init__(self, permission: Any):
        self.permission = permission
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid permission: {permission}",
        )


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class SystemRoleViolation(Conflict):
    """Attempt to rename or delete a system role."""


class BadRequest(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ServiceUnavailable(HTTPException):
    """Generic operational failure.  Never carries storage internals."""

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

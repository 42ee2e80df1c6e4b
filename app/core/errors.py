"""Error taxonomy shared by services and the HTTP layer.

Services raise these; app.main registers a handler that turns them into
``{"detail": message}`` responses with the matching status code.
"""

from typing import ClassVar


class AppError(Exception):
    """Base error carrying a user-safe message and the HTTP status it maps to."""

    kind: ClassVar[str] = "internal"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced user, role, permission or template does not exist."""

    kind = "not_found"
    status_code = 404


class ValidationFailedError(AppError):
    """Malformed input or a guard-policy rejection; correctable by the client."""

    kind = "validation"
    status_code = 400


class ConflictError(AppError):
    """Uniqueness violation (email, role name, permission name, template name)."""

    kind = "conflict"
    status_code = 409


class UnauthorizedError(AppError):
    """Token missing, malformed, expired, or signed with the wrong key."""

    kind = "unauthorized"
    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but resolved roles/permissions do not satisfy the route."""

    kind = "forbidden"
    status_code = 403


class InternalError(AppError):
    """Storage or other unexpected failure; message is generic."""

    kind = "internal"
    status_code = 500

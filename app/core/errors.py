# app/core/errors.py
"""
Domain error taxonomy.

Services raise these; `app.main` turns every one of them into the
`{"success": false, "error": "..."}` envelope with the matching HTTP status.
Messages are user-facing. Internal details never go into `message`; they
belong in the server log.
"""

from fastapi import status


class DomainError(Exception):
    """Base class for every failure a request handler may report."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or out-of-range input. Always user-correctable."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"


class AuthorizationError(DomainError):
    """
    Caller lacks the required role or does not own the resource.

    The message stays generic so it never reveals whether the resource exists.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class AuthenticationError(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class NotServicedError(DomainError):
    """Delivery is not offered to the requested city."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Delivery is not available for this city"


class ConflictError(DomainError):
    """Unique-constraint style conflicts (slug taken, slug already changed)."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict with existing data"


class DependencyError(DomainError):
    """The identity service or the database failed. Details are only logged."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "An unexpected error occurred, please try again"


def is_unique_violation(exc: BaseException) -> bool:
    """
    True if `exc` (usually sqlalchemy IntegrityError) is a unique-key violation.

    Postgres reports SQLSTATE 23505; SQLite only has the message text.
    """
    orig = getattr(exc, "orig", exc)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23505":
        return True
    text = str(orig).lower()
    return "unique" in text or "duplicate key" in text

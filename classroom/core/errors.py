"""Service-level errors.

Services raise these; the API layer maps them to HTTP responses
(see ``classroom.main``).
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class NotFoundError(ServiceError):
    """A referenced student, course, project or enrollment does not exist."""

    def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{entity.capitalize()} not found with ID: {entity_id}",
            code=f"{entity}_not_found",
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ServiceError):
    """A business rule forbids the requested transition.

    ``code`` is a stable machine-readable reason such as ``already_enrolled``
    or ``wrong_course``.
    """


class ForbiddenError(ServiceError):
    """The actor is not allowed to perform the operation."""

    def __init__(self, message: str = "Access denied. You don't have permission to perform this action"):
        super().__init__(message, code="forbidden")


class InternalError(ServiceError):
    """Unexpected storage failure. The message is safe to show to clients."""

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message, code="internal_error")

"""
Domain error hierarchy.

Handlers raise these to report a business-rule violation.  Every error
carries a stable ``ErrorKind`` so the transport can render a consistent
status code and body without inspecting messages.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"


class ConduitError(Exception):
    """Base exception for all Conduit domain errors."""

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class NotFoundError(ConduitError):
    """A referenced article, comment or person does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key!r} not found", {entity.lower(): "not found"})


class ForbiddenError(ConduitError):
    """The caller does not own the resource it tries to mutate."""

    kind = ErrorKind.FORBIDDEN
    status_code = 403

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(
            f"Not allowed to modify {entity.lower()} {key!r}",
            {entity.lower(): "forbidden"},
        )


class ValidationError(ConduitError):
    """Input violates a business validation rule."""

    kind = ErrorKind.VALIDATION
    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, {field: message} if field else {})

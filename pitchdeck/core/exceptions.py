"""Domain errors raised by the core services.

The transport layer maps each class to its HTTP status in one place
(see ``pitchdeck.main``); services never build HTTP responses themselves.
"""

from typing import Optional

from fastapi import status


class PitchdeckError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(PitchdeckError):
    """A referenced presentation, version, session or template is absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(PitchdeckError):
    """The presented token does not grant the requested access."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Invalid token"


class ExpiredError(PitchdeckError):
    """The token is valid but the version's access window has closed."""

    status_code = status.HTTP_410_GONE
    default_detail = "This version has expired"


class ConflictError(PitchdeckError):
    """A write kept losing to concurrent writers and was given up."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Concurrent update, please retry"


class ValidationError(PitchdeckError):
    """Input is well-formed JSON but cannot be applied."""

    status_code = 422
    default_detail = "Validation error"

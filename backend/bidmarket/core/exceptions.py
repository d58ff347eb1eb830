"""Domain errors raised by the auction services.

Every error is an expected business outcome. Each kind maps to its own HTTP
status, and each raise site picks a machine-readable code so clients can tell
"deadline passed" apart from "already bid" or "not your request".
"""

from fastapi import status


class MarketplaceError(ValueError):
    """Base class for auction domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "MARKETPLACE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ForbiddenError(MarketplaceError):
    """Role or ownership check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class InvalidStateError(MarketplaceError):
    """Operation is not legal in the entity's current lifecycle state."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "INVALID_STATE"


class ConflictError(MarketplaceError):
    """Uniqueness violation."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class InvalidInputError(MarketplaceError):
    """Malformed input that passed schema validation but is still unusable."""

    status_code = 422
    default_code = "VALIDATION_ERROR"

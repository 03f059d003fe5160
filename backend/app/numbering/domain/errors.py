class DomainError(Exception):
    """Base domain error with a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFound(DomainError):
    """Raised when a required entity is missing."""


class InvalidRequest(DomainError):
    """Raised when the request is not in a valid state."""


class UnresolvedDate(DomainError):
    """Raised when the target's supervision date is absent from the collection."""


class OutOfRange(DomainError):
    """Raised when a sequence part cannot be represented by the number format."""


class InvalidMonth(DomainError):
    """Raised when a month is outside 1..12."""


class InvalidDate(DomainError):
    """Raised when a supervision date is malformed."""


class NumberCollision(DomainError):
    """Raised when recalculation would issue a number that is already taken."""

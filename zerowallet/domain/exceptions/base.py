"""Base domain exceptions."""


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class InvalidArgumentException(DomainException):
    """Raised when input is malformed or contradictory."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_ARGUMENT",
        )


class NotFoundException(DomainException):
    """Raised when a requested resource does not exist."""


class DuplicateResourceException(DomainException):
    """Raised when a uniqueness constraint would be violated."""

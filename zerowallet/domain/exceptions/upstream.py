"""Store and relayer failure exceptions."""

from .base import DomainException


class UpstreamException(DomainException):
    """
    Raised when a collaborator (store or relayer) fails.

    Carries the failed operation and the key of the entity involved.
    Credentials never appear in the message.
    """

    def __init__(
        self,
        operation: str,
        entity_key: str,
        message: str | None = None,
        code: str = "UPSTREAM_ERROR",
    ):
        super().__init__(
            message=message or f"{operation} failed for {entity_key}",
            code=code,
        )
        self.operation = operation
        self.entity_key = entity_key


class StoreException(UpstreamException):
    """Raised when a persistence operation fails."""

    def __init__(self, operation: str, entity_key: str):
        super().__init__(
            operation=operation,
            entity_key=entity_key,
            message=f"Store operation {operation} failed for {entity_key}",
            code="STORE_ERROR",
        )


class RelayerException(UpstreamException):
    """Raised when the relayer returns an error."""

    def __init__(
        self,
        operation: str,
        entity_key: str,
        status_code: int | None = None,
        message: str | None = None,
    ):
        detail = f" (status {status_code})" if status_code is not None else ""
        super().__init__(
            operation=operation,
            entity_key=entity_key,
            message=message
            or f"Relayer operation {operation} failed for {entity_key}{detail}",
            code="RELAYER_ERROR",
        )
        self.status_code = status_code


class RelayerTimeoutException(RelayerException):
    """Raised when the relayer times out."""

    def __init__(self, operation: str, entity_key: str):
        super().__init__(
            operation=operation,
            entity_key=entity_key,
            message=f"Relayer operation {operation} timed out for {entity_key}",
        )
        self.code = "RELAYER_TIMEOUT"


class RelayerUnavailableException(RelayerException):
    """Raised when a gas tank's relayer handshake never completed."""

    def __init__(self, operation: str, entity_key: str):
        super().__init__(
            operation=operation,
            entity_key=entity_key,
            message=f"Relayer is not connected for {entity_key}; cannot {operation}",
        )
        self.code = "RELAYER_UNAVAILABLE"

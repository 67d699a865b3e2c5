"""Domain exceptions."""
from regimepulse.domain.exceptions.domain_errors import (
    DomainError,
    DataFetchError,
    StreamDisconnectError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "DataFetchError",
    "StreamDisconnectError",
    "ValidationError",
]

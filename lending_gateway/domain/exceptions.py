"""Domain-specific exceptions and the error taxonomy"""

from enum import Enum
from typing import Any, Dict, Optional

GENERIC_RETRY_MESSAGE = "A temporary error occurred. Please try again later."


class ErrorKind(str, Enum):
    """Failure categories that cross every layer unchanged"""

    VALIDATION = "VALIDATION"  # caller input is wrong, never retried
    AUTH = "AUTH"  # credential/authorization failure, never retried
    NETWORK = "NETWORK"  # transient backend failure
    SERVER = "SERVER"  # backend-reported failure


class LendingError(Exception):
    """Single domain exception; behaviour is driven by `kind`, not by subclassing"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.SERVER,
        retryable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.retryable = retryable
        self.details = details or {}

    @property
    def is_retryable(self) -> bool:
        if self.kind in (ErrorKind.VALIDATION, ErrorKind.AUTH):
            return False
        return self.retryable

    @property
    def user_message(self) -> str:
        """Message safe to show an end user"""
        if self.kind in (ErrorKind.VALIDATION, ErrorKind.AUTH):
            return self.message
        return GENERIC_RETRY_MESSAGE

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


def validation_error(message: str, **details: Any) -> LendingError:
    return LendingError(message, ErrorKind.VALIDATION, details=details)

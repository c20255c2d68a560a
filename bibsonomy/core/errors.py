"""
Error Handling Module
---------------------
Typed errors for BibSonomy API calls.

Two outcome kinds only:
- NETWORK: the request never produced an HTTP response
- STATUS: the server answered with a non-2xx status
No retry policy here; the caller decides.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import logging


class ErrorKind(Enum):
    """Classification of a failed API call."""
    NETWORK = "network"   # Transport-level failure (DNS, refused, timeout)
    STATUS = "status"     # Non-2xx HTTP response


@dataclass
class BibSonomyError:
    """
    Structured error delivered to failure callbacks.

    Status errors keep the exact status code and the raw response body
    so the caller can inspect what the server said.
    """
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
    response: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def network(cls, exception: Optional[Exception] = None) -> "BibSonomyError":
        """Create a network error, optionally from the transport exception."""
        details = None
        if exception is not None:
            details = {
                "exception": type(exception).__name__,
                "reason": str(exception),
            }
        return cls(
            kind=ErrorKind.NETWORK,
            message="A network error occurred.",
            details=details,
        )

    @classmethod
    def status(
        cls,
        status_code: int,
        response: Optional[str],
        details: Optional[Dict[str, Any]] = None
    ) -> "BibSonomyError":
        """Create an error for a response whose status is not OK."""
        return cls(
            kind=ErrorKind.STATUS,
            message=f"Response status not OK: {status_code}",
            status_code=status_code,
            response=response,
            details=details,
        )

    @property
    def is_network(self) -> bool:
        return self.kind == ErrorKind.NETWORK

    @property
    def is_status(self) -> bool:
        return self.kind == ErrorKind.STATUS

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping in the shape the web API clients pass around."""
        result: Dict[str, Any] = {"type": self.kind.value, "msg": self.message}
        if self.kind == ErrorKind.STATUS:
            result["status"] = self.status_code
            result["response"] = self.response
        return result

    def __repr__(self) -> str:
        if self.status_code is not None:
            return f"BibSonomyError({self.kind.value}: {self.status_code})"
        return f"BibSonomyError({self.kind.value}: {self.message})"


class BibSonomyClientError(Exception):
    """Base class for errors raised before a request is sent."""


class PostValidationError(BibSonomyClientError, ValueError):
    """Raised when a post does not carry exactly one resource payload."""

    def __init__(self, message: str, post: Optional[Dict[str, Any]] = None):
        self.post = post
        super().__init__(message)


class ConfigurationError(BibSonomyClientError):
    """Raised when the client cannot be configured (e.g. no API key)."""

    def __init__(self, message: str, key: str = ""):
        self.key = key
        super().__init__(message)


def log_error(logger: logging.Logger, error: BibSonomyError) -> None:
    """Log an API error with a level matching its kind."""
    if error.kind == ErrorKind.NETWORK:
        logger.error(f"NETWORK: {error.message}", extra={"details": error.details})
    else:
        logger.warning(
            f"STATUS: {error.message}",
            extra={"status_code": error.status_code},
        )

"""
Error taxonomy for the Solana portfolio engine.

Fatal errors (invalid address, unavailable balance/price) abort a snapshot.
Every other failure is caught by the orchestrator and recorded against the
section of the snapshot it emptied, using the error's ``code``.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes surfaced to callers."""

    # General errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"

    # Provider errors
    RPC_ERROR = "RPC_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Data errors
    DATA_PARSING_ERROR = "DATA_PARSING_ERROR"


class ErrorResponse(BaseModel):
    """Serializable error description."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class PortfolioError(Exception):
    """Base exception for all engine errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new engine error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return ErrorResponse(code=self.code.value, message=self.message, details=self.details).model_dump()


class InvalidAddressError(PortfolioError):
    """Raised when an account or mint identifier is not a valid base58 address."""

    def __init__(self, address: Any):
        super().__init__(
            message=f"Invalid Solana address: {address}",
            code=ErrorCode.VALIDATION_ERROR,
            details={"address": str(address)}
        )
        self.address = address


class ProviderError(PortfolioError):
    """A provider answered, but not with something usable."""

    def __init__(
        self,
        message: str,
        provider: str,
        code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details["provider"] = provider
        super().__init__(message=message, code=code, details=details)
        self.provider = provider


class SolanaRpcError(ProviderError):
    """Exception raised when a Solana JSON-RPC request fails."""

    def __init__(self, message: str, error_data: Optional[Dict[str, Any]] = None, provider: str = "solana-rpc"):
        """Initialize the exception.

        Args:
            message: Error message
            error_data: Optional error data from the RPC response
            provider: Name of the endpoint that failed
        """
        super().__init__(message, provider=provider, code=ErrorCode.RPC_ERROR, details={"error": error_data})
        self.error_data = error_data or {}


class RateLimitError(ProviderError):
    """The provider rejected the call because of rate limiting."""

    def __init__(self, message: str, provider: str, retry_after: Optional[float] = None):
        super().__init__(message, provider=provider, code=ErrorCode.RATE_LIMITED,
                         details={"retry_after": retry_after})
        self.retry_after = retry_after


class SchemaMismatchError(ProviderError):
    """A provider payload did not match the expected response schema."""

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider=provider, code=ErrorCode.DATA_PARSING_ERROR)


class DeadlineExceededError(PortfolioError):
    """An operation did not finish within its deadline."""

    def __init__(self, operation: str, limit: Optional[float] = None):
        limit_text = f" after {limit}s" if limit is not None else ""
        super().__init__(
            message=f"Operation timed out{limit_text}: {operation}",
            code=ErrorCode.TIMEOUT,
            details={"operation": operation, "limit": limit}
        )
        self.operation = operation
        self.limit = limit


class SnapshotUnavailableError(PortfolioError):
    """A phase every other phase depends on failed; no snapshot can be built."""

    def __init__(self, message: str, phase: str):
        super().__init__(message=message, code=ErrorCode.SERVICE_UNAVAILABLE, details={"phase": phase})
        self.phase = phase


class LayoutError(PortfolioError):
    """Raw account bytes do not satisfy the expected fixed layout."""

    def __init__(self, message: str, expected_size: int, actual_size: int):
        super().__init__(
            message=message,
            code=ErrorCode.DATA_PARSING_ERROR,
            details={"expected_size": expected_size, "actual_size": actual_size}
        )


def error_code_of(error: BaseException) -> ErrorCode:
    """Classify any exception into an ``ErrorCode``."""
    if isinstance(error, PortfolioError):
        return error.code
    if isinstance(error, TimeoutError):
        return ErrorCode.TIMEOUT
    return ErrorCode.UNKNOWN_ERROR

"""
Custom exceptions for the harvest pipeline with structured error context.

This module provides the exception hierarchy used throughout the harvester.
Each exception carries context information for debugging and for the
structured log lines emitted by the runner.

Exception Hierarchy:
    HarvestError (base)
    ├── CatalogError
    │   ├── CatalogRequestError
    │   └── CatalogResponseError
    ├── LoadError
    │   ├── DatabaseError
    │   └── UpsertError
    ├── SetupError (fatal, never retried)
    │   ├── ConfigurationError
    │   └── ConnectionSetupError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class HarvestError(Exception):
    """
    Root of the harvester's errors.

    Attributes:
        message: What went wrong, in one line
        context: Where it went wrong (collection, locale, table, url, ...)
        original_exception: Lower-level error this one wraps, if any
    """

    retryable = True

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.original_exception = original_exception
        self.occurred_at = datetime.now(timezone.utc)
        if original_exception is not None:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append(" ".join(f"{key}={value!r}" for key, value in self.context.items()))
        if self.original_exception is not None:
            parts.append(f"caused by {type(self.original_exception).__name__}: {self.original_exception}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the error for log records and the run's failure list"""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context,
            "occurred_at": self.occurred_at.isoformat(),
            "cause": repr(self.original_exception) if self.original_exception is not None else None,
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(HarvestError):
    """Transient failure: timeouts, HTTP 429, HTTP 5xx."""
    retryable = True


class NonRetryableError(HarvestError):
    """
    Permanent failure the retry runner re-raises on the spot.

    Covers HTTP 401/403/404, undecodable payloads, broken preconditions and
    setup failures.
    """
    retryable = False


class PreconditionError(NonRetryableError, ValueError):
    """
    Raised when a caller breaks a precondition: a non-positive chunk size,
    column arrays of different lengths, an invalid retry policy.
    """
    pass


# ============================================================================
# Catalog Errors
# ============================================================================

class CatalogError(HarvestError):
    """Base exception for catalog service failures."""
    pass


class CatalogRequestError(CatalogError):
    """
    Exception raised when a catalog request fails.

    Context should include:
        - url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass


class CatalogResponseError(NonRetryableError, CatalogError):
    """
    Exception raised when a catalog response cannot be decoded.

    Context should include:
        - url: The endpoint that answered
        - response_body: Response body (truncated)
    """
    pass


class NetworkError(RetryableError, CatalogRequestError):
    """Network errors, timeouts and 5xx answers."""
    pass


class RateLimitError(RetryableError, CatalogRequestError):
    """Rate limiting errors (HTTP 429)."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, CatalogRequestError):
    """Authentication failures (HTTP 401, 403)."""
    pass


class ResourceNotFoundError(NonRetryableError, CatalogRequestError):
    """Unknown collection or endpoint (HTTP 404)."""
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(HarvestError):
    """Base exception for data loading failures."""
    pass


class DatabaseError(LoadError):
    """
    Exception raised when database operations fail.

    Context should include:
        - operation: Type of database operation (INSERT, UPSERT)
        - table_name: Name of the table
    """
    pass


class UpsertError(DatabaseError):
    """
    Exception raised when a bulk upsert fails.

    Context should include:
        - table_name: Target table
        - rows: Number of logical rows in the statement
        - language / market: Locale of the batch
    """
    pass


# ============================================================================
# Setup Errors
# ============================================================================

class SetupError(NonRetryableError):
    """Failures before the first phase starts. The run cannot continue."""
    pass


class ConfigurationError(SetupError):
    """Invalid or unreadable configuration."""
    pass


class ConnectionSetupError(SetupError, DatabaseError):
    """The store could not be reached when the run started."""
    pass

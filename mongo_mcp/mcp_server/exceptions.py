"""Exception hierarchy for the Mongo MCP server.

Two families of errors exist in this server:

1. **Protocol errors** are raised with ``mcp.shared.exceptions.McpError`` and an
   ``ErrorData`` code (``METHOD_NOT_FOUND``, ``INVALID_PARAMS``,
   ``INTERNAL_ERROR``). They describe a malformed or unknown tool call and are
   handed to the caller as-is. They are not defined here.

2. **Server errors** defined in this module describe failures on our side of
   the protocol:

   - ``StoreError`` and its subclasses: MongoDB rejected the operation or the
     connection could not be established. The dispatcher logs them and
     re-surfaces them as ``INTERNAL_ERROR`` carrying the underlying message.
   - ``StartupError``: the server cannot start (missing connection string,
     transport failure). Terminates the process.

All server errors carry structured metadata:

- error_code: Machine-readable identifier (e.g., "STORE_CONNECTION_FAILED")
- message: Human-readable description
- details: Additional context (collection, operation, ...)
- timestamp / request_id: For correlating log lines
- original_exception: The driver exception that caused the error

Exceptions are immutable (frozen dataclass).

Usage Example:
--------------
```python
try:
    collection.insert_one(document)
except pymongo.errors.PyMongoError as e:
    raise convert_to_store_error(
        e, context={"collection": "users", "operation": "insertOne"}
    ) from e
```
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pymongo import errors as pymongo_errors

# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================


@dataclass(frozen=True)
class MongoMCPError(Exception):
    """Base exception for all server-side errors.

    Attributes:
    -----------
    message : str
        Human-readable error description for logs and error responses
    error_code : str
        Machine-readable error identifier
    details : dict
        Additional context about the error
    timestamp : str
        ISO 8601 timestamp when the error occurred
    request_id : str
        Unique identifier for correlating log lines of one failure
    original_exception : Optional[Exception]
        The underlying exception that caused this error
    """

    message: str
    error_code: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = field(default_factory=lambda: str(uuid4()))
    original_exception: Exception | None = None

    def __str__(self) -> str:
        """Human-readable error representation for logs."""
        error_msg = f"[{self.error_code}] {self.message}"
        if self.details:
            error_msg += f" | Details: {self.details}"
        if self.original_exception:
            error_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: {self.original_exception}"
            )
        return error_msg

    def __repr__(self) -> str:
        """Developer-friendly representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"request_id='{self.request_id}', "
            f"timestamp='{self.timestamp}'"
            f")"
        )

    @property
    def cause_message(self) -> str:
        """Message of the underlying exception, or our own message if there is none.

        This is what the caller sees inside the ``INTERNAL_ERROR`` response.
        """
        if self.original_exception is not None:
            return str(self.original_exception)
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
        --------
        dict with keys: error, error_code, details, timestamp, request_id
        and, when available, original_error
        """
        error_dict = {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp,
            "request_id": self.request_id,
        }

        if self.original_exception:
            error_dict["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
                "traceback": traceback.format_exception(
                    type(self.original_exception),
                    self.original_exception,
                    self.original_exception.__traceback__,
                ),
            }

        return error_dict


# =============================================================================
# STORE EXCEPTIONS
# =============================================================================
# None of these are retried. A call is a single attempt.


@dataclass(frozen=True)
class StoreError(MongoMCPError):
    """Base class for all MongoDB-side failures."""

    error_code: str = "STORE_ERROR"


@dataclass(frozen=True)
class StoreConnectionError(StoreError):
    """The client could not reach the deployment.

    Use Case:
    ---------
    - Server unreachable or server selection timed out
    - Authentication failure encoded in the connection string
    - Malformed connection string
    """

    error_code: str = "STORE_CONNECTION_FAILED"


@dataclass(frozen=True)
class StoreOperationError(StoreError):
    """The server rejected the operation.

    Use Case:
    ---------
    - Unknown query or update operator (e.g. ``$badOp``)
    - Update document without operators
    - Invalid option values
    """

    error_code: str = "STORE_OPERATION_FAILED"


@dataclass(frozen=True)
class StoreTimeoutError(StoreError):
    """The operation exceeded ``maxTimeMS`` or a network timeout."""

    error_code: str = "STORE_TIMEOUT"


@dataclass(frozen=True)
class StoreIntegrityError(StoreError):
    """Write violated a unique index (duplicate key)."""

    error_code: str = "STORE_INTEGRITY_ERROR"


# =============================================================================
# STARTUP EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class StartupError(MongoMCPError):
    """The server cannot start.

    Use Case:
    ---------
    - Connection string missing from the command line
    - stdio transport could not be established

    These crash the process with a non-zero exit status.
    """

    error_code: str = "STARTUP_FAILED"


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def convert_to_store_error(
    exception: Exception,
    context: dict[str, Any] | None = None,
) -> StoreError:
    """Convert a driver exception to the matching ``StoreError`` subclass.

    Order matters: ``DuplicateKeyError`` and ``ExecutionTimeout`` both inherit
    from ``OperationFailure``, and ``NetworkTimeout`` inherits from
    ``ConnectionFailure``, so the specific checks run first.

    Args:
    -----
    exception : Exception
        The original exception to convert
    context : dict, optional
        Additional context to include in error details

    Returns:
    --------
    StoreError or subclass

    Example:
    --------
    >>> try:
    ...     collection.find(query).to_list()
    ... except Exception as e:
    ...     raise convert_to_store_error(e, context={"collection": "users"})
    """
    context = context or {}

    if isinstance(exception, StoreError):
        return exception

    details = {**context, "error": str(exception)}

    if isinstance(exception, pymongo_errors.DuplicateKeyError):
        return StoreIntegrityError(
            message="Duplicate key",
            details=details,
            original_exception=exception,
        )

    if isinstance(exception, (pymongo_errors.ExecutionTimeout, pymongo_errors.NetworkTimeout)):
        return StoreTimeoutError(
            message="Database operation timed out",
            details=details,
            original_exception=exception,
        )

    if isinstance(
        exception,
        (
            pymongo_errors.ConnectionFailure,
            pymongo_errors.ServerSelectionTimeoutError,
            pymongo_errors.ConfigurationError,
            pymongo_errors.InvalidURI,
        ),
    ):
        return StoreConnectionError(
            message="Failed to connect to database",
            details=details,
            original_exception=exception,
        )

    if isinstance(exception, pymongo_errors.PyMongoError):
        return StoreOperationError(
            message="Database operation failed",
            details=details,
            original_exception=exception,
        )

    return StoreError(
        message="Unexpected error during database operation",
        details={**details, "error_type": type(exception).__name__},
        original_exception=exception,
    )

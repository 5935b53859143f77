"""
Error types and standardized error classification for wq.

Only ClusterConnectionError aborts a run. Statement failures are recorded
per statement and the batch continues; ResultDecodingError is reported as
a statement without rows.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class WqError(Exception):
    """Base class for all wq errors."""


class ConfigurationError(WqError):
    """Invalid or unreadable configuration."""


class ExecutionError(WqError):
    """A failure while running a query text against the cluster."""


class ClusterConnectionError(ExecutionError):
    """The initial connection to the cluster could not be established."""

    def __init__(self, address: str, reason: Any):
        self.address = address
        self.reason = reason
        super().__init__(f"Failed to connect to {address}: {reason}")


class StatementExecutionError(ExecutionError):
    """A single statement was rejected by the cluster or the request failed."""

    def __init__(self, statement: str, reason: Any):
        self.statement = statement
        self.reason = reason
        super().__init__(str(reason))


class ResultDecodingError(WqError):
    """Rows were returned but could not be decoded for display."""


class ErrorKind(str, Enum):
    """Standardized error categories."""

    CONNECTION = "connection"       # No host available, connection refused
    TIMEOUT = "timeout"             # Client or coordinator timeout
    UNAVAILABLE = "unavailable"     # Not enough replicas alive
    SYNTAX = "syntax"               # CQL syntax error
    INVALID = "invalid"             # Invalid request, unknown keyspace/table
    UNAUTHORIZED = "unauthorized"   # Authentication or permission failure
    UNKNOWN = "unknown"             # Unclassified error


class ErrorInfo(BaseModel):
    """Standardized error object recorded for each failed statement."""

    kind: ErrorKind = Field(
        default=ErrorKind.UNKNOWN,
        description="Error category"
    )
    message: str = Field(
        default="Unknown error",
        description="Human-readable error message"
    )
    exception_type: Optional[str] = Field(
        None, description="Exception class name of the underlying driver error"
    )


# Driver exception class names (cassandra.*) mapped to kinds
_CQL_ERROR_KINDS = {
    "NoHostAvailable": ErrorKind.CONNECTION,
    "ConnectionException": ErrorKind.CONNECTION,
    "ConnectionShutdown": ErrorKind.CONNECTION,
    "OperationTimedOut": ErrorKind.TIMEOUT,
    "ReadTimeout": ErrorKind.TIMEOUT,
    "WriteTimeout": ErrorKind.TIMEOUT,
    "Unavailable": ErrorKind.UNAVAILABLE,
    "ReadFailure": ErrorKind.UNAVAILABLE,
    "WriteFailure": ErrorKind.UNAVAILABLE,
    "SyntaxException": ErrorKind.SYNTAX,
    "InvalidRequest": ErrorKind.INVALID,
    "AlreadyExists": ErrorKind.INVALID,
    "ConfigurationException": ErrorKind.INVALID,
    "Unauthorized": ErrorKind.UNAUTHORIZED,
    "AuthenticationFailed": ErrorKind.UNAUTHORIZED,
}


def classify_cql_error(error: Exception) -> ErrorInfo:
    """Classify a statement failure into an ErrorInfo."""
    cause = error
    if isinstance(error, StatementExecutionError) and isinstance(error.__cause__, Exception):
        cause = error.__cause__
    error_type = type(cause).__name__

    if error_type in _CQL_ERROR_KINDS:
        kind = _CQL_ERROR_KINDS[error_type]
    elif "timeout" in str(cause).lower() or isinstance(cause, TimeoutError):
        kind = ErrorKind.TIMEOUT
    else:
        kind = ErrorKind.UNKNOWN

    return ErrorInfo(
        kind=kind,
        message=str(error),
        exception_type=error_type,
    )

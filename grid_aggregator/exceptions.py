"""
Aggregator exceptions.

Fatal errors (connectivity) cross the aggregator boundary; transport
errors raised for a single batch are absorbed by the retry task and
turned into failure entries.
"""
from typing import Any, Dict, Optional


class AggregatorException(Exception):
    """
    Base exception for all aggregator errors.

    All aggregator exceptions inherit from this class to allow
    for consistent error handling across the application.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logs and reports."""
        return {
            'error': self.code,
            'message': self.message,
            'details': self.details
        }


class InvalidArgumentException(AggregatorException):
    """Raised when an operation receives an argument it cannot accept."""

    def __init__(self, argument: str, value: Any, reason: str):
        self.argument = argument
        self.value = value
        super().__init__(
            message=f"Invalid {argument}={value!r}: {reason}",
            code='INVALID_ARGUMENT',
            details={'argument': argument, 'value': repr(value), 'reason': reason}
        )


class ConnectivityException(AggregatorException):
    """Raised when the connectivity probe fails; aborts the whole run."""

    def __init__(self, message: str, cause: Optional[str] = None):
        super().__init__(
            message=message,
            code='CONNECTIVITY_ERROR',
            details={'cause': cause}
        )


class TaskStateException(AggregatorException):
    """Raised when a batch task is driven from a state that does not allow it."""

    def __init__(self, batch_index: int, state: str):
        self.batch_index = batch_index
        self.state = state
        super().__init__(
            message=f"Batch task {batch_index} cannot run from state '{state}'",
            code='INVALID_TASK_STATE',
            details={'batch_index': batch_index, 'state': state}
        )


class ReportPersistenceException(AggregatorException):
    """Raised when the aggregated report cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            message=f"Failed to save report to {path}: {reason}",
            code='REPORT_PERSISTENCE_ERROR',
            details={'path': path, 'reason': reason}
        )


# =============================================================================
# Transport Exceptions
# =============================================================================

class TransportException(AggregatorException):
    """Base class for failures of a single API request."""
    pass


class RemoteRejectedError(TransportException):
    """The API answered, but rejected the request or returned an unusable body."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            message=f"API Error [{status_code}]: {reason}",
            code='REMOTE_REJECTED',
            details={'status_code': status_code, 'reason': reason}
        )


class NoResponseError(TransportException):
    """The request was sent but no response arrived (timeout, network error)."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"No response from server: {reason}",
            code='NO_RESPONSE',
            details={'reason': reason}
        )


class RequestConstructionError(TransportException):
    """The request could not be built or sent locally."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Request failed: {reason}",
            code='REQUEST_FAILED',
            details={'reason': reason}
        )

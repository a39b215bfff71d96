"""Error handling framework for reconciliation operations."""

from typing import Optional, Dict, Any, List, Iterator
from enum import Enum
from dataclasses import dataclass

from identity_sync.client.base import ManagementAPIError
from identity_sync.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur during reconciliation."""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    REMOTE_TRANSIENT = "remote_transient"
    REMOTE_FATAL = "remote_fatal"
    UNMAPPED_VARIANT = "unmapped_variant"
    CONFIGURATION = "configuration"
    STATE = "state"
    CREDENTIAL = "credential"
    PERMISSION = "permission"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Reconciliation cannot continue
    ERROR = "error"  # Resource failed but other resources can continue
    WARNING = "warning"  # Non-fatal issue
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    operation: Optional[str] = None
    status_code: Optional[int] = None
    error_code: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class ReconcileError(Exception):
    """Base exception for reconciliation errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize reconciliation error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        location = _describe_location(self.context)
        if location:
            return f"{location}: {self.message}"
        return self.message

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = []

        # Error header
        lines.append(f"❌ {self.severity.value.upper()}: {self.message}")

        # Context information
        if self.context.resource_type or self.context.resource_id:
            lines.append(f"   Resource: {_describe_location(self.context)}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")

        # Original error
        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        # Suggestions
        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'resource_id': self.context.resource_id,
                'resource_type': self.context.resource_type,
                'operation': self.context.operation,
                'status_code': self.context.status_code,
                'error_code': self.context.error_code,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


def _describe_location(context: ErrorContext) -> str:
    parts = []
    if context.resource_type:
        parts.append(context.resource_type)
    if context.resource_id:
        parts.append(context.resource_id)
    location = ".".join(parts)
    if context.operation:
        location = f"{location} ({context.operation})" if location else context.operation
    return location


class NotFoundError(ReconcileError):
    """Remote resource or relationship member no longer exists."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.INFO,
            **kwargs
        )


class ValidationConflict(ReconcileError):
    """Mutually exclusive fields set together, raised before any remote call."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class RemoteTransientError(ReconcileError):
    """Remote failure that may resolve with time."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.REMOTE_TRANSIENT,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class RemoteFatalError(ReconcileError):
    """Remote failure that must not be retried."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.REMOTE_FATAL,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class UnmappedVariantError(ReconcileError):
    """Response options type with no flatten mapping."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.UNMAPPED_VARIANT,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class ConfigurationError(ReconcileError):
    """Error in configuration file or settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class CredentialError(ReconcileError):
    """Management API rejected the credentials."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CREDENTIAL,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class PermissionDeniedError(ReconcileError):
    """Credentials lack the scope required for the operation."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.PERMISSION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class AttributeSetError(ReconcileError):
    """A flattened value could not be written into the observed tree."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class AggregateError(ReconcileError):
    """Collects several errors so they can be reported together."""

    def __init__(self, errors: Optional[List[Exception]] = None, **kwargs):
        self.errors: List[Exception] = []
        category = kwargs.pop('category', ErrorCategory.UNKNOWN)
        super().__init__("", category=category, **kwargs)
        for error in errors or []:
            self.append(error)

    def append(self, error: Optional[Exception]) -> "AggregateError":
        """Add an error, flattening nested aggregates and ignoring None.

        Args:
            error: Error to collect

        Returns:
            Self for chaining
        """
        if error is None:
            return self
        if isinstance(error, AggregateError):
            self.errors.extend(error.errors)
        else:
            self.errors.append(error)
        self.message = self._format()
        self.args = (self.message,)
        return self

    def error_or_none(self) -> Optional["AggregateError"]:
        """Return self if any error was collected, otherwise None."""
        return self if self.errors else None

    def _format(self) -> str:
        if len(self.errors) == 1:
            return f"1 error occurred:\n\t* {self.errors[0]}"
        lines = [f"{len(self.errors)} errors occurred:"]
        lines.extend(f"\t* {error}" for error in self.errors)
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Exception]:
        return iter(self.errors)


class ErrorHandler:
    """Handles and categorizes errors from the management API and other sources."""

    # Mapping of HTTP status codes to error categories and suggestions
    STATUS_ERROR_MAPPING = {
        400: {
            'category': ErrorCategory.REMOTE_FATAL,
            'suggestions': [
                'Review the error message for the rejected field',
                'Check the attribute is valid for the connection strategy',
            ]
        },
        401: {
            'category': ErrorCategory.CREDENTIAL,
            'suggestions': [
                'Check that the management API token is valid and not expired',
                'Verify the client credentials used to obtain the token',
            ]
        },
        403: {
            'category': ErrorCategory.PERMISSION,
            'suggestions': [
                'Grant the missing scope to the management API client',
                'Review the error message for the required scope',
            ]
        },
        404: {
            'category': ErrorCategory.NOT_FOUND,
            'suggestions': [
                'Check if the resource was deleted outside of identity-sync',
                'Run a plan to refresh observed state',
            ]
        },
        409: {
            'category': ErrorCategory.REMOTE_FATAL,
            'suggestions': [
                'A resource with the same identifier already exists',
                'Import the existing resource into state or rename it',
            ]
        },
        429: {
            'category': ErrorCategory.REMOTE_TRANSIENT,
            'suggestions': [
                'Rate limit exceeded, retry later (automatic retry enabled)',
            ]
        },
    }

    CATEGORY_CLASSES = {
        ErrorCategory.NOT_FOUND: NotFoundError,
        ErrorCategory.REMOTE_TRANSIENT: RemoteTransientError,
        ErrorCategory.REMOTE_FATAL: RemoteFatalError,
        ErrorCategory.CREDENTIAL: CredentialError,
        ErrorCategory.PERMISSION: PermissionDeniedError,
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> ReconcileError:
        """Handle an exception and convert to ReconcileError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            ReconcileError with categorization and suggestions
        """
        context = context or ErrorContext()

        # Handle already-wrapped ReconcileError
        if isinstance(error, ReconcileError):
            if not error.context.operation and context.operation:
                error.context = context
            return error

        if isinstance(error, ManagementAPIError):
            return self._handle_api_error(error, context)

        # Handle network errors
        if isinstance(error, (ConnectionError, TimeoutError)):
            return RemoteTransientError(
                message=str(error),
                context=context,
                cause=error,
                suggestions=['Check network connectivity to the tenant domain']
            )

        # Unknown error
        return ReconcileError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.ERROR,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_api_error(
        self,
        error: ManagementAPIError,
        context: ErrorContext
    ) -> ReconcileError:
        """Handle a management API error.

        The remote message is kept verbatim; only the location is added.

        Args:
            error: The ManagementAPIError
            context: Error context

        Returns:
            Categorized ReconcileError
        """
        status = error.status()
        context.status_code = status
        context.error_code = error.error_code

        error_info = self.STATUS_ERROR_MAPPING.get(status)
        if error_info is None and status >= 500:
            error_info = {
                'category': ErrorCategory.REMOTE_TRANSIENT,
                'suggestions': ['The management API is unavailable, retry later'],
            }
        if error_info is None:
            error_info = {'category': ErrorCategory.REMOTE_FATAL, 'suggestions': []}

        error_class = self.CATEGORY_CLASSES.get(error_info['category'], RemoteFatalError)
        return error_class(
            message=error.message,
            context=context,
            cause=error,
            suggestions=list(error_info['suggestions'])
        )

    def log_error(self, error: ReconcileError) -> None:
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        # Log full error details at debug level
        self.logger.debug(f"Error details: {error.to_dict()}")


# Global error handler instance
error_handler = ErrorHandler()

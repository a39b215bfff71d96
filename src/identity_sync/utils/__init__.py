"""Utility modules for logging, error handling, and retries."""

from identity_sync.utils.retry import (
    RetryStrategy,
    RetryableError,
    NonRetryableError,
    PollTimeoutError,
    is_transient,
)
from identity_sync.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    ReconcileError,
    NotFoundError,
    ValidationConflict,
    RemoteTransientError,
    RemoteFatalError,
    UnmappedVariantError,
    ConfigurationError,
    CredentialError,
    PermissionDeniedError,
    AttributeSetError,
    AggregateError,
    ErrorHandler,
    error_handler
)
from identity_sync.utils.logging import get_logger, setup_logging, LogContext

__all__ = [
    # Retry
    'RetryStrategy',
    'RetryableError',
    'NonRetryableError',
    'PollTimeoutError',
    'is_transient',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'ReconcileError',
    'NotFoundError',
    'ValidationConflict',
    'RemoteTransientError',
    'RemoteFatalError',
    'UnmappedVariantError',
    'ConfigurationError',
    'CredentialError',
    'PermissionDeniedError',
    'AttributeSetError',
    'AggregateError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
    'LogContext',
]

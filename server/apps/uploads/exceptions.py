"""Exceptions for uploads app.

Every error carries an ``error_type`` and ``status_code`` so the HTTP
layer can map it onto a response without inspecting the message.
"""

from collections.abc import Iterable
from typing import ClassVar


class UploadError(Exception):
    """Base class for upload lifecycle errors."""

    error_type: ClassVar[str] = 'INTERNAL_ERROR'
    status_code: ClassVar[int] = 500

    def __init__(self, message: str, public_message: str | None = None) -> None:
        """Initialize UploadError.

        Args:
            message: Detailed message for logs.
            public_message: Message safe to show to clients. Defaults
                to ``message``.
        """
        self.message = message
        self.public_message = public_message or message
        super().__init__(message)


class UploadValidationError(UploadError):
    """Raised when a request violates the upload policy.

    Always raised before any storage or database side effect.
    """

    error_type = 'VALIDATION_ERROR'
    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize UploadValidationError.

        Args:
            message: Actionable description (limits, allowed types).
            field: Name of the offending input field, if any.
        """
        self.field = field
        super().__init__(message)


class UnknownCategoryError(UploadValidationError):
    """Raised when a caller passes a category outside the enumeration."""

    def __init__(self, category: object, valid: Iterable[str]) -> None:
        """Initialize UnknownCategoryError.

        Args:
            category: The rejected value.
            valid: All accepted category values.
        """
        self.category = category
        super().__init__(
            f'Invalid upload category: {category}. '
            f'Must be one of: {", ".join(valid)}',
            field='category',
        )


class UploadNotFoundError(UploadError):
    """Raised for unknown ids/tokens and soft-deleted records."""

    error_type = 'RESOURCE_NOT_FOUND'
    status_code = 404

    def __init__(self, resource: str, identifier: object) -> None:
        """Initialize UploadNotFoundError.

        Args:
            resource: Resource name (e.g. 'Upload', 'Upload session').
            identifier: Identifier that was looked up.
        """
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            f"{resource} with identifier '{identifier}' not found",
            public_message=f'{resource} not found',
        )


class UploadStateError(UploadError):
    """Raised when an operation is not allowed in the current state."""

    error_type = 'INVALID_STATE'
    status_code = 409


class UpstreamStorageError(UploadError):
    """Raised when the object storage service fails."""

    error_type = 'STORAGE_ERROR'
    status_code = 502

    def __init__(self, operation: str, bucket: str, key: str) -> None:
        """Initialize UpstreamStorageError.

        Args:
            operation: Storage operation that failed.
            bucket: Target bucket.
            key: Target object key.
        """
        self.operation = operation
        self.bucket = bucket
        self.key = key
        super().__init__(
            f'Storage operation {operation} failed for {bucket}/{key}',
            public_message='Storage service unavailable',
        )


class PersistenceError(UploadError):
    """Raised when the database read or write fails."""

    error_type = 'DATABASE_ERROR'
    status_code = 500

    def __init__(self, operation: str) -> None:
        """Initialize PersistenceError.

        Args:
            operation: Description of the failed database operation.
        """
        self.operation = operation
        super().__init__(
            f'Database operation failed: {operation}',
            public_message='Failed to process upload data',
        )


class IssuedUrlNotPersistedError(PersistenceError):
    """Raised when a URL was signed but its record could not be saved.

    The signed URL must not be used: nothing will ever track the object.
    """

    def __init__(self, key: str) -> None:
        """Initialize IssuedUrlNotPersistedError.

        Args:
            key: Storage key the discarded URL was signed for.
        """
        self.key = key
        super().__init__(f'create upload record for {key}')
        self.public_message = (
            'Upload could not be registered; the issued URL is not usable'
        )


class AuthenticationRequiredError(UploadError):
    """Raised by the HTTP layer when an endpoint needs a logged-in user."""

    error_type = 'AUTHENTICATION_ERROR'
    status_code = 401

    def __init__(self) -> None:
        """Initialize AuthenticationRequiredError."""
        super().__init__('Authentication required')


class RequestForbiddenError(UploadError):
    """Raised when a request is refused before reaching a view."""

    error_type = 'FORBIDDEN'
    status_code = 403

    def __init__(self, reason: str) -> None:
        """Initialize RequestForbiddenError.

        Args:
            reason: Why the request was refused, for logs.
        """
        self.reason = reason
        super().__init__(
            f'Request forbidden: {reason}',
            public_message='CSRF verification failed',
        )

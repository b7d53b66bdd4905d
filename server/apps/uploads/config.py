"""Immutable configuration value for the upload subsystem."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from server.apps.uploads.exceptions import UploadValidationError

_DEFAULT_HOST_TEMPLATE: Final = 'https://{bucket}.r2.cloudflarestorage.com'


@dataclass(frozen=True, slots=True)
class UploadSettings:
    """Bucket routing, URL and expiry settings.

    Built once from Django settings when the app starts and passed to
    every component that needs it.
    """

    bucket: str
    public_bucket: str | None = None
    private_bucket: str | None = None
    public_domain: str | None = None
    default_host_template: str = _DEFAULT_HOST_TEMPLATE
    default_expiry_seconds: int = 3600
    min_expiry_seconds: int = 60
    max_expiry_seconds: int = 7 * 24 * 3600
    session_ttl: timedelta = timedelta(hours=24)
    stale_grace: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        """Check settings consistency.

        Raises:
            ImproperlyConfigured: If bucket or expiry settings are invalid.
        """
        if not self.bucket:
            raise ImproperlyConfigured('Upload bucket name must be set')
        if not (
            0 < self.min_expiry_seconds
            <= self.default_expiry_seconds
            <= self.max_expiry_seconds
        ):
            raise ImproperlyConfigured(
                'Upload expiry settings must satisfy '
                '0 < min <= default <= max',
            )
        if self.session_ttl <= timedelta(0):
            raise ImproperlyConfigured('Upload session TTL must be positive')

    @property
    def uses_split_buckets(self) -> bool:
        """Whether public and private uploads go to separate buckets."""
        return bool(self.public_bucket and self.private_bucket)

    def resolve_expiry(self, expires_in: int | None) -> int:
        """Return a URL lifetime within the configured bounds.

        Args:
            expires_in: Requested lifetime in seconds, or None for default.

        Returns:
            Lifetime in seconds.

        Raises:
            UploadValidationError: If the requested lifetime is out of bounds.
        """
        if expires_in is None:
            return self.default_expiry_seconds

        if not self.min_expiry_seconds <= expires_in <= self.max_expiry_seconds:
            raise UploadValidationError(
                f'expires_in must be between {self.min_expiry_seconds} '
                f'and {self.max_expiry_seconds} seconds',
                field='expires_in',
            )
        return expires_in

    @classmethod
    def from_settings(cls, source: Any = None) -> 'UploadSettings':
        """Build configuration from Django settings.

        Args:
            source: Settings object; defaults to ``django.conf.settings``.

        Returns:
            UploadSettings instance.
        """
        source = source or settings
        return cls(
            bucket=source.UPLOADS_BUCKET,
            public_bucket=source.UPLOADS_PUBLIC_BUCKET or None,
            private_bucket=source.UPLOADS_PRIVATE_BUCKET or None,
            public_domain=source.UPLOADS_PUBLIC_DOMAIN or None,
            default_host_template=source.UPLOADS_DEFAULT_HOST_TEMPLATE,
            default_expiry_seconds=source.UPLOADS_DEFAULT_EXPIRY_SECONDS,
            min_expiry_seconds=source.UPLOADS_MIN_EXPIRY_SECONDS,
            max_expiry_seconds=source.UPLOADS_MAX_EXPIRY_SECONDS,
            session_ttl=timedelta(hours=source.UPLOADS_SESSION_TTL_HOURS),
            stale_grace=timedelta(seconds=source.UPLOADS_STALE_GRACE_SECONDS),
        )

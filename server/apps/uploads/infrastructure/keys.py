"""Bucket routing and object key construction."""

import re
import secrets
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Final

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.logic.validation_rules import parse_category
from server.apps.uploads.models import PUBLIC_CATEGORIES, UploadCategory

_UNSAFE_CHARS: Final = re.compile(r'[^A-Za-z0-9_-]')
_SUFFIX_BYTES: Final = 4  # 8 hex chars
_DEFAULT_BASE_NAME: Final = 'file'
_MAX_BASE_LENGTH: Final = 100
_MAX_EXTENSION_LENGTH: Final = 16


def split_file_name(file_name: str) -> tuple[str, str]:
    """Split a client file name into a safe base name and extension.

    Directory components are dropped. Characters outside
    ``[A-Za-z0-9_-]`` are replaced with ``-`` in the base name and
    removed from the extension. The base name is cut to 100 characters
    and the extension to 16 so generated names always fit their columns.

    Example: 'My Photo (1).JPG' -> ('My-Photo--1-', '.JPG')

    Args:
        file_name: Original file name.

    Returns:
        Tuple of (base name, extension including the dot or '').
    """
    name = PurePosixPath(file_name.replace('\\', '/')).name
    path = PurePosixPath(name)
    extension = _UNSAFE_CHARS.sub('', path.suffix.lstrip('.'))
    extension = extension[:_MAX_EXTENSION_LENGTH]
    base = path.stem if path.suffix else name
    safe_base = _UNSAFE_CHARS.sub('-', base)[:_MAX_BASE_LENGTH]
    safe_base = safe_base or _DEFAULT_BASE_NAME
    return safe_base, f'.{extension}' if extension else ''


class KeyRouter:
    """Decides where an upload lives in object storage.

    With both a public and a private bucket configured, uploads are
    routed by visibility. Otherwise a single bucket is used and keys are
    prefixed with ``public/`` or ``private/`` instead.
    """

    def __init__(self, config: UploadSettings) -> None:
        self._config = config

    def is_public(self, category: UploadCategory | str) -> bool:
        """Whether files of this category are publicly readable."""
        return parse_category(category) in PUBLIC_CATEGORIES

    def choose_bucket(self, category: UploadCategory | str) -> str:
        """Select the bucket for a category."""
        if self._config.uses_split_buckets:
            if self.is_public(category):
                return self._config.public_bucket  # type: ignore[return-value]
            return self._config.private_bucket  # type: ignore[return-value]
        return self._config.bucket

    def build_key(
        self,
        category: UploadCategory | str,
        original_name: str,
        uploader_id: object,
    ) -> str:
        """Build a unique object key.

        Format: ``[public/|private/]{category}/{uploader}/{ms}-{rand}-{base}{ext}``.
        Uniqueness comes from the uploader id, a millisecond timestamp
        and a random suffix.

        Args:
            category: Upload category.
            original_name: File name provided by the client.
            uploader_id: Identity of the uploading user.

        Returns:
            Object key.
        """
        base_name, extension = split_file_name(original_name)
        timestamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        suffix = secrets.token_hex(_SUFFIX_BYTES)

        prefix = ''
        if not self._config.uses_split_buckets:
            prefix = 'public/' if self.is_public(category) else 'private/'

        return (
            f'{prefix}{parse_category(category).value}/{uploader_id}/'
            f'{timestamp}-{suffix}-{base_name}{extension}'
        )

    def build_public_url(
        self,
        key: str,
        bucket: str,
        category: UploadCategory | str,
    ) -> str:
        """Build the stable public URL of an object.

        Args:
            key: Object key.
            bucket: Bucket holding the object.
            category: Upload category.

        Returns:
            Public URL, or empty string for private categories.
        """
        if not self.is_public(category):
            return ''

        if self._config.public_domain:
            return f'{self._config.public_domain.rstrip("/")}/{key}'

        host = self._config.default_host_template.format(bucket=bucket)
        return f'{host.rstrip("/")}/{key}'

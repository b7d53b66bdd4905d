"""Issuing presigned upload URLs."""

import logging
from datetime import timedelta
from typing import Any

from django.db import DatabaseError, transaction
from django.utils import timezone

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.exceptions import (
    IssuedUrlNotPersistedError,
    UploadValidationError,
)
from server.apps.uploads.infrastructure.keys import KeyRouter
from server.apps.uploads.infrastructure.storage import ObjectStorageClient
from server.apps.uploads.logic import validation_rules
from server.apps.uploads.models import UploadRecord, UploadStatus
from server.apps.uploads.types import AssociationIds, IssuedUpload

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


class PresignedUrlIssuer:
    """Validates an upload request and authorizes a direct PUT.

    A record in ``uploading`` is created for every URL handed out, so
    every object that may appear in storage is tracked.
    """

    def __init__(
        self,
        config: UploadSettings,
        storage: ObjectStorageClient,
        router: KeyRouter | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._router = router or KeyRouter(config)

    def issue(  # noqa: WPS211
        self,
        category: object,
        file_name: str,
        content_type: str,
        uploader: _User,
        declared_size: int | None = None,
        expires_in: int | None = None,
        associations: AssociationIds | None = None,
    ) -> IssuedUpload:
        """Issue a presigned PUT URL and register the pending upload.

        Validation runs first and has no side effects. The URL is signed
        before the record is written; if the write fails the URL is
        reported as unusable.

        Args:
            category: Upload category value.
            file_name: Original file name from the client.
            content_type: Declared MIME type.
            uploader: User performing the upload.
            declared_size: Size announced by the client, if any.
            expires_in: URL lifetime in seconds, default from settings.
            associations: Entities the upload belongs to.

        Returns:
            IssuedUpload with the URL, key and eventual public URL.

        Raises:
            UploadValidationError: If the request violates the policy.
            UpstreamStorageError: If the storage service cannot sign.
            IssuedUrlNotPersistedError: If the record could not be saved.
        """
        upload_category = validation_rules.parse_category(category)
        if not file_name or not file_name.strip():
            raise UploadValidationError(
                'File name is required',
                field='file_name',
            )
        max_name_length = UploadRecord._meta.get_field('original_name').max_length
        if len(file_name) > max_name_length:
            raise UploadValidationError(
                f'File name must be at most {max_name_length} characters',
                field='file_name',
            )
        if declared_size is not None:
            validation_rules.validate_size(upload_category, declared_size)
        validation_rules.validate_content_type(upload_category, content_type)
        expiry = self._config.resolve_expiry(expires_in)
        associations = associations or AssociationIds()

        bucket = self._router.choose_bucket(upload_category)
        key = self._router.build_key(upload_category, file_name, uploader.pk)
        public_url = self._router.build_public_url(key, bucket, upload_category)
        expires_at = timezone.now() + timedelta(seconds=expiry)

        presigned_url = self._storage.presigned_put_url(
            bucket,
            key,
            content_type,
            expiry,
        )

        try:
            with transaction.atomic():
                record = UploadRecord.objects.create(
                    original_name=file_name,
                    file_name=key.rsplit('/', 1)[-1],
                    content_type=content_type,
                    category=upload_category,
                    status=UploadStatus.UPLOADING,
                    storage_bucket=bucket,
                    storage_key=key,
                    presigned_url=presigned_url,
                    presigned_expires_at=expires_at,
                    uploaded_by=uploader,
                    **associations.as_fields(),
                )
        except DatabaseError as error:
            logger.exception(
                'Signed URL issued but record not saved: %s/%s',
                bucket,
                key,
            )
            raise IssuedUrlNotPersistedError(key) from error

        logger.info(
            'Upload URL issued: %s (%s, user %s, expires in %ds)',
            record.id,
            key,
            uploader.pk,
            expiry,
        )

        return IssuedUpload(
            upload_id=record.id,
            presigned_url=presigned_url,
            key=key,
            public_url=public_url,
            expires_at=expires_at,
        )

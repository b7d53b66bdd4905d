"""Upload record state transitions.

State machine::

    uploading -> completed -> deleted
    uploading -> failed

Every transition is one conditional ``UPDATE`` filtered on the expected
current status, so two concurrent requests for the same record cannot
both succeed.
"""

import logging
import uuid
from typing import Any

from django.db import transaction
from django.utils import timezone

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.exceptions import (
    UploadNotFoundError,
    UploadStateError,
    UpstreamStorageError,
)
from server.apps.uploads.infrastructure.keys import KeyRouter
from server.apps.uploads.infrastructure.storage import ObjectStorageClient
from server.apps.uploads.logic import validation_rules
from server.apps.uploads.logic.persistence import translate_database_errors
from server.apps.uploads.models import UploadRecord, UploadStatus

logger = logging.getLogger(__name__)

_RESOURCE = 'Upload'


def _reported_dimensions(metadata: dict[str, Any]) -> tuple[int, int] | None:
    """Extract integer width and height from client metadata."""
    width = metadata.get('width')
    height = metadata.get('height')
    for dimension in (width, height):
        if not isinstance(dimension, int) or isinstance(dimension, bool):
            return None
    return width, height


class UploadRecordStore:
    """Owns upload records and their lifecycle."""

    def __init__(
        self,
        config: UploadSettings,
        storage: ObjectStorageClient,
        router: KeyRouter | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._router = router or KeyRouter(config)

    def get_info(self, upload_id: object) -> UploadRecord:
        """Get a record that has not been soft-deleted.

        Raises:
            UploadNotFoundError: If the record is missing or deleted.
        """
        return self._load(upload_id)

    def complete(
        self,
        upload_id: object,
        actual_size: int,
        metadata: dict[str, Any] | None = None,
    ) -> UploadRecord:
        """Mark an upload as completed.

        The reported size is checked against the category limit again,
        because the declared size at issuance is optional and
        untrusted. Image dimensions are checked when the metadata
        reports integer ``width`` and ``height``.

        Args:
            upload_id: Record identifier.
            actual_size: Size of the uploaded object in bytes.
            metadata: Client metadata; keeps the stored one when None.

        Returns:
            Updated record.

        Raises:
            UploadNotFoundError: If the record is missing or deleted.
            UploadStateError: If the record is not uploading.
            UploadValidationError: If size or dimensions exceed limits.
        """
        record = self._load(upload_id)
        if record.status != UploadStatus.UPLOADING:
            raise UploadStateError(
                f'Cannot complete upload in status {record.status}',
            )

        validation_rules.validate_size(record.category, actual_size)
        final_metadata = record.metadata if metadata is None else metadata
        dimensions = _reported_dimensions(final_metadata)
        if dimensions is not None:
            validation_rules.validate_dimensions(record.category, *dimensions)

        public_url = self._router.build_public_url(
            record.storage_key,
            record.storage_bucket,
            record.category,
        )

        with translate_database_errors('complete upload'):
            with transaction.atomic():
                updated = UploadRecord.objects.filter(
                    id=record.id,
                    status=UploadStatus.UPLOADING,
                ).update(
                    status=UploadStatus.COMPLETED,
                    file_size=actual_size,
                    metadata=final_metadata,
                    public_url=public_url,
                    presigned_url=None,
                    presigned_expires_at=None,
                    updated_at=timezone.now(),
                )

        if not updated:
            raise UploadStateError('Upload changed state concurrently')

        record.refresh_from_db()
        logger.info(
            'Upload completed: %s (%d bytes)',
            record.id,
            actual_size,
        )
        return record

    def fail(self, upload_id: object, reason: str | None = None) -> UploadRecord:
        """Mark an upload as failed and discard any partial object.

        Failing an already failed record returns it unchanged.

        Args:
            upload_id: Record identifier.
            reason: Failure description stored in ``processing_info``.

        Returns:
            Failed record.

        Raises:
            UploadNotFoundError: If the record is missing or deleted.
            UploadStateError: If the record is already completed.
        """
        record = self._load(upload_id)
        if record.status == UploadStatus.FAILED:
            return record
        if record.status != UploadStatus.UPLOADING:
            raise UploadStateError(
                f'Cannot fail upload in status {record.status}',
            )

        self._discard_object(record)

        with translate_database_errors('fail upload'):
            with transaction.atomic():
                updated = UploadRecord.objects.filter(
                    id=record.id,
                    status=UploadStatus.UPLOADING,
                ).update(
                    status=UploadStatus.FAILED,
                    processing_info={'error': reason},
                    presigned_url=None,
                    presigned_expires_at=None,
                    updated_at=timezone.now(),
                )

        record.refresh_from_db()
        if not updated and record.status != UploadStatus.FAILED:
            raise UploadStateError('Upload changed state concurrently')

        logger.info('Upload failed: %s (%s)', record.id, reason)
        return record

    def delete(self, upload_id: object) -> UploadRecord:
        """Soft-delete a completed upload and remove its object.

        Deleting an already deleted record returns it unchanged.

        Args:
            upload_id: Record identifier.

        Returns:
            Deleted record.

        Raises:
            UploadNotFoundError: If no record has this identifier.
            UploadStateError: If the record is not completed.
        """
        record = self._load(upload_id, include_deleted=True)
        if record.status == UploadStatus.DELETED:
            return record
        if record.status != UploadStatus.COMPLETED:
            raise UploadStateError(
                f'Cannot delete upload in status {record.status}',
            )

        self._discard_object(record)

        now = timezone.now()
        with translate_database_errors('delete upload'):
            with transaction.atomic():
                updated = UploadRecord.all_objects.filter(
                    id=record.id,
                    status=UploadStatus.COMPLETED,
                ).update(
                    status=UploadStatus.DELETED,
                    deleted_at=now,
                    public_url='',
                    updated_at=now,
                )

        record.refresh_from_db()
        if not updated and record.status != UploadStatus.DELETED:
            raise UploadStateError('Upload changed state concurrently')

        logger.info('Upload deleted: %s (%s)', record.id, record.storage_key)
        return record

    def _load(
        self,
        upload_id: object,
        include_deleted: bool = False,
    ) -> UploadRecord:
        try:
            record_id = uuid.UUID(str(upload_id))
        except ValueError as error:
            raise UploadNotFoundError(_RESOURCE, upload_id) from error

        manager = (
            UploadRecord.all_objects if include_deleted
            else UploadRecord.objects
        )
        with translate_database_errors('load upload'):
            record = manager.filter(id=record_id).first()

        if record is None:
            raise UploadNotFoundError(_RESOURCE, upload_id)
        return record

    def _discard_object(self, record: UploadRecord) -> None:
        """Delete the stored object; storage errors are logged only."""
        try:
            self._storage.delete_object(
                record.storage_bucket,
                record.storage_key,
            )
        except UpstreamStorageError:
            # The record transition must not depend on storage cleanup
            logger.exception(
                'Failed to delete object for upload %s, orphaned: %s/%s',
                record.id,
                record.storage_bucket,
                record.storage_key,
            )

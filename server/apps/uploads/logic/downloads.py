"""Resolving read URLs for completed uploads."""

import logging
import uuid

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.exceptions import UploadNotFoundError
from server.apps.uploads.infrastructure.storage import ObjectStorageClient
from server.apps.uploads.logic.persistence import translate_database_errors
from server.apps.uploads.models import UploadRecord

logger = logging.getLogger(__name__)


class DownloadUrlResolver:
    """Returns the URL a client should use to read an upload."""

    def __init__(
        self,
        config: UploadSettings,
        storage: ObjectStorageClient,
    ) -> None:
        self._config = config
        self._storage = storage

    def resolve(self, upload_id: object, expires_in: int | None = None) -> str:
        """Get a read URL for a completed upload.

        Public uploads return their stable public URL. Private uploads
        get a freshly signed GET URL from the record's own bucket.

        Args:
            upload_id: Record identifier.
            expires_in: Signed URL lifetime in seconds, default from
                settings. Ignored for public uploads.

        Returns:
            URL string.

        Raises:
            UploadNotFoundError: If the upload is missing, deleted or
                not completed.
            UploadValidationError: If expires_in is out of bounds.
            UpstreamStorageError: If signing fails.
        """
        try:
            record_id = uuid.UUID(str(upload_id))
        except ValueError as error:
            raise UploadNotFoundError('Upload', upload_id) from error

        with translate_database_errors('load upload for download'):
            record = UploadRecord.objects.completed().filter(
                id=record_id,
            ).first()

        if record is None:
            raise UploadNotFoundError('Upload', upload_id)

        if record.public_url:
            return record.public_url

        expiry = self._config.resolve_expiry(expires_in)
        logger.debug('Signing download URL for upload %s', record.id)
        return self._storage.presigned_get_url(
            record.storage_bucket,
            record.storage_key,
            expiry,
        )

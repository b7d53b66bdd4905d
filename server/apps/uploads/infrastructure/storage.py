"""Storage backend for S3-compatible object storage (Cloudflare R2, MinIO)."""

import logging
from typing import Final, Protocol, final

from botocore.exceptions import BotoCoreError, ClientError
from storages.backends.s3 import S3Storage

from server.apps.uploads.exceptions import UpstreamStorageError

logger = logging.getLogger(__name__)

_STORAGE_ERRORS: Final = (BotoCoreError, ClientError)


class ObjectStorageClient(Protocol):
    """Operations the upload lifecycle needs from object storage."""

    def presigned_put_url(
        self,
        bucket: str,
        key: str,
        content_type: str,
        expires_in: int,
    ) -> str:
        """Sign a PUT request for direct client upload."""

    def presigned_get_url(self, bucket: str, key: str, expires_in: int) -> str:
        """Sign a GET request for a private object."""

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""


@final
class UploadStorage(S3Storage):
    """S3 storage backend that signs URLs for direct client transfers.

    File bytes never pass through the application: clients PUT to a
    presigned URL and read private objects through signed GET URLs.
    Bucket is passed per call because public and private uploads may
    live in different buckets.
    """

    def presigned_put_url(
        self,
        bucket: str,
        key: str,
        content_type: str,
        expires_in: int,
    ) -> str:
        """Sign a PUT URL bound to a content type.

        Args:
            bucket: Target bucket.
            key: Target object key.
            content_type: Content type the client must send.
            expires_in: URL lifetime in seconds.

        Returns:
            Presigned URL.

        Raises:
            UpstreamStorageError: If signing fails.
        """
        try:
            url = self.connection.meta.client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': bucket,
                    'Key': key,
                    'ContentType': content_type,
                },
                ExpiresIn=expires_in,
            )
        except _STORAGE_ERRORS as error:
            logger.exception('Failed to sign upload URL: %s/%s', bucket, key)
            raise UpstreamStorageError('put_object', bucket, key) from error

        logger.debug('Signed upload URL: %s/%s (%ss)', bucket, key, expires_in)
        return url

    def presigned_get_url(self, bucket: str, key: str, expires_in: int) -> str:
        """Sign a GET URL for a private object.

        Args:
            bucket: Bucket holding the object.
            key: Object key.
            expires_in: URL lifetime in seconds.

        Returns:
            Presigned URL.

        Raises:
            UpstreamStorageError: If signing fails.
        """
        try:
            url = self.connection.meta.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': bucket, 'Key': key},
                ExpiresIn=expires_in,
            )
        except _STORAGE_ERRORS as error:
            logger.exception('Failed to sign download URL: %s/%s', bucket, key)
            raise UpstreamStorageError('get_object', bucket, key) from error

        logger.debug('Signed download URL: %s/%s', bucket, key)
        return url

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object from a bucket.

        Deleting a key that does not exist is not an error.

        Args:
            bucket: Bucket holding the object.
            key: Object key.

        Raises:
            UpstreamStorageError: If the storage service rejects the call.
        """
        try:
            logger.info('Deleting object from storage: %s/%s', bucket, key)
            self.connection.meta.client.delete_object(Bucket=bucket, Key=key)
        except _STORAGE_ERRORS as error:
            logger.exception(
                'Failed to delete object from storage: %s/%s',
                bucket,
                key,
            )
            raise UpstreamStorageError('delete_object', bucket, key) from error
        logger.info('Successfully deleted object: %s/%s', bucket, key)

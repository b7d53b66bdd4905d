"""Signal handlers for uploads app."""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from server.apps.uploads.exceptions import UpstreamStorageError
from server.apps.uploads.logic.service import get_upload_service
from server.apps.uploads.models import UploadRecord, UploadStatus

logger = logging.getLogger(__name__)

# Objects of these records were already removed by the lifecycle
_OBJECT_ALREADY_REMOVED = frozenset((UploadStatus.FAILED, UploadStatus.DELETED))


@receiver(post_delete, sender=UploadRecord)
def delete_object_from_storage(
    sender: type[UploadRecord],
    instance: UploadRecord,
    **kwargs: object,
) -> None:
    """Delete the stored object when an UploadRecord row is removed.

    Rows are normally soft-deleted. This covers hard deletes through
    the admin, the ORM or a cascading user deletion.

    Args:
        sender: The UploadRecord model class.
        instance: The UploadRecord instance being deleted.
        **kwargs: Additional signal arguments.
    """
    if instance.status in _OBJECT_ALREADY_REMOVED:
        return

    logger.info(
        'Deleting object from storage after DB delete: %s/%s',
        instance.storage_bucket,
        instance.storage_key,
    )

    try:
        get_upload_service().storage.delete_object(
            instance.storage_bucket,
            instance.storage_key,
        )
    except UpstreamStorageError:
        # DB delete already succeeded
        logger.exception(
            'Failed to delete object from storage (orphaned): %s/%s',
            instance.storage_bucket,
            instance.storage_key,
        )

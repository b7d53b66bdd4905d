"""Read-only queries over upload records."""

import uuid
from typing import Any, Final

from django.db.models import Count, Q, Sum

from server.apps.uploads.exceptions import UploadValidationError
from server.apps.uploads.logic.persistence import translate_database_errors
from server.apps.uploads.models import UploadRecord, UploadStatus

# User type for Django's dynamic user model
_User = Any

ENTITY_FIELDS: Final = {
    'community': 'community_id',
    'course': 'course_id',
    'module': 'module_id',
    'material': 'material_id',
}


def uploads_for_entity(entity_type: str, entity_id: object) -> list[UploadRecord]:
    """Get completed uploads attached to an entity, oldest first.

    Args:
        entity_type: One of 'community', 'course', 'module', 'material'.
        entity_id: UUID of the entity.

    Returns:
        List of completed, non-deleted records.

    Raises:
        UploadValidationError: If entity type or id is invalid.
    """
    field = ENTITY_FIELDS.get(entity_type)
    if field is None:
        raise UploadValidationError(
            f'Invalid entity type: {entity_type}. '
            f'Must be one of: {", ".join(ENTITY_FIELDS)}',
            field='entity_type',
        )
    try:
        parsed_id = uuid.UUID(str(entity_id))
    except ValueError as error:
        raise UploadValidationError(
            'entity_id must be a valid UUID',
            field='entity_id',
        ) from error

    with translate_database_errors('list uploads for entity'):
        return list(
            UploadRecord.objects.completed()
            .filter(**{field: parsed_id})
            .order_by('created_at'),
        )


def upload_stats(uploader: _User | None = None) -> dict[str, int]:
    """Aggregate counts and total size of non-deleted uploads.

    Args:
        uploader: Restrict statistics to this user's uploads.

    Returns:
        Dictionary with total_files, total_size, completed, failed and
        pending counts.
    """
    queryset = UploadRecord.objects.all()
    if uploader is not None:
        queryset = queryset.uploaded_by(uploader)

    with translate_database_errors('aggregate upload stats'):
        stats = queryset.aggregate(
            total_files=Count('id'),
            total_size=Sum('file_size'),
            completed=Count('id', filter=Q(status=UploadStatus.COMPLETED)),
            failed=Count('id', filter=Q(status=UploadStatus.FAILED)),
            pending=Count('id', filter=Q(status=UploadStatus.UPLOADING)),
        )

    stats['total_size'] = stats['total_size'] or 0
    return stats

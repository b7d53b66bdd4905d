"""Upload session tracking.

A session groups several uploads of one category and counts how many of
them reached a terminal outcome. Counters are only changed through
database-level increments.
"""

import logging
import secrets
from datetime import timedelta
from typing import Any, Final

from django.db import transaction
from django.db.models import Case, CharField, F, Value, When
from django.utils import timezone

from server.apps.uploads.exceptions import (
    UploadNotFoundError,
    UploadStateError,
    UploadValidationError,
)
from server.apps.uploads.logic import validation_rules
from server.apps.uploads.logic.persistence import translate_database_errors
from server.apps.uploads.models import SessionStatus, UploadSession
from server.apps.uploads.types import AssociationIds

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)

# Session token length in bytes (generates 32 hex chars)
_SESSION_TOKEN_BYTES: Final = 16

_DEFAULT_TTL: Final = timedelta(hours=24)

_RESOURCE = 'Upload session'


def create_session(  # noqa: WPS211
    category: object,
    total_files: int,
    owner: _User,
    associations: AssociationIds | None = None,
    metadata: dict[str, Any] | None = None,
    ttl: timedelta = _DEFAULT_TTL,
) -> UploadSession:
    """Create a new upload session.

    Args:
        category: Category shared by every file of the session.
        total_files: Number of files the client intends to upload.
        owner: User creating the session.
        associations: Entities the uploads belong to.
        metadata: Free-form client metadata.
        ttl: Lifetime used to compute ``expires_at``.

    Returns:
        Created UploadSession in ``uploading``.

    Raises:
        UploadValidationError: If category or total_files is invalid.
    """
    upload_category = validation_rules.parse_category(category)
    if isinstance(total_files, bool) or not isinstance(total_files, int):
        raise UploadValidationError(
            'total_files must be an integer',
            field='total_files',
        )
    if total_files <= 0:
        raise UploadValidationError(
            'total_files must be greater than zero',
            field='total_files',
        )

    associations = associations or AssociationIds()
    session_token = secrets.token_hex(_SESSION_TOKEN_BYTES)

    with translate_database_errors('create upload session'):
        with transaction.atomic():
            session = UploadSession.objects.create(
                session_token=session_token,
                category=upload_category,
                total_files=total_files,
                metadata=metadata or {},
                created_by=owner,
                expires_at=timezone.now() + ttl,
                **associations.as_fields(),
            )

    logger.info(
        'Upload session created for user %s: %s (%d files)',
        owner.pk,
        session_token[:8],
        total_files,
    )
    return session


def get_session(session_token: str) -> UploadSession:
    """Get a session by token.

    Expiry is informational only and is not checked here.

    Args:
        session_token: Session token.

    Returns:
        UploadSession instance.

    Raises:
        UploadNotFoundError: If no session has this token.
    """
    with translate_database_errors('load upload session'):
        session = UploadSession.objects.filter(
            session_token=session_token,
        ).first()

    if session is None:
        raise UploadNotFoundError(_RESOURCE, session_token)
    return session


def record_progress(
    session_token: str,
    completed: bool = False,
    failed: bool = False,
) -> UploadSession:
    """Count finished files in a session.

    Counters and status change in a single UPDATE, so concurrent reports
    never lose an increment and the session completes exactly when the
    last file is counted.

    Args:
        session_token: Session token.
        completed: Count one completed file.
        failed: Count one failed file.

    Returns:
        Updated UploadSession.

    Raises:
        UploadValidationError: If neither counter is requested.
        UploadNotFoundError: If no session has this token.
        UploadStateError: If the session is completed or the increment
            would exceed ``total_files``.
    """
    if not completed and not failed:
        raise UploadValidationError(
            'Either completed or failed must be set',
        )

    increment = int(completed) + int(failed)
    processed = F('completed_files') + F('failed_files') + increment

    with translate_database_errors('record upload session progress'):
        with transaction.atomic():
            updated = UploadSession.objects.filter(
                session_token=session_token,
                status=SessionStatus.UPLOADING,
                total_files__gte=processed,
            ).update(
                status=Case(
                    When(
                        total_files__lte=processed,
                        then=Value(SessionStatus.COMPLETED.value),
                    ),
                    default=Value(SessionStatus.UPLOADING.value),
                    output_field=CharField(),
                ),
                completed_files=F('completed_files') + int(completed),
                failed_files=F('failed_files') + int(failed),
                updated_at=timezone.now(),
            )

    session = get_session(session_token)
    if not updated:
        if session.status == SessionStatus.COMPLETED:
            raise UploadStateError('Upload session is already completed')
        raise UploadStateError(
            f'Upload session progress cannot exceed '
            f'{session.total_files} files',
        )

    logger.debug(
        'Upload session %s progress: %d/%d',
        session_token[:8],
        session.processed_files,
        session.total_files,
    )
    if session.status == SessionStatus.COMPLETED:
        logger.info('Upload session completed: %s', session_token[:8])
    return session

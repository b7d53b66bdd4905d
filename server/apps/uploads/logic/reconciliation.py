"""Reporting uploads and sessions left behind by expired URLs.

Presigned URLs expire inside the storage service; nothing moves a record
out of ``uploading`` when that happens. These queries make the gap
visible without changing any state.
"""

from datetime import datetime, timedelta

from django.db.models import QuerySet
from django.utils import timezone

from server.apps.uploads.models import (
    SessionStatus,
    UploadRecord,
    UploadSession,
    UploadStatus,
)


def find_stale_uploads(
    now: datetime | None = None,
    grace: timedelta = timedelta(0),
) -> QuerySet[UploadRecord]:
    """Uploads still uploading after their signed URL expired.

    Args:
        now: Reference time, defaults to the current time.
        grace: Extra time allowed after URL expiry.

    Returns:
        QuerySet ordered by URL expiry, oldest first.
    """
    cutoff = (now or timezone.now()) - grace
    return UploadRecord.objects.filter(
        status=UploadStatus.UPLOADING,
        presigned_expires_at__lt=cutoff,
    ).order_by('presigned_expires_at')


def find_expired_sessions(now: datetime | None = None) -> QuerySet[UploadSession]:
    """Sessions still uploading after their expiry time.

    Args:
        now: Reference time, defaults to the current time.

    Returns:
        QuerySet ordered by expiry, oldest first.
    """
    return UploadSession.objects.filter(
        status=SessionStatus.UPLOADING,
        expires_at__lt=now or timezone.now(),
    ).order_by('expires_at')

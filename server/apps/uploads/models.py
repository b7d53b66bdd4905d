"""Database models for uploads app."""

import uuid
from pathlib import Path
from typing import ClassVar, Final, final

from typing_extensions import override

from django.conf import settings
from django.db import models

from server.apps.uploads.types import AssociationIds

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_CONTENT_TYPE_MAX_LENGTH: Final = 100
_CHOICE_MAX_LENGTH: Final = 32
_BUCKET_MAX_LENGTH: Final = 100
_KEY_MAX_LENGTH: Final = 500
_TOKEN_MAX_LENGTH: Final = 64


class UploadCategory(models.TextChoices):
    """Semantic label deciding validation rule and bucket routing."""

    COMMUNITY_AVATAR = 'community_avatar', 'Community avatar'
    COMMUNITY_BANNER = 'community_banner', 'Community banner'
    COURSE_THUMBNAIL = 'course_thumbnail', 'Course thumbnail'
    MODULE_THUMBNAIL = 'module_thumbnail', 'Module thumbnail'
    USER_AVATAR = 'user_avatar', 'User avatar'
    MATERIAL_VIDEO = 'material_video', 'Material video'
    MATERIAL_FILE = 'material_file', 'Material file'
    MATERIAL_DOCUMENT = 'material_document', 'Material document'


# Categories served from public storage without signing
PUBLIC_CATEGORIES: Final = frozenset((
    UploadCategory.COMMUNITY_AVATAR,
    UploadCategory.COMMUNITY_BANNER,
    UploadCategory.COURSE_THUMBNAIL,
    UploadCategory.MODULE_THUMBNAIL,
    UploadCategory.USER_AVATAR,
))


class UploadStatus(models.TextChoices):
    """Upload record lifecycle state."""

    UPLOADING = 'uploading', 'Uploading'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'
    DELETED = 'deleted', 'Deleted'


class SessionStatus(models.TextChoices):
    """Upload session lifecycle state."""

    UPLOADING = 'uploading', 'Uploading'
    COMPLETED = 'completed', 'Completed'


class UploadRecordQuerySet(models.QuerySet['UploadRecord']):
    """Query helpers for upload records."""

    def completed(self) -> 'UploadRecordQuerySet':
        """Records whose upload finished successfully."""
        return self.filter(status=UploadStatus.COMPLETED)

    def uploaded_by(self, user: object) -> 'UploadRecordQuerySet':
        """Records owned by the given user."""
        return self.filter(uploaded_by=user)


class ActiveUploadManager(models.Manager.from_queryset(UploadRecordQuerySet)):  # type: ignore[misc]
    """Manager hiding soft-deleted records."""

    @override
    def get_queryset(self) -> UploadRecordQuerySet:
        """Exclude records with a deletion timestamp."""
        return super().get_queryset().filter(deleted_at__isnull=True)


class AllUploadManager(models.Manager.from_queryset(UploadRecordQuerySet)):  # type: ignore[misc]
    """Manager including soft-deleted records."""


@final
class UploadRecord(models.Model):
    """One attempt to upload a file directly to object storage.

    Created in ``uploading`` when a presigned PUT URL is issued. Moves to
    ``completed`` or ``failed`` when the client reports the outcome, and a
    completed record may later be soft-deleted. The row is kept after
    deletion; ``objects`` hides it, ``all_objects`` does not.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    original_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='File name as provided by the client',
    )

    file_name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Generated file name (last segment of the storage key)',
    )

    file_size = models.BigIntegerField(
        default=0,
        help_text='Size in bytes, 0 until the upload is completed',
    )

    content_type = models.CharField(
        max_length=_CONTENT_TYPE_MAX_LENGTH,
        help_text='Declared MIME type',
    )

    category = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=UploadCategory.choices,
        db_index=True,
    )

    status = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=UploadStatus.choices,
        default=UploadStatus.UPLOADING,
        db_index=True,
    )

    # Object storage location
    storage_bucket = models.CharField(max_length=_BUCKET_MAX_LENGTH)

    storage_key = models.CharField(
        max_length=_KEY_MAX_LENGTH,
        db_index=True,
        help_text='Full object key: [public/|private/]{category}/{user}/...',
    )

    public_url = models.TextField(
        blank=True,
        default='',
        help_text='Set for public categories once completed',
    )

    presigned_url = models.TextField(
        null=True,
        blank=True,
        help_text='Signed PUT URL, present only while uploading',
    )

    presigned_expires_at = models.DateTimeField(null=True, blank=True)

    # Client supplied metadata (dimensions, duration, ...)
    metadata = models.JSONField(default=dict, blank=True)

    # Failure reason and other processing notes
    processing_info = models.JSONField(default=dict, blank=True)

    # Associations, owned by other parts of the system
    community_id = models.UUIDField(null=True, blank=True, db_index=True)
    course_id = models.UUIDField(null=True, blank=True, db_index=True)
    module_id = models.UUIDField(null=True, blank=True, db_index=True)
    material_id = models.UUIDField(null=True, blank=True, db_index=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='uploads',
        db_index=True,
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = ActiveUploadManager()
    all_objects = AllUploadManager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Upload'  # type: ignore[mutable-override]
        verbose_name_plural = 'Uploads'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']
        base_manager_name = 'all_objects'

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['uploaded_by', '-created_at'],
                name='uploads_uploader_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(file_size__gte=0),
                name='uploads_file_size_non_negative',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(file_size=0)
                    | models.Q(status__in=['completed', 'deleted'])
                ),
                name='uploads_size_only_when_completed',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(presigned_url__isnull=True)
                    | models.Q(status='uploading')
                ),
                name='uploads_presigned_only_while_uploading',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(deleted_at__isnull=True)
                    | models.Q(status='deleted')
                ),
                name='uploads_deleted_at_implies_deleted',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(public_url='')
                    | models.Q(status='completed')
                ),
                name='uploads_public_url_only_when_completed',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.category}:{self.original_name} ({self.status})'

    @property
    def associations(self) -> AssociationIds:
        """Association identifiers as a value object."""
        return AssociationIds(
            community_id=self.community_id,
            course_id=self.course_id,
            module_id=self.module_id,
            material_id=self.material_id,
        )

    def get_extension(self) -> str:
        """Extract file extension from the original name.

        Example: 'Lecture 1.MP4' -> 'mp4'

        Returns:
            Extension without dot (lowercase).
        """
        return Path(self.original_name).suffix.lstrip('.').lower()


@final
class UploadSession(models.Model):
    """Batch of uploads sharing a category and association context.

    Counters only ever grow, through atomic increments. The session is
    completed once every declared file has either completed or failed.
    """

    session_token = models.CharField(
        max_length=_TOKEN_MAX_LENGTH,
        unique=True,
        help_text='Unique session token',
    )

    category = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=UploadCategory.choices,
    )

    status = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=SessionStatus.choices,
        default=SessionStatus.UPLOADING,
        db_index=True,
    )

    total_files = models.PositiveIntegerField()
    completed_files = models.PositiveIntegerField(default=0)
    failed_files = models.PositiveIntegerField(default=0)

    metadata = models.JSONField(default=dict, blank=True)

    community_id = models.UUIDField(null=True, blank=True)
    course_id = models.UUIDField(null=True, blank=True)
    module_id = models.UUIDField(null=True, blank=True)
    material_id = models.UUIDField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='upload_sessions',
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    expires_at = models.DateTimeField(
        db_index=True,
        help_text='Fixed at creation; not enforced on read',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Upload Session'  # type: ignore[mutable-override]
        verbose_name_plural = 'Upload Sessions'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(total_files__gt=0),
                name='upload_sessions_total_positive',
            ),
            models.CheckConstraint(
                condition=models.Q(
                    total_files__gte=(
                        models.F('completed_files') + models.F('failed_files')
                    ),
                ),
                name='upload_sessions_progress_within_total',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return (
            f'{self.session_token[:8]} {self.category} '
            f'{self.processed_files}/{self.total_files}'
        )

    @property
    def processed_files(self) -> int:
        """Files that reached a terminal outcome."""
        return self.completed_files + self.failed_files

    @property
    def associations(self) -> AssociationIds:
        """Association identifiers as a value object."""
        return AssociationIds(
            community_id=self.community_id,
            course_id=self.course_id,
            module_id=self.module_id,
            material_id=self.material_id,
        )

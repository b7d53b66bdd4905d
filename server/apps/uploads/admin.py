"""Django admin configuration for uploads app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.uploads.models import UploadRecord, UploadSession, UploadStatus

_STATUS_COLORS = {
    UploadStatus.UPLOADING: '#17a2b8',
    UploadStatus.COMPLETED: '#28a745',
    UploadStatus.FAILED: '#dc3545',
    UploadStatus.DELETED: '#6c757d',
}


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


@admin.register(UploadRecord)
class UploadRecordAdmin(admin.ModelAdmin[UploadRecord]):
    """Admin interface for UploadRecord model.

    Shows soft-deleted records too; state changes go through the
    service, so lifecycle fields are read-only here.
    """

    list_display = [
        'original_name',
        'category',
        'status_display',
        'size_display',
        'uploaded_by',
        'created_at',
    ]

    list_filter = [
        'status',
        'category',
        'created_at',
    ]

    search_fields = [
        'original_name',
        'storage_key',
        'uploaded_by__username',
    ]

    readonly_fields = [
        'id',
        'file_name',
        'file_size',
        'content_type',
        'category',
        'status',
        'storage_bucket',
        'storage_key',
        'public_url',
        'presigned_url',
        'presigned_expires_at',
        'processing_info',
        'created_at',
        'updated_at',
        'deleted_at',
    ]

    fieldsets = (
        ('Upload', {
            'fields': (
                'id',
                'original_name',
                'file_name',
                'uploaded_by',
                'category',
                'status',
            ),
        }),
        ('Content', {
            'fields': ('file_size', 'content_type', 'metadata'),
        }),
        ('Storage', {
            'fields': (
                'storage_bucket',
                'storage_key',
                'public_url',
                'presigned_url',
                'presigned_expires_at',
            ),
        }),
        ('Associations', {
            'fields': (
                'community_id',
                'course_id',
                'module_id',
                'material_id',
            ),
        }),
        ('Processing', {
            'fields': ('processing_info',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
        }),
    )

    def size_display(self, obj: UploadRecord) -> str:
        """Display file size in human-readable format."""
        return _format_bytes(obj.file_size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def status_display(self, obj: UploadRecord) -> str:
        """Display colored status label.

        Args:
            obj: UploadRecord instance.

        Returns:
            HTML formatted status.
        """
        return format_html(
            '<span style="color: {color}; font-weight: bold;">'
            '{status}</span>',
            color=_STATUS_COLORS.get(obj.status, '#000000'),
            status=obj.get_status_display(),
        )
    status_display.short_description = 'Status'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[UploadRecord]:
        """Include soft-deleted records and join the uploader.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return UploadRecord.all_objects.select_related('uploaded_by')


@admin.register(UploadSession)
class UploadSessionAdmin(admin.ModelAdmin[UploadSession]):
    """Admin interface for UploadSession model."""

    list_display = [
        'token_display',
        'category',
        'status',
        'progress_display',
        'created_by',
        'expires_at',
    ]

    list_filter = [
        'status',
        'category',
    ]

    search_fields = [
        'session_token',
        'created_by__username',
    ]

    readonly_fields = [
        'session_token',
        'status',
        'total_files',
        'completed_files',
        'failed_files',
        'created_at',
        'updated_at',
        'expires_at',
    ]

    def token_display(self, obj: UploadSession) -> str:
        """Display shortened session token."""
        return f'{obj.session_token[:8]}...'
    token_display.short_description = 'Token'  # type: ignore[attr-defined]

    def progress_display(self, obj: UploadSession) -> str:
        """Display processed/total with failures.

        Args:
            obj: UploadSession instance.

        Returns:
            Progress string (e.g., '3/5 (1 failed)').
        """
        progress = f'{obj.processed_files}/{obj.total_files}'
        if obj.failed_files:
            return f'{progress} ({obj.failed_files} failed)'
        return progress
    progress_display.short_description = 'Progress'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[UploadSession]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('created_by')

"""Django app configuration for uploads app."""

from typing import TYPE_CHECKING

from typing_extensions import override

from django.apps import AppConfig

if TYPE_CHECKING:
    from server.apps.uploads.logic.service import UploadService


class UploadsConfig(AppConfig):
    """Configuration for uploads app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.uploads'
    label = 'uploads'
    verbose_name = 'Uploads'

    service: 'UploadService'

    @override
    def ready(self) -> None:
        """Import signal handlers and build the upload service."""
        from server.apps.uploads import signals  # noqa: F401
        from server.apps.uploads.logic.service import build_upload_service

        self.service = build_upload_service()

"""Caller-facing entry point for the upload lifecycle."""

import logging
from datetime import datetime
from typing import Any

from django.apps import apps
from django.core.files.storage import storages
from django.db.models import QuerySet

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.exceptions import UploadError
from server.apps.uploads.infrastructure.keys import KeyRouter
from server.apps.uploads.infrastructure.storage import ObjectStorageClient
from server.apps.uploads.logic import (
    queries,
    reconciliation,
    session_tracker,
    validation_rules,
)
from server.apps.uploads.logic.downloads import DownloadUrlResolver
from server.apps.uploads.logic.issuance import PresignedUrlIssuer
from server.apps.uploads.logic.record_store import UploadRecordStore
from server.apps.uploads.models import (
    UploadRecord,
    UploadSession,
    UploadStatus,
)
from server.apps.uploads.types import AssociationIds, IssuedUpload

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


class UploadService:
    """Wires configuration and storage into the lifecycle components."""

    def __init__(
        self,
        config: UploadSettings,
        storage: ObjectStorageClient,
    ) -> None:
        self.config = config
        self.storage = storage
        self.router = KeyRouter(config)
        self.issuer = PresignedUrlIssuer(config, storage, self.router)
        self.records = UploadRecordStore(config, storage, self.router)
        self.downloads = DownloadUrlResolver(config, storage)

    def issue(  # noqa: WPS211
        self,
        category: object,
        file_name: str,
        content_type: str,
        uploader: _User,
        declared_size: int | None = None,
        expires_in: int | None = None,
        associations: AssociationIds | None = None,
    ) -> IssuedUpload:
        """Issue a presigned upload URL. See PresignedUrlIssuer.issue."""
        return self.issuer.issue(
            category,
            file_name,
            content_type,
            uploader,
            declared_size=declared_size,
            expires_in=expires_in,
            associations=associations,
        )

    def complete(
        self,
        upload_id: object,
        actual_size: int,
        metadata: dict[str, Any] | None = None,
        session_token: str | None = None,
    ) -> UploadRecord:
        """Complete an upload, counting it in its session if given.

        The session is looked up before the transition so an unknown
        token fails the whole call. Once the record has completed, a
        session counting error is logged and does not undo it.
        """
        if session_token:
            session_tracker.get_session(session_token)

        record = self.records.complete(upload_id, actual_size, metadata)

        if session_token:
            self._count_in_session(session_token, record, completed=True)
        return record

    def fail(
        self,
        upload_id: object,
        reason: str | None = None,
        session_token: str | None = None,
    ) -> UploadRecord:
        """Fail an upload, counting it in its session if given.

        A record that had already failed is not counted again.
        """
        if session_token:
            session_tracker.get_session(session_token)

        previous_status = self.records.get_info(upload_id).status
        record = self.records.fail(upload_id, reason)

        if session_token and previous_status == UploadStatus.UPLOADING:
            self._count_in_session(session_token, record, failed=True)
        return record

    def delete(self, upload_id: object) -> UploadRecord:
        """Soft-delete a completed upload."""
        return self.records.delete(upload_id)

    def get_info(self, upload_id: object) -> UploadRecord:
        """Get a non-deleted upload record."""
        return self.records.get_info(upload_id)

    def get_download_url(
        self,
        upload_id: object,
        expires_in: int | None = None,
    ) -> str:
        """Get a read URL for a completed upload."""
        return self.downloads.resolve(upload_id, expires_in)

    def create_session(
        self,
        category: object,
        total_files: int,
        owner: _User,
        associations: AssociationIds | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UploadSession:
        """Create an upload session with the configured TTL."""
        return session_tracker.create_session(
            category,
            total_files,
            owner,
            associations=associations,
            metadata=metadata,
            ttl=self.config.session_ttl,
        )

    def get_session(self, session_token: str) -> UploadSession:
        """Get an upload session by token."""
        return session_tracker.get_session(session_token)

    def record_session_progress(
        self,
        session_token: str,
        completed: bool = False,
        failed: bool = False,
    ) -> UploadSession:
        """Count a finished file in a session."""
        return session_tracker.record_progress(
            session_token,
            completed=completed,
            failed=failed,
        )

    def list_validation_rules(self) -> list[dict[str, Any]]:
        """Describe the validation policy of every category."""
        return validation_rules.list_validation_rules()

    def get_max_file_size(self, category: object) -> int:
        """Get maximum allowed size in bytes for a category."""
        return validation_rules.get_max_file_size(category)

    def uploads_for_entity(
        self,
        entity_type: str,
        entity_id: object,
    ) -> list[UploadRecord]:
        """Get completed uploads attached to an entity."""
        return queries.uploads_for_entity(entity_type, entity_id)

    def upload_stats(self, uploader: _User | None = None) -> dict[str, int]:
        """Aggregate upload statistics."""
        return queries.upload_stats(uploader)

    def find_stale_uploads(
        self,
        now: datetime | None = None,
    ) -> QuerySet[UploadRecord]:
        """Uploads whose URL expired, using the configured grace period."""
        return reconciliation.find_stale_uploads(
            now,
            grace=self.config.stale_grace,
        )

    def find_expired_sessions(
        self,
        now: datetime | None = None,
    ) -> QuerySet[UploadSession]:
        """Sessions still uploading past their expiry."""
        return reconciliation.find_expired_sessions(now)

    def _count_in_session(
        self,
        session_token: str,
        record: UploadRecord,
        completed: bool = False,
        failed: bool = False,
    ) -> None:
        try:
            session_tracker.record_progress(
                session_token,
                completed=completed,
                failed=failed,
            )
        except UploadError:
            # Record transition already committed
            logger.exception(
                'Failed to count upload %s in session %s',
                record.id,
                session_token[:8],
            )


def build_upload_service() -> UploadService:
    """Build the service from Django settings and the default storage."""
    return UploadService(UploadSettings.from_settings(), storages['default'])


def get_upload_service() -> UploadService:
    """Get the service instance built when the app started."""
    return apps.get_app_config('uploads').service

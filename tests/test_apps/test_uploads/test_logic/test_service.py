"""Tests for the UploadService facade."""

import pytest

from server.apps.uploads.exceptions import UploadNotFoundError
from server.apps.uploads.logic.service import (
    UploadService,
    build_upload_service,
    get_upload_service,
)
from server.apps.uploads.models import SessionStatus, UploadStatus


def _issue(service, user, name='notes.pdf'):
    return service.issue(
        'material_document',
        name,
        'application/pdf',
        user,
    ).upload_id


@pytest.mark.django_db
class TestFullLifecycle:
    """End-to-end flow through the facade on mocked S3."""

    def test_issue_complete_download_delete(self, upload_service, user, mock_s3):
        """Test a private document from issuance to deletion."""
        upload_id = _issue(upload_service, user)
        record = upload_service.get_info(upload_id)
        mock_s3.Object(record.storage_bucket, record.storage_key).put(
            Body=b'%PDF',
        )

        upload_service.complete(upload_id, 4)
        url = upload_service.get_download_url(upload_id)
        deleted = upload_service.delete(upload_id)

        assert record.storage_key in url
        assert deleted.status == UploadStatus.DELETED
        bucket = mock_s3.Bucket(record.storage_bucket)
        assert list(bucket.objects.all()) == []
        with pytest.raises(UploadNotFoundError):
            upload_service.get_download_url(upload_id)


@pytest.mark.django_db
class TestSessionReporting:
    """Tests for completion and failure counted in sessions."""

    def test_two_completed_one_failed(self, stub_service, user):
        """Test session completes after three outcomes."""
        session = stub_service.create_session('material_document', 3, user)
        token = session.session_token
        uploads = [_issue(stub_service, user, f'{idx}.pdf') for idx in range(3)]

        stub_service.complete(uploads[0], 100, session_token=token)
        stub_service.complete(uploads[1], 100, session_token=token)
        stub_service.fail(uploads[2], 'aborted', session_token=token)

        session = stub_service.get_session(token)
        assert session.completed_files == 2
        assert session.failed_files == 1
        assert session.status == SessionStatus.COMPLETED

    def test_unknown_session_blocks_transition(self, stub_service, user):
        """Test an unknown token fails before the record changes."""
        upload_id = _issue(stub_service, user)

        with pytest.raises(UploadNotFoundError):
            stub_service.complete(upload_id, 100, session_token='missing')

        assert stub_service.get_info(upload_id).status == UploadStatus.UPLOADING

    def test_repeated_failure_counted_once(self, stub_service, user):
        """Test failing an already failed upload is not counted again."""
        session = stub_service.create_session('material_document', 2, user)
        upload_id = _issue(stub_service, user)

        stub_service.fail(upload_id, 'x', session_token=session.session_token)
        stub_service.fail(upload_id, 'x', session_token=session.session_token)

        assert stub_service.get_session(session.session_token).failed_files == 1

    def test_full_session_does_not_undo_completion(self, stub_service, user):
        """Test a session counting error keeps the record completed."""
        session = stub_service.create_session('material_document', 1, user)
        token = session.session_token
        first = _issue(stub_service, user, 'a.pdf')
        second = _issue(stub_service, user, 'b.pdf')
        stub_service.complete(first, 100, session_token=token)

        record = stub_service.complete(second, 100, session_token=token)

        assert record.status == UploadStatus.COMPLETED
        assert stub_service.get_session(token).completed_files == 1

    def test_session_ttl_from_settings(self, stub_service, user):
        """Test sessions use the configured TTL."""
        session = stub_service.create_session('user_avatar', 1, user)

        lifetime = session.expires_at - session.created_at
        assert abs(lifetime - stub_service.config.session_ttl).total_seconds() < 5


class TestPolicyLookups:
    """Tests for policy passthroughs."""

    def test_max_file_size(self, upload_settings, stub_storage):
        """Test maximum size lookup."""
        service = UploadService(upload_settings, stub_storage)

        assert service.get_max_file_size('material_video') == 500 * 1024 * 1024

    def test_validation_rules(self, upload_settings, stub_storage):
        """Test full policy description."""
        service = UploadService(upload_settings, stub_storage)

        assert len(service.list_validation_rules()) == 8


class TestServiceWiring:
    """Tests for building the service from settings."""

    def test_build_from_settings(self, settings):
        """Test service reflects Django settings."""
        settings.UPLOADS_PUBLIC_BUCKET = 'pub'
        settings.UPLOADS_PRIVATE_BUCKET = 'priv'

        service = build_upload_service()

        assert service.config.uses_split_buckets
        assert service.router.choose_bucket('user_avatar') == 'pub'

    def test_app_instance(self):
        """Test the app exposes a ready service."""
        assert isinstance(get_upload_service(), UploadService)

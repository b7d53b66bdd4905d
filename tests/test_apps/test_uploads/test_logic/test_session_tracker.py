"""Tests for upload session tracking."""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.uploads.exceptions import (
    UnknownCategoryError,
    UploadNotFoundError,
    UploadStateError,
    UploadValidationError,
)
from server.apps.uploads.logic.session_tracker import (
    create_session,
    get_session,
    record_progress,
)
from server.apps.uploads.models import SessionStatus, UploadSession
from server.apps.uploads.types import AssociationIds


@pytest.mark.django_db
class TestCreateSession:
    """Tests for session creation."""

    def test_create_session(self, user):
        """Test new session starts uploading with zero counters."""
        before = timezone.now()

        session = create_session('material_document', 3, user)

        assert session.status == SessionStatus.UPLOADING
        assert session.total_files == 3
        assert session.completed_files == 0
        assert session.failed_files == 0
        assert session.created_by == user
        assert len(session.session_token) == 32
        assert session.expires_at - before >= timedelta(hours=24)
        assert session.expires_at - before < timedelta(hours=24, minutes=1)

    def test_custom_ttl(self, user):
        """Test session lifetime follows the requested TTL."""
        session = create_session(
            'material_video',
            1,
            user,
            ttl=timedelta(hours=2),
        )

        assert session.expires_at - session.created_at < timedelta(hours=3)

    def test_tokens_are_unique(self, user):
        """Test every session gets its own token."""
        tokens = {
            create_session('user_avatar', 1, user).session_token
            for _ in range(10)
        }

        assert len(tokens) == 10

    def test_associations_and_metadata(self, user):
        """Test association ids and metadata are stored."""
        course_id = uuid.uuid4()

        session = create_session(
            'material_file',
            2,
            user,
            associations=AssociationIds(course_id=course_id),
            metadata={'source': 'bulk'},
        )

        assert session.course_id == course_id
        assert session.metadata == {'source': 'bulk'}

    @pytest.mark.parametrize('total_files', [0, -1])
    def test_rejects_non_positive_total(self, user, total_files):
        """Test sessions need at least one file."""
        with pytest.raises(UploadValidationError):
            create_session('user_avatar', total_files, user)

        assert not UploadSession.objects.exists()

    def test_rejects_unknown_category(self, user):
        """Test category is validated."""
        with pytest.raises(UnknownCategoryError):
            create_session('anything', 1, user)


@pytest.mark.django_db
class TestGetSession:
    """Tests for session lookup."""

    def test_get_session(self, user):
        """Test lookup by token."""
        session = create_session('user_avatar', 1, user)

        assert get_session(session.session_token).pk == session.pk

    def test_unknown_token(self, db):
        """Test unknown token is not found."""
        with pytest.raises(UploadNotFoundError):
            get_session('0' * 32)

    def test_expired_session_still_returned(self, user):
        """Test expiry is not enforced on read."""
        session = create_session('user_avatar', 1, user)
        UploadSession.objects.filter(pk=session.pk).update(
            expires_at=timezone.now() - timedelta(days=1),
        )

        assert get_session(session.session_token).pk == session.pk


@pytest.mark.django_db
class TestRecordProgress:
    """Tests for session progress."""

    def test_two_completed_one_failed(self, user):
        """Test session completes when every file is accounted for."""
        token = create_session('material_document', 3, user).session_token

        record_progress(token, completed=True)
        session = record_progress(token, completed=True)
        assert session.status == SessionStatus.UPLOADING

        session = record_progress(token, failed=True)

        assert session.completed_files == 2
        assert session.failed_files == 1
        assert session.status == SessionStatus.COMPLETED

    def test_terminal_session_rejects_progress(self, user):
        """Test completed sessions cannot count more files."""
        token = create_session('user_avatar', 1, user).session_token
        record_progress(token, completed=True)

        with pytest.raises(UploadStateError, match='already completed'):
            record_progress(token, failed=True)

        session = get_session(token)
        assert session.completed_files == 1
        assert session.failed_files == 0

    def test_both_counters_at_once(self, user):
        """Test one call may count a completed and a failed file."""
        token = create_session('user_avatar', 2, user).session_token

        session = record_progress(token, completed=True, failed=True)

        assert session.processed_files == 2
        assert session.status == SessionStatus.COMPLETED

    def test_increment_beyond_total(self, user):
        """Test counting two files when one is left is rejected."""
        token = create_session('user_avatar', 2, user).session_token
        record_progress(token, completed=True)

        with pytest.raises(UploadStateError, match='cannot exceed'):
            record_progress(token, completed=True, failed=True)

        assert get_session(token).processed_files == 1

    def test_requires_a_counter(self, user):
        """Test a call with neither flag is invalid."""
        token = create_session('user_avatar', 1, user).session_token

        with pytest.raises(UploadValidationError):
            record_progress(token)

    def test_unknown_token(self, db):
        """Test unknown token is not found."""
        with pytest.raises(UploadNotFoundError):
            record_progress('f' * 32, completed=True)

    def test_updates_timestamp(self, user):
        """Test progress touches updated_at."""
        session = create_session('user_avatar', 3, user)

        updated = record_progress(session.session_token, failed=True)

        assert updated.updated_at >= session.updated_at

"""Tests for UploadRecord model."""

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from server.apps.uploads.models import UploadRecord, UploadStatus


@pytest.mark.django_db
class TestUploadRecordModel:
    """Tests for UploadRecord model behavior."""

    def test_defaults(self, make_record):
        """Test new records start uploading with size 0."""
        record = make_record()

        assert record.status == UploadStatus.UPLOADING
        assert record.file_size == 0
        assert record.public_url == ''
        assert record.metadata == {}
        assert record.processing_info == {}
        assert record.deleted_at is None

    def test_str(self, make_record):
        """Test string representation."""
        record = make_record()

        assert str(record) == 'material_document:notes.pdf (uploading)'

    def test_get_extension(self, make_record):
        """Test extension extraction is lowercase without dot."""
        record = make_record(original_name='Lecture 1.MP4')

        assert record.get_extension() == 'mp4'

    def test_associations(self, make_record):
        """Test association value object mirrors the fields."""
        record = make_record()

        assert record.associations.as_fields() == {
            'community_id': None,
            'course_id': None,
            'module_id': None,
            'material_id': None,
        }

    def test_default_manager_hides_deleted(self, make_record):
        """Test soft-deleted rows are only visible through all_objects."""
        active = make_record(status=UploadStatus.COMPLETED)
        deleted = make_record(status=UploadStatus.DELETED)

        assert list(UploadRecord.objects.all()) == [active]
        assert set(UploadRecord.all_objects.all()) == {active, deleted}

    def test_queryset_helpers(self, make_record, user, other_user):
        """Test completed() and uploaded_by() filters."""
        completed = make_record(status=UploadStatus.COMPLETED)
        make_record(status=UploadStatus.FAILED)
        make_record(status=UploadStatus.COMPLETED, owner=other_user)

        mine = UploadRecord.objects.completed().uploaded_by(user)

        assert list(mine) == [completed]

    def test_user_related_name(self, make_record, user):
        """Test uploads are reachable from the user."""
        record = make_record()

        assert list(user.uploads.all()) == [record]


@pytest.mark.django_db
class TestUploadRecordConstraints:
    """Tests for database check constraints."""

    def test_size_requires_completed(self, make_record):
        """Test pending uploads cannot carry a size."""
        with pytest.raises(IntegrityError), transaction.atomic():
            make_record(file_size=100)

    def test_presigned_url_only_while_uploading(self, make_record):
        """Test completed uploads cannot keep a presigned URL."""
        with pytest.raises(IntegrityError), transaction.atomic():
            make_record(
                status=UploadStatus.COMPLETED,
                presigned_url='https://storage.test/signed',
            )

    def test_deleted_at_requires_deleted(self, make_record):
        """Test deletion timestamp implies deleted status."""
        with pytest.raises(IntegrityError), transaction.atomic():
            make_record(
                status=UploadStatus.COMPLETED,
                deleted_at=timezone.now(),
            )

    def test_public_url_requires_completed(self, make_record):
        """Test pending uploads cannot expose a public URL."""
        with pytest.raises(IntegrityError), transaction.atomic():
            make_record(public_url='https://cdn.example.com/a.png')

    def test_negative_size(self, make_record):
        """Test size cannot be negative."""
        with pytest.raises(IntegrityError), transaction.atomic():
            make_record(status=UploadStatus.COMPLETED, file_size=-1)

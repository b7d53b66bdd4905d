"""Shared fixtures for uploads app tests."""

from datetime import timedelta

import boto3
import pytest
from django.apps import apps
from django.contrib.auth import get_user_model
from django.utils import timezone
from moto import mock_aws

from server.apps.uploads.config import UploadSettings
from server.apps.uploads.exceptions import UpstreamStorageError
from server.apps.uploads.infrastructure.storage import UploadStorage
from server.apps.uploads.logic.service import UploadService
from server.apps.uploads.models import UploadRecord, UploadStatus

User = get_user_model()

BUCKET = 'uploads'
PUBLIC_BUCKET = 'uploads-public'
PRIVATE_BUCKET = 'uploads-private'


class StubStorage:
    """In-memory object storage that records calls.

    Set ``fail`` to make every call raise UpstreamStorageError.
    """

    def __init__(self) -> None:
        self.deleted: list[tuple[str, str]] = []
        self.signed: list[tuple[str, str, str]] = []
        self.fail = False

    def _check(self, operation: str, bucket: str, key: str) -> None:
        if self.fail:
            raise UpstreamStorageError(operation, bucket, key)

    def presigned_put_url(self, bucket, key, content_type, expires_in):
        self._check('put_object', bucket, key)
        self.signed.append(('put', bucket, key))
        return f'https://storage.test/{bucket}/{key}?X-Expires={expires_in}'

    def presigned_get_url(self, bucket, key, expires_in):
        self._check('get_object', bucket, key)
        self.signed.append(('get', bucket, key))
        return f'https://storage.test/{bucket}/{key}?X-Expires={expires_in}&get'

    def delete_object(self, bucket, key):
        self._check('delete_object', bucket, key)
        self.deleted.append((bucket, key))


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with single and split buckets.

    Yields:
        boto3 S3 resource with the buckets created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')

        for bucket in (BUCKET, PUBLIC_BUCKET, PRIVATE_BUCKET):
            conn.create_bucket(Bucket=bucket)

        yield conn


@pytest.fixture
def upload_settings():
    """Single-bucket configuration with default expiry bounds.

    Returns:
        UploadSettings instance.
    """
    return UploadSettings(bucket=BUCKET)


@pytest.fixture
def split_settings():
    """Configuration routing public and private uploads separately.

    Returns:
        UploadSettings instance.
    """
    return UploadSettings(
        bucket=BUCKET,
        public_bucket=PUBLIC_BUCKET,
        private_bucket=PRIVATE_BUCKET,
        public_domain='https://cdn.example.com/',
    )


@pytest.fixture
def upload_storage(mock_s3):
    """Storage backend talking to the mocked S3.

    Returns:
        UploadStorage instance.
    """
    return UploadStorage(
        bucket_name=BUCKET,
        access_key='testing',
        secret_key='testing',
        region_name='us-east-1',
        signature_version='s3v4',
    )


@pytest.fixture
def stub_storage():
    """In-memory storage double.

    Returns:
        StubStorage instance.
    """
    return StubStorage()


@pytest.fixture
def upload_service(upload_settings, upload_storage, monkeypatch):
    """Service on mocked S3, installed as the app-wide instance.

    Returns:
        UploadService instance.
    """
    service = UploadService(upload_settings, upload_storage)
    monkeypatch.setattr(apps.get_app_config('uploads'), 'service', service)
    return service


@pytest.fixture
def stub_service(upload_settings, stub_storage, monkeypatch):
    """Service on the in-memory storage, installed app-wide.

    Returns:
        UploadService instance.
    """
    service = UploadService(upload_settings, stub_storage)
    monkeypatch.setattr(apps.get_app_config('uploads'), 'service', service)
    return service


@pytest.fixture
def make_record(user):
    """Factory creating upload records directly in a given state.

    Returns:
        Callable building UploadRecord instances.
    """
    def factory(
        status=UploadStatus.UPLOADING,
        category='material_document',
        owner=None,
        **fields,
    ):
        values = {
            'original_name': 'notes.pdf',
            'file_name': '1700000000000-abcd1234-notes.pdf',
            'content_type': 'application/pdf',
            'storage_bucket': BUCKET,
            'storage_key': (
                f'private/{category}/{user.pk}/1700000000000-abcd1234-notes.pdf'
            ),
        }
        if status == UploadStatus.UPLOADING:
            values['presigned_url'] = 'https://storage.test/signed'
            values['presigned_expires_at'] = (
                timezone.now() + timedelta(hours=1)
            )
        if status in {UploadStatus.COMPLETED, UploadStatus.DELETED}:
            values['file_size'] = 2048
        if status == UploadStatus.DELETED:
            values['deleted_at'] = timezone.now()
        values.update(fields)
        return UploadRecord.all_objects.create(
            status=status,
            category=category,
            uploaded_by=owner or user,
            **values,
        )
    return factory

"""JSON representations of upload objects for the HTTP layer."""

from typing import Any

from server.apps.uploads.models import UploadRecord, UploadSession
from server.apps.uploads.types import IssuedUpload


def _associations(instance: UploadRecord | UploadSession) -> dict[str, str | None]:
    return {
        field: str(value) if value else None
        for field, value in instance.associations.as_fields().items()
    }


def _isoformat(value: Any) -> str | None:
    return value.isoformat() if value else None


def serialize_issued_upload(issued: IssuedUpload) -> dict[str, Any]:
    """Serialize the result of a URL issuance."""
    return {
        'upload_id': str(issued.upload_id),
        'presigned_url': issued.presigned_url,
        'key': issued.key,
        'public_url': issued.public_url,
        'expires_at': issued.expires_at.isoformat(),
    }


def serialize_upload(record: UploadRecord) -> dict[str, Any]:
    """Serialize an upload record.

    Args:
        record: UploadRecord instance.

    Returns:
        JSON-compatible dictionary.
    """
    return {
        'id': str(record.id),
        'original_name': record.original_name,
        'file_name': record.file_name,
        'file_size': record.file_size,
        'content_type': record.content_type,
        'category': record.category,
        'status': record.status,
        'storage_bucket': record.storage_bucket,
        'storage_key': record.storage_key,
        'public_url': record.public_url,
        'presigned_url': record.presigned_url,
        'presigned_expires_at': _isoformat(record.presigned_expires_at),
        'metadata': record.metadata,
        'processing_info': record.processing_info,
        **_associations(record),
        'uploaded_by': record.uploaded_by_id,
        'created_at': _isoformat(record.created_at),
        'updated_at': _isoformat(record.updated_at),
        'deleted_at': _isoformat(record.deleted_at),
    }


def serialize_session(session: UploadSession) -> dict[str, Any]:
    """Serialize an upload session.

    Args:
        session: UploadSession instance.

    Returns:
        JSON-compatible dictionary.
    """
    return {
        'session_token': session.session_token,
        'category': session.category,
        'status': session.status,
        'total_files': session.total_files,
        'completed_files': session.completed_files,
        'failed_files': session.failed_files,
        'metadata': session.metadata,
        **_associations(session),
        'created_by': session.created_by_id,
        'created_at': _isoformat(session.created_at),
        'updated_at': _isoformat(session.updated_at),
        'expires_at': _isoformat(session.expires_at),
    }

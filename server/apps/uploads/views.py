"""JSON HTTP endpoints for the upload lifecycle.

Every response has the shape ``{"success": true, "data": ...}`` or
``{"success": false, "error": {...}}``.
"""

import functools
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import (
    require_GET,
    require_http_methods,
    require_POST,
)

from server.apps.uploads.exceptions import (
    AuthenticationRequiredError,
    RequestForbiddenError,
    UploadError,
    UploadValidationError,
)
from server.apps.uploads.logic.service import get_upload_service
from server.apps.uploads.serializers import (
    serialize_issued_upload,
    serialize_session,
    serialize_upload,
)
from server.apps.uploads.types import AssociationIds

logger = logging.getLogger(__name__)

_View = Callable[..., JsonResponse]


def _success(data: Any, status: int = 200) -> JsonResponse:
    return JsonResponse({'success': True, 'data': data}, status=status)


def _error(error: UploadError) -> JsonResponse:
    return JsonResponse(
        {
            'success': False,
            'error': {
                'type': error.error_type,
                'message': error.public_message,
                'status_code': error.status_code,
                'timestamp': timezone.now().isoformat(),
            },
        },
        status=error.status_code,
    )


def api_view(require_auth: bool = True) -> Callable[[_View], _View]:
    """Turn UploadError into an error response and check authentication.

    Args:
        require_auth: Reject anonymous requests with 401.

    Returns:
        View decorator.
    """
    def decorator(view: _View) -> _View:
        @functools.wraps(view)
        def wrapper(
            request: HttpRequest,
            *args: Any,
            **kwargs: Any,
        ) -> JsonResponse:
            try:
                if require_auth and not request.user.is_authenticated:
                    raise AuthenticationRequiredError()
                return view(request, *args, **kwargs)
            except UploadError as error:
                if error.status_code >= 500:
                    logger.error('Upload request failed: %s', error.message)
                return _error(error)
        return wrapper
    return decorator


def _json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except json.JSONDecodeError as error:
        raise UploadValidationError('Request body must be valid JSON') from error
    if not isinstance(body, dict):
        raise UploadValidationError('Request body must be a JSON object')
    return body


def _require_fields(body: dict[str, Any], *fields: str) -> None:
    missing = [field for field in fields if body.get(field) in (None, '')]
    if missing:
        raise UploadValidationError(
            f'{", ".join(missing)} required',
            field=missing[0],
        )


def _optional_int(body: Mapping[str, Any], field: str) -> int | None:
    raw_value = body.get(field)
    if raw_value in (None, ''):
        return None
    if isinstance(raw_value, bool):
        raise UploadValidationError(f'{field} must be an integer', field=field)
    if isinstance(raw_value, float):
        if not raw_value.is_integer():
            raise UploadValidationError(
                f'{field} must be an integer',
                field=field,
            )
        return int(raw_value)
    try:
        return int(raw_value)
    except (TypeError, ValueError) as error:
        raise UploadValidationError(
            f'{field} must be an integer',
            field=field,
        ) from error


@require_GET
@api_view(require_auth=False)
def validation_rules(request: HttpRequest) -> JsonResponse:
    """List the validation policy of every category."""
    return _success(get_upload_service().list_validation_rules())


@require_GET
@api_view(require_auth=False)
def max_file_size(request: HttpRequest, category: str) -> JsonResponse:
    """Get the maximum size of one category."""
    max_size = get_upload_service().get_max_file_size(category)
    return _success({
        'category': category,
        'max_size_bytes': max_size,
        'max_size_mb': round(max_size / (1024 * 1024)),
    })


@require_POST
@api_view()
def presigned_url(request: HttpRequest) -> JsonResponse:
    """Issue a presigned PUT URL for a new upload.

    Body: ``file_name``, ``content_type``, ``category`` (required),
    ``file_size``, ``expires_in`` and association ids (optional).
    """
    body = _json_body(request)
    _require_fields(body, 'file_name', 'content_type', 'category')

    issued = get_upload_service().issue(
        body['category'],
        body['file_name'],
        body['content_type'],
        request.user,
        declared_size=_optional_int(body, 'file_size'),
        expires_in=_optional_int(body, 'expires_in'),
        associations=AssociationIds.from_mapping(body),
    )
    return _success(serialize_issued_upload(issued))


@require_POST
@api_view()
def create_session(request: HttpRequest) -> JsonResponse:
    """Create an upload session."""
    body = _json_body(request)
    _require_fields(body, 'category', 'total_files')

    metadata = body.get('metadata') or {}
    if not isinstance(metadata, dict):
        raise UploadValidationError('metadata must be an object', field='metadata')

    session = get_upload_service().create_session(
        body['category'],
        _optional_int(body, 'total_files'),
        request.user,
        associations=AssociationIds.from_mapping(body),
        metadata=metadata,
    )
    return _success(serialize_session(session), status=201)


@require_GET
@api_view()
def session_detail(request: HttpRequest, session_token: str) -> JsonResponse:
    """Get an upload session by token."""
    session = get_upload_service().get_session(session_token)
    return _success(serialize_session(session))


@require_GET
@api_view()
def upload_stats(request: HttpRequest) -> JsonResponse:
    """Statistics over the current user's uploads."""
    return _success(get_upload_service().upload_stats(request.user))


@require_POST
@api_view()
def complete_upload(request: HttpRequest, upload_id: str) -> JsonResponse:
    """Report a finished upload.

    Body: ``file_size`` (required), ``metadata``, ``session_token``.
    """
    body = _json_body(request)
    _require_fields(body, 'file_size')

    metadata = body.get('metadata')
    if metadata is not None and not isinstance(metadata, dict):
        raise UploadValidationError('metadata must be an object', field='metadata')

    record = get_upload_service().complete(
        upload_id,
        _optional_int(body, 'file_size'),
        metadata=metadata,
        session_token=body.get('session_token'),
    )
    return _success(serialize_upload(record))


@require_POST
@api_view()
def fail_upload(request: HttpRequest, upload_id: str) -> JsonResponse:
    """Report a failed upload. Body: ``error``, ``session_token``."""
    body = _json_body(request)
    record = get_upload_service().fail(
        upload_id,
        reason=body.get('error'),
        session_token=body.get('session_token'),
    )
    return _success(serialize_upload(record))


@require_GET
@api_view(require_auth=False)
def download_url(request: HttpRequest, upload_id: str) -> JsonResponse:
    """Get a read URL for a completed upload."""
    url = get_upload_service().get_download_url(
        upload_id,
        expires_in=_optional_int(request.GET, 'expires_in'),
    )
    return _success({'download_url': url})


@require_http_methods(['GET', 'DELETE'])
@api_view()
def upload_detail(request: HttpRequest, upload_id: str) -> JsonResponse:
    """Get (GET) or soft-delete (DELETE) an upload."""
    service = get_upload_service()
    if request.method == 'DELETE':
        record = service.delete(upload_id)
    else:
        record = service.get_info(upload_id)
    return _success(serialize_upload(record))


def csrf_failure(request: HttpRequest, reason: str = '') -> JsonResponse:
    """Report a failed CSRF check in the API error format."""
    logger.warning('CSRF check failed for %s: %s', request.path, reason)
    return _error(RequestForbiddenError(reason))

"""Upload validation policy: size, content type and dimension limits."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Final

from django.core.exceptions import ImproperlyConfigured

from server.apps.uploads.exceptions import (
    UnknownCategoryError,
    UploadValidationError,
)
from server.apps.uploads.models import UploadCategory

_MB: Final = 1024 * 1024

_IMAGE_TYPES: Final = frozenset(('image/jpeg', 'image/png', 'image/webp'))


@dataclass(frozen=True, slots=True)
class Dimensions:
    """Maximum image size in pixels."""

    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ValidationRule:
    """Limits applied to every upload of one category."""

    max_size_bytes: int
    allowed_content_types: frozenset[str]
    max_dimensions: Dimensions | None = None

    def __post_init__(self) -> None:
        """Reject rules that could never accept a file."""
        if self.max_size_bytes <= 0:
            raise ImproperlyConfigured('max_size_bytes must be positive')
        if not self.allowed_content_types:
            raise ImproperlyConfigured('allowed_content_types cannot be empty')


VALIDATION_RULES: Final = MappingProxyType({
    UploadCategory.COMMUNITY_AVATAR: ValidationRule(
        max_size_bytes=2 * _MB,
        allowed_content_types=_IMAGE_TYPES,
        max_dimensions=Dimensions(width=800, height=800),
    ),
    UploadCategory.COMMUNITY_BANNER: ValidationRule(
        max_size_bytes=5 * _MB,
        allowed_content_types=_IMAGE_TYPES,
        max_dimensions=Dimensions(width=1920, height=600),
    ),
    UploadCategory.COURSE_THUMBNAIL: ValidationRule(
        max_size_bytes=3 * _MB,
        allowed_content_types=_IMAGE_TYPES,
        max_dimensions=Dimensions(width=1200, height=675),
    ),
    UploadCategory.MODULE_THUMBNAIL: ValidationRule(
        max_size_bytes=2 * _MB,
        allowed_content_types=_IMAGE_TYPES,
        max_dimensions=Dimensions(width=800, height=450),
    ),
    UploadCategory.USER_AVATAR: ValidationRule(
        max_size_bytes=1 * _MB,
        allowed_content_types=_IMAGE_TYPES,
        max_dimensions=Dimensions(width=400, height=400),
    ),
    UploadCategory.MATERIAL_VIDEO: ValidationRule(
        max_size_bytes=500 * _MB,
        allowed_content_types=frozenset((
            'video/mp4',
            'video/webm',
            'video/quicktime',
        )),
    ),
    UploadCategory.MATERIAL_FILE: ValidationRule(
        max_size_bytes=100 * _MB,
        allowed_content_types=frozenset((
            'application/pdf',
            'application/zip',
            'application/x-zip-compressed',
        )),
    ),
    UploadCategory.MATERIAL_DOCUMENT: ValidationRule(
        max_size_bytes=50 * _MB,
        allowed_content_types=frozenset((
            'application/pdf',
            'application/msword',
            'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
            'application/vnd.ms-powerpoint',
            'application/vnd.openxmlformats-officedocument.presentationml.presentation',
            'text/plain',
        )),
    ),
})

# Every category must carry exactly one rule
_missing_rules = set(UploadCategory) - set(VALIDATION_RULES)
if _missing_rules:
    raise ImproperlyConfigured(
        f'No validation rule for categories: {sorted(_missing_rules)}',
    )


def parse_category(value: object) -> UploadCategory:
    """Convert caller input into a known category.

    Args:
        value: Category value (string or UploadCategory).

    Returns:
        UploadCategory member.

    Raises:
        UnknownCategoryError: If the value is not a known category.
    """
    try:
        return UploadCategory(value)
    except ValueError as error:
        raise UnknownCategoryError(value, UploadCategory.values) from error


def get_rule(category: object) -> ValidationRule:
    """Get the validation rule for a category.

    Raises:
        UnknownCategoryError: If the category is unknown.
    """
    return VALIDATION_RULES[parse_category(category)]


def format_size_limit(size_bytes: int) -> str:
    """Format a byte limit the way clients see it (e.g. '500MB')."""
    return f'{round(size_bytes / _MB)}MB'


def get_max_file_size(category: object) -> int:
    """Get maximum allowed size in bytes for a category."""
    return get_rule(category).max_size_bytes


def validate_size(category: object, size: int) -> None:
    """Check a file size against the category limit.

    Args:
        category: Upload category.
        size: Size in bytes (declared or actual).

    Raises:
        UnknownCategoryError: If the category is unknown.
        UploadValidationError: If size is not positive or exceeds the limit.
    """
    upload_category = parse_category(category)
    rule = VALIDATION_RULES[upload_category]

    if size <= 0:
        raise UploadValidationError(
            'File size must be a positive number of bytes',
            field='file_size',
        )

    if size > rule.max_size_bytes:
        raise UploadValidationError(
            f'File size must be less than '
            f'{format_size_limit(rule.max_size_bytes)} '
            f'({rule.max_size_bytes} bytes) for {upload_category.value}',
            field='file_size',
        )


def validate_content_type(category: object, content_type: str) -> None:
    """Check a MIME type against the category allow-list.

    Args:
        category: Upload category.
        content_type: Declared MIME type.

    Raises:
        UnknownCategoryError: If the category is unknown.
        UploadValidationError: If the type is not allowed.
    """
    upload_category = parse_category(category)
    rule = VALIDATION_RULES[upload_category]

    if content_type not in rule.allowed_content_types:
        raise UploadValidationError(
            f'Invalid file type for {upload_category.value}. '
            f'Allowed types: {", ".join(sorted(rule.allowed_content_types))}',
            field='content_type',
        )


def validate_dimensions(category: object, width: int, height: int) -> None:
    """Check image dimensions when the category limits them.

    Args:
        category: Upload category.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        UnknownCategoryError: If the category is unknown.
        UploadValidationError: If the image is larger than allowed.
    """
    upload_category = parse_category(category)
    limit = VALIDATION_RULES[upload_category].max_dimensions
    if limit is None:
        return

    if width > limit.width or height > limit.height:
        raise UploadValidationError(
            f'Image dimensions must not exceed '
            f'{limit.width}x{limit.height} for {upload_category.value}',
            field='metadata',
        )


def list_validation_rules() -> list[dict[str, Any]]:
    """Describe the whole policy table for client-side pre-checks.

    Returns:
        One dictionary per category, in enumeration order.
    """
    rules = []
    for category in UploadCategory:
        rule = VALIDATION_RULES[category]
        dimensions = rule.max_dimensions
        rules.append({
            'category': category.value,
            'max_size_bytes': rule.max_size_bytes,
            'max_size_mb': round(rule.max_size_bytes / _MB),
            'max_size_formatted': format_size_limit(rule.max_size_bytes),
            'allowed_types': sorted(rule.allowed_content_types),
            'max_dimensions': (
                {'width': dimensions.width, 'height': dimensions.height}
                if dimensions else None
            ),
        })
    return rules

"""Tests for the upload validation policy."""

import pytest
from django.core.exceptions import ImproperlyConfigured

from server.apps.uploads.exceptions import (
    UnknownCategoryError,
    UploadValidationError,
)
from server.apps.uploads.logic.validation_rules import (
    VALIDATION_RULES,
    Dimensions,
    ValidationRule,
    format_size_limit,
    get_max_file_size,
    get_rule,
    list_validation_rules,
    parse_category,
    validate_content_type,
    validate_dimensions,
    validate_size,
)
from server.apps.uploads.models import PUBLIC_CATEGORIES, UploadCategory

_MB = 1024 * 1024

_EXPECTED_LIMITS = {
    'community_avatar': 2 * _MB,
    'community_banner': 5 * _MB,
    'course_thumbnail': 3 * _MB,
    'module_thumbnail': 2 * _MB,
    'user_avatar': 1 * _MB,
    'material_video': 500 * _MB,
    'material_file': 100 * _MB,
    'material_document': 50 * _MB,
}

_ACCEPTED_TYPE = {
    'community_avatar': 'image/png',
    'community_banner': 'image/jpeg',
    'course_thumbnail': 'image/webp',
    'module_thumbnail': 'image/png',
    'user_avatar': 'image/jpeg',
    'material_video': 'video/mp4',
    'material_file': 'application/zip',
    'material_document': 'text/plain',
}


class TestRuleTable:
    """Tests for the rule table itself."""

    def test_every_category_has_a_rule(self):
        """Test the table covers the whole enumeration."""
        assert set(VALIDATION_RULES) == set(UploadCategory)

    @pytest.mark.parametrize(('category', 'limit'), _EXPECTED_LIMITS.items())
    def test_size_limits(self, category, limit):
        """Test configured size limit per category."""
        assert get_max_file_size(category) == limit

    def test_image_categories_limit_dimensions(self):
        """Test only public image categories carry dimension limits."""
        for category, rule in VALIDATION_RULES.items():
            has_dimensions = rule.max_dimensions is not None
            assert has_dimensions == (category in PUBLIC_CATEGORIES)

    def test_rule_rejects_non_positive_size(self):
        """Test a rule with zero size limit cannot be built."""
        with pytest.raises(ImproperlyConfigured):
            ValidationRule(
                max_size_bytes=0,
                allowed_content_types=frozenset(('image/png',)),
            )

    def test_rule_rejects_empty_content_types(self):
        """Test a rule without allowed types cannot be built."""
        with pytest.raises(ImproperlyConfigured):
            ValidationRule(max_size_bytes=1, allowed_content_types=frozenset())

    def test_get_rule_returns_dimensions(self):
        """Test rule lookup for an image category."""
        rule = get_rule('community_banner')

        assert rule.max_dimensions == Dimensions(width=1920, height=600)


class TestParseCategory:
    """Tests for category parsing."""

    def test_accepts_string_value(self):
        """Test string input maps to the enum member."""
        assert parse_category('user_avatar') is UploadCategory.USER_AVATAR

    def test_rejects_unknown_value(self):
        """Test unknown category lists the valid ones."""
        with pytest.raises(UnknownCategoryError) as exc_info:
            parse_category('profile_picture')

        assert exc_info.value.field == 'category'
        assert 'profile_picture' in str(exc_info.value)
        assert 'material_video' in str(exc_info.value)

    def test_unknown_category_is_validation_error(self):
        """Test callers can catch unknown categories as validation errors."""
        with pytest.raises(UploadValidationError):
            get_max_file_size('nope')


class TestValidateSize:
    """Tests for size validation."""

    @pytest.mark.parametrize(('category', 'limit'), _EXPECTED_LIMITS.items())
    def test_accepts_size_at_limit(self, category, limit):
        """Test size equal to the limit passes."""
        validate_size(category, limit)

    @pytest.mark.parametrize(('category', 'limit'), _EXPECTED_LIMITS.items())
    def test_rejects_size_over_limit(self, category, limit):
        """Test size one byte over the limit fails with the limit in MB."""
        with pytest.raises(UploadValidationError) as exc_info:
            validate_size(category, limit + 1)

        message = str(exc_info.value)
        assert f'{limit // _MB}MB' in message
        assert category in message
        assert exc_info.value.field == 'file_size'

    def test_video_over_limit_message(self):
        """Test 600MB video cites the 500MB limit."""
        with pytest.raises(UploadValidationError, match='500MB'):
            validate_size('material_video', 600 * _MB)

    @pytest.mark.parametrize('size', [0, -1])
    def test_rejects_non_positive_size(self, size):
        """Test zero and negative sizes are rejected."""
        with pytest.raises(UploadValidationError, match='positive'):
            validate_size('material_file', size)


class TestValidateContentType:
    """Tests for content type validation."""

    @pytest.mark.parametrize(('category', 'content_type'), _ACCEPTED_TYPE.items())
    def test_accepts_allowed_type(self, category, content_type):
        """Test an allowed type passes for each category."""
        validate_content_type(category, content_type)

    @pytest.mark.parametrize('category', list(UploadCategory))
    def test_rejects_executable(self, category):
        """Test a type no category allows is rejected."""
        with pytest.raises(UploadValidationError) as exc_info:
            validate_content_type(category, 'application/x-msdownload')

        message = str(exc_info.value)
        assert message.startswith(f'Invalid file type for {category.value}.')
        assert 'Allowed types:' in message
        assert exc_info.value.field == 'content_type'

    def test_rejects_image_for_video(self):
        """Test image type is not accepted as a video."""
        with pytest.raises(UploadValidationError, match='video/mp4'):
            validate_content_type('material_video', 'image/png')

    def test_docx_allowed_for_documents(self):
        """Test Word documents are accepted for material_document."""
        validate_content_type(
            'material_document',
            'application/vnd.openxmlformats-officedocument'
            '.wordprocessingml.document',
        )

    def test_pdf_not_allowed_for_images(self):
        """Test PDF is not accepted as an avatar."""
        with pytest.raises(UploadValidationError):
            validate_content_type('user_avatar', 'application/pdf')


class TestValidateDimensions:
    """Tests for image dimension validation."""

    def test_accepts_dimensions_within_limit(self):
        """Test image at exactly the limit passes."""
        validate_dimensions('user_avatar', 400, 400)

    def test_rejects_oversized_image(self):
        """Test image wider than the limit fails."""
        with pytest.raises(UploadValidationError, match='400x400'):
            validate_dimensions('user_avatar', 401, 100)

    def test_ignores_categories_without_limit(self):
        """Test video has no dimension limit."""
        validate_dimensions('material_video', 3840, 2160)


class TestDescribeRules:
    """Tests for the public description of the policy."""

    def test_lists_every_category(self):
        """Test one entry per category in enumeration order."""
        rules = list_validation_rules()

        assert [rule['category'] for rule in rules] == UploadCategory.values

    def test_entry_shape(self):
        """Test entry fields for an image category."""
        rules = {rule['category']: rule for rule in list_validation_rules()}
        avatar = rules['user_avatar']

        assert avatar['max_size_bytes'] == _MB
        assert avatar['max_size_mb'] == 1
        assert avatar['max_size_formatted'] == '1MB'
        assert avatar['allowed_types'] == [
            'image/jpeg',
            'image/png',
            'image/webp',
        ]
        assert avatar['max_dimensions'] == {'width': 400, 'height': 400}
        assert rules['material_file']['max_dimensions'] is None

    def test_format_size_limit(self):
        """Test formatting of byte limits."""
        assert format_size_limit(500 * _MB) == '500MB'

"""
Tests for the ImagePrune exception hierarchy.
"""

import pytest

from imageprune.core.exceptions import (
    ConfigurationError, ErrorCode, ErrorContext, FilterError, ImagePruneError,
    InvalidFilterSyntax, InvalidUntilTimestamp, InventoryError, LabelReadFailure,
    NoUntilTimestamp, PatternCompileFailure, RecoverySuggestion, ReferenceFormatError,
    ReferenceResolutionFailure, UnparsableUntilTimestamp
)


class TestImagePruneError:
    """Test the base error class."""

    def test_defaults(self):
        error = ImagePruneError("something broke")
        assert str(error) == "something broke"
        assert error.error_code == ErrorCode.UNKNOWN_ERROR
        assert error.context.correlation_id
        assert "platform" in error.context.system_info
        assert error.suggestions == []

    def test_keeps_given_correlation_id(self):
        error = ImagePruneError("x", context=ErrorContext(correlation_id="abc123"))
        assert error.context.correlation_id == "abc123"

    def test_suggestions_sorted_by_priority(self):
        error = ImagePruneError("x")
        error.add_suggestion(RecoverySuggestion("later", "second", priority=2))
        error.add_suggestion(RecoverySuggestion("first", "first", priority=1))
        assert [s.action for s in error.suggestions] == ["first", "later"]

    def test_user_message(self):
        error = ImagePruneError(
            "cannot continue",
            error_code=ErrorCode.INTERNAL_ERROR,
            suggestions=[RecoverySuggestion("Retry", "Try again", command="imageprune image ls")]
        )
        message = error.get_user_message()
        assert message.startswith("Error: cannot continue")
        assert "Error Code: 9001" in message
        assert "Command: imageprune image ls" in message

    def test_unknown_code_not_shown(self):
        assert "Error Code" not in ImagePruneError("x").get_user_message()

    def test_debug_info(self):
        cause = ValueError("bad")
        info = ImagePruneError("wrapped", cause=cause).get_debug_info()
        assert info["error_type"] == "ImagePruneError"
        assert info["cause"] == {"type": "ValueError", "message": "bad"}
        assert info["context"]["correlation_id"]


class TestFilterErrors:
    """Test filter-related errors."""

    def test_invalid_syntax(self):
        error = InvalidFilterSyntax("dangling=maybe", "expected true or false")
        assert error.message == "invalid filter 'dangling=maybe': expected true or false"
        assert error.error_code == ErrorCode.FILTER_INVALID_SYNTAX
        assert error.filter_expression == "dangling=maybe"
        assert error.context.filter_expression == "dangling=maybe"
        assert error.suggestions

    def test_invalid_syntax_without_reason(self):
        assert InvalidFilterSyntax("foo").message == "invalid filter 'foo'"

    def test_pattern_compile_failure(self):
        error = PatternCompileFailure("(", "missing )")
        assert isinstance(error, FilterError)
        assert error.pattern == "("
        assert error.error_code == ErrorCode.FILTER_PATTERN_COMPILE
        assert error.filter_expression == "reference=("

    def test_until_errors(self):
        empty = NoUntilTimestamp()
        bad = UnparsableUntilTimestamp("soon")
        assert isinstance(empty, InvalidUntilTimestamp)
        assert isinstance(bad, InvalidUntilTimestamp)
        assert empty.error_code == ErrorCode.FILTER_NO_UNTIL_TIMESTAMP
        assert bad.error_code == ErrorCode.FILTER_UNPARSABLE_UNTIL_TIMESTAMP
        assert bad.value == "soon"


class TestReferenceErrors:
    """Test reference parsing and resolution errors."""

    def test_format_error(self):
        error = ReferenceFormatError("Alpine", "repository name must be lowercase")
        assert error.reference == "Alpine"
        assert error.message == "repository name must be lowercase: 'Alpine'"
        assert error.error_code == ErrorCode.REFERENCE_INVALID_FORMAT

    def test_resolution_failure(self):
        error = ReferenceResolutionFailure("no such image: nosuch", reference="nosuch")
        assert error.context.image_name == "nosuch"
        assert error.suggestions[0].command == "imageprune image ls"

    def test_resolution_failure_with_invalid_format(self):
        error = ReferenceResolutionFailure(
            "bad reference", reference="Bad", error_code=ErrorCode.REFERENCE_INVALID_FORMAT
        )
        assert error.suggestions == []


class TestInventoryErrors:
    """Test inventory errors."""

    def test_label_read_failure(self):
        error = LabelReadFailure("alpine:3.19", "blob missing")
        assert isinstance(error, InventoryError)
        assert error.image_name == "alpine:3.19"
        assert error.context.image_name == "alpine:3.19"
        assert error.message == "failed to read image config for 'alpine:3.19': blob missing"

    def test_inventory_error_code(self):
        error = InventoryError("gone", error_code=ErrorCode.INVENTORY_NOT_FOUND)
        assert error.error_code == ErrorCode.INVENTORY_NOT_FOUND
        assert InventoryError("unreadable").error_code == ErrorCode.INVENTORY_READ_FAILED


class TestConfigurationError:
    """Test configuration errors."""

    def test_invalid_value_adds_suggestion(self):
        error = ConfigurationError(
            "bad level", error_code=ErrorCode.CONFIG_INVALID_VALUE,
            config_key="logging.level", config_value="LOUD"
        )
        assert error.context.user_context == {"config_key": "logging.level", "config_value": "LOUD"}
        assert error.suggestions

    def test_invalid_format_has_no_suggestion(self):
        error = ConfigurationError("broken", config_key="output.format")
        assert error.error_code == ErrorCode.CONFIG_INVALID_FORMAT
        assert error.context.user_context["config_key"] == "output.format"
        assert error.suggestions == []


@pytest.mark.parametrize("error", [
    InvalidFilterSyntax("x"),
    PatternCompileFailure("x"),
    NoUntilTimestamp(),
    ReferenceFormatError("x"),
    ReferenceResolutionFailure("x"),
    LabelReadFailure("x"),
    ConfigurationError("x"),
])
def test_all_errors_share_base(error):
    assert isinstance(error, ImagePruneError)

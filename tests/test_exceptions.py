"""Tests for the gridkit exception hierarchy."""

import pytest

from gridkit.exceptions import EditValidationError, FeatureError, GridKitException, SessionError


class TestGridKitException:
    """Tests for the base exception."""

    def test_message_only(self):
        """Without context the message is the string form."""
        exc = GridKitException("Something failed")
        assert str(exc) == "Something failed"
        assert exc.message == "Something failed"
        assert exc.context == {}

    def test_context_in_str(self):
        """Context is appended to the message."""
        exc = GridKitException("Row missing", feature="editing", row_id="r1")
        assert str(exc) == "Row missing (feature='editing', row_id='r1')"
        assert exc.context["row_id"] == "r1"

    @pytest.mark.parametrize("cls", [FeatureError, SessionError, EditValidationError])
    def test_subclasses_caught_by_base(self, cls):
        """Every gridkit error is a GridKitException."""
        args = ("boom", {}) if cls is EditValidationError else ("boom",)
        with pytest.raises(GridKitException):
            raise cls(*args)


class TestFeatureError:
    """Tests for FeatureError."""

    def test_feature_attribute(self):
        """The feature key is kept as an attribute and in context."""
        exc = FeatureError("Unknown feature 'grouping'", feature="grouping")
        assert exc.feature == "grouping"
        assert "feature='grouping'" in str(exc)


class TestEditValidationError:
    """Tests for EditValidationError."""

    def test_errors_attribute(self):
        """Per-row errors are kept and row ids appear in context."""
        errors = {"r2": {"hours": "Hours must be positive"}, "r1": {"name": "Required"}}
        exc = EditValidationError("2 edited row(s) failed validation", errors=errors)
        assert exc.errors is errors
        assert exc.context["rows"] == ["r1", "r2"]

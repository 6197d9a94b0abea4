"""
Unit tests for error hierarchy.

Tests cover:
- Base PermissionsPolicyError behavior
- URL, header, config and fetch errors with context
- Error serialization
"""

import pytest

from permissions_policy.errors import (
    ERROR_CONFIG_INVALID_DEFAULT,
    ERROR_CONFIG_LOAD,
    ERROR_FETCH_FAILED,
    ERROR_HEADER_MISSING_ALLOWLIST,
    ERROR_HEADER_SYNTAX,
    ERROR_HEADER_UNKNOWN_VALUE,
    ERROR_URL_INVALID,
    ConfigError,
    ConfigLoadError,
    FetchError,
    InvalidDefaultAllowlistError,
    InvalidURLError,
    MalformedHeaderError,
    MissingAllowlistError,
    PermissionsPolicyError,
    UnknownHeaderValueError,
)


class TestPermissionsPolicyError:
    """Tests for base PermissionsPolicyError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = PermissionsPolicyError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_str_without_suggestion(self) -> None:
        """String format includes the code."""
        err = PermissionsPolicyError(message="Failed", code=42)
        assert str(err) == "[E42] Failed"

    def test_str_with_suggestion(self) -> None:
        """Suggestion is appended on its own line."""
        err = PermissionsPolicyError(message="Failed", code=1, suggestion="Try again")
        assert str(err) == "[E1] Failed\nSuggestion: Try again"

    def test_repr(self) -> None:
        """Repr names the class."""
        err = PermissionsPolicyError(message="Failed", code=1)
        assert repr(err).startswith("PermissionsPolicyError(message='Failed', code=1")

    def test_to_dict(self) -> None:
        """Serialization includes type and context."""
        err = PermissionsPolicyError(message="Failed", code=1, context={"k": "v"})
        assert err.to_dict() == {
            "error_type": "PermissionsPolicyError",
            "message": "Failed",
            "code": 1,
            "suggestion": None,
            "context": {"k": "v"},
        }

    def test_is_exception(self) -> None:
        """Errors can be raised and caught."""
        with pytest.raises(PermissionsPolicyError):
            raise PermissionsPolicyError(message="boom")


class TestInvalidURLError:
    """Tests for InvalidURLError."""

    def test_defaults(self) -> None:
        """Message, code and context are derived."""
        err = InvalidURLError(url="example.com", reason="missing scheme")
        assert err.code == ERROR_URL_INVALID
        assert "example.com" in err.message
        assert "missing scheme" in err.message
        assert err.suggestion
        assert err.context == {"url": "example.com", "reason": "missing scheme"}

    def test_without_reason(self) -> None:
        """No trailing colon without a reason."""
        err = InvalidURLError(url="x")
        assert err.message == "Invalid URL 'x'"


class TestHeaderErrors:
    """Tests for header parsing errors."""

    def test_malformed_header(self) -> None:
        """Syntax errors carry the parser diagnostic."""
        err = MalformedHeaderError(header_value="(", underlying_error="unexpected end")
        assert err.code == ERROR_HEADER_SYNTAX
        assert err.message == "Invalid header value: unexpected end"
        assert err.context["header_value"] == "("

    def test_malformed_header_default_message(self) -> None:
        """A generic message without a diagnostic."""
        err = MalformedHeaderError(header_value="(")
        assert "invalid dictionary syntax" in err.message

    def test_missing_allowlist(self) -> None:
        """Missing allowlists name the feature."""
        err = MissingAllowlistError(header_value="fullscreen", feature="fullscreen")
        assert err.code == ERROR_HEADER_MISSING_ALLOWLIST
        assert "fullscreen" in err.message
        assert "fullscreen=()" in err.suggestion
        assert err.context["feature"] == "fullscreen"
        assert isinstance(err, MalformedHeaderError)

    def test_unknown_value(self) -> None:
        """Unknown values keep the offending value."""
        err = UnknownHeaderValueError(header_value="fullscreen=1", feature="fullscreen", value="1")
        assert err.code == ERROR_HEADER_UNKNOWN_VALUE
        assert err.context["value"] == "1"
        assert isinstance(err, MalformedHeaderError)


class TestConfigErrors:
    """Tests for configuration errors."""

    def test_invalid_default(self) -> None:
        """Invalid defaults list the accepted values."""
        err = InvalidDefaultAllowlistError(feature="camera", value="everyone")
        assert err.code == ERROR_CONFIG_INVALID_DEFAULT
        assert "'self'" in err.suggestion
        assert err.context == {"source": "", "feature": "camera", "value": "everyone"}
        assert isinstance(err, ConfigError)

    def test_config_load(self) -> None:
        """Load errors name the source."""
        err = ConfigLoadError(source="policy.yaml", underlying_error="bad yaml")
        assert err.code == ERROR_CONFIG_LOAD
        assert err.message == "Failed to load config policy.yaml: bad yaml"
        assert err.context["source"] == "policy.yaml"


class TestFetchError:
    """Tests for FetchError."""

    def test_defaults(self) -> None:
        """Fetch errors name the URL."""
        err = FetchError(url="https://a.example", underlying_error="timed out")
        assert err.code == ERROR_FETCH_FAILED
        assert err.message == "Failed to fetch https://a.example: timed out"
        assert err.context == {"url": "https://a.example", "underlying_error": "timed out"}


class TestHierarchy:
    """Every error is a PermissionsPolicyError."""

    @pytest.mark.parametrize(
        "err",
        [
            InvalidURLError(url="x"),
            MalformedHeaderError(header_value="x"),
            MissingAllowlistError(feature="x"),
            UnknownHeaderValueError(feature="x", value="1"),
            InvalidDefaultAllowlistError(feature="x", value="y"),
            ConfigLoadError(source="x"),
            FetchError(url="x"),
        ],
    )
    def test_catchable_as_base(self, err: PermissionsPolicyError) -> None:
        """A single except clause catches everything."""
        assert isinstance(err, PermissionsPolicyError)
        assert err.code != 0
        assert str(err).startswith(f"[E{err.code}]")

"""
Exception hierarchy for permissions_policy.

All exceptions inherit from PermissionsPolicyError, allowing callers to catch
every library-specific failure with a single except clause.

Exception Categories:
    - InvalidURLError: An origin string cannot be canonicalized
    - MalformedHeaderError: Permissions-Policy header is not a valid dictionary
    - InvalidDefaultAllowlistError: Unknown value in a default allowlist
    - ConfigLoadError: A YAML scenario file is unreadable or invalid
    - FetchError: Fetching a page's headers failed (CLI only)

Attribute-syntax problems never raise: malformed `allow` directives are
skipped, and invalid targets are dropped.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# URL errors: 1xxx
ERROR_URL_INVALID = 1001

# Header errors: 2xxx
ERROR_HEADER_SYNTAX = 2001
ERROR_HEADER_MISSING_ALLOWLIST = 2002
ERROR_HEADER_UNKNOWN_VALUE = 2003

# Configuration errors: 3xxx
ERROR_CONFIG_INVALID_DEFAULT = 3001
ERROR_CONFIG_LOAD = 3002

# Fetch errors: 4xxx
ERROR_FETCH_FAILED = 4001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class PermissionsPolicyError(Exception):
    """
    Base exception for all permissions_policy errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# URL Errors
# =============================================================================


@dataclass
class InvalidURLError(PermissionsPolicyError):
    """
    Raised when a string cannot be turned into an origin.

    Fatal for the page and frame origins given at construction. Inside
    allow-list targets the same failure is tolerated and the token dropped.

    Attributes:
        url: The offending value
        reason: Why canonicalization failed
    """

    url: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            detail = f": {self.reason}" if self.reason else ""
            self.message = f"Invalid URL {self.url!r}{detail}"
        if self.code == 0:
            self.code = ERROR_URL_INVALID
        if not self.suggestion:
            self.suggestion = "Pass an absolute URL such as https://example.com"
        self.context.update({
            "url": self.url,
            "reason": self.reason,
        })


# =============================================================================
# Header Errors
# =============================================================================


@dataclass
class MalformedHeaderError(PermissionsPolicyError):
    """
    Raised when a Permissions-Policy header cannot be parsed.

    The underlying structured-field parser error, if any, is chained as
    ``__cause__``; its text is kept in ``underlying_error``.

    Attributes:
        header_value: The header that failed to parse
        feature: Feature whose member was invalid (if applicable)
        underlying_error: Diagnostic from the dictionary parser
    """

    header_value: str = ""
    feature: str | None = None
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            detail = self.underlying_error or "invalid dictionary syntax"
            self.message = f"Invalid header value: {detail}"
        if self.code == 0:
            self.code = ERROR_HEADER_SYNTAX
        self.context.update({
            "header_value": self.header_value,
            "feature": self.feature,
            "underlying_error": self.underlying_error,
        })


@dataclass
class MissingAllowlistError(MalformedHeaderError):
    """Raised when a header member names a feature without an allowlist."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid header value: allowlist part is missing for {self.feature!r}"
        if self.code == 0:
            self.code = ERROR_HEADER_MISSING_ALLOWLIST
        if not self.suggestion:
            self.suggestion = f"Write {self.feature}=() to disable the feature or {self.feature}=* to allow it"
        super().__post_init__()


@dataclass
class UnknownHeaderValueError(MalformedHeaderError):
    """Raised when an allowlist item is neither a token nor a string."""

    value: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown value in header for {self.feature!r}: {self.value}"
        if self.code == 0:
            self.code = ERROR_HEADER_UNKNOWN_VALUE
        super().__post_init__()
        self.context["value"] = self.value


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigError(PermissionsPolicyError):
    """
    Base class for configuration errors.

    Attributes:
        source: Where the configuration came from (file path or "<string>")
    """

    source: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["source"] = self.source


@dataclass
class InvalidDefaultAllowlistError(ConfigError):
    """Raised when a default allowlist value is not one of *, 'self', 'src', 'none'."""

    feature: str = ""
    value: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid default allowlist for {self.feature!r}: {self.value!r}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID_DEFAULT
        if not self.suggestion:
            self.suggestion = "Use one of: *, 'self', 'src', 'none'"
        super().__post_init__()
        self.context.update({
            "feature": self.feature,
            "value": self.value,
        })


@dataclass
class ConfigLoadError(ConfigError):
    """Raised when a scenario file cannot be read or validated."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load config {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_LOAD
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Fetch Errors
# =============================================================================


@dataclass
class FetchError(PermissionsPolicyError):
    """Raised when a page could not be fetched to read its headers."""

    url: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to fetch {self.url}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_FETCH_FAILED
        if not self.suggestion:
            self.suggestion = "Check the URL and your network connection"
        self.context.update({
            "url": self.url,
            "underlying_error": self.underlying_error,
        })

"""
Unit tests for origin canonicalization.
"""

import pytest

from permissions_policy import InvalidURLError, canonicalize_origin
from permissions_policy.errors import ERROR_URL_INVALID
from permissions_policy.origin import origin_or_none


class TestCanonicalizeOrigin:
    """Tests for canonicalize_origin()."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com", "https://example.com"),
            ("https://example.com/", "https://example.com"),
            ("https://example.com/path?q=1#frag", "https://example.com"),
            ("https://www.example.com:443", "https://www.example.com"),
            ("http://example.com:80", "http://example.com"),
            ("http://example.com:8080/x", "http://example.com:8080"),
            ("https://example.com:80", "https://example.com:80"),
            ("HTTPS://Example.COM", "https://example.com"),
            ("wss://chat.example:443", "wss://chat.example"),
            ("https://user:pw@example.com", "https://example.com"),
            ("http://[::1]:8000/", "http://[::1]:8000"),
            ("  https://example.com  ", "https://example.com"),
        ],
    )
    def test_valid(self, url: str, expected: str) -> None:
        """Origins are serialized as scheme://host[:port]."""
        assert canonicalize_origin(url) == expected

    def test_idna_host(self) -> None:
        """Non-ASCII hosts are IDNA-encoded."""
        assert canonicalize_origin("https://bücher.example") == "https://xn--bcher-kva.example"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "example.com",
            "'self'",
            "*",
            "https://",
            "https:example.com",
            "http://example.com:99999",
            "http://example.com:port",
            "http://exa mple.com",
        ],
    )
    def test_invalid(self, url: str) -> None:
        """Values without scheme and host, or with bad ports, are rejected."""
        with pytest.raises(InvalidURLError) as exc_info:
            canonicalize_origin(url)
        assert exc_info.value.code == ERROR_URL_INVALID
        assert exc_info.value.url == url

    def test_non_string(self) -> None:
        """Only strings are URLs."""
        with pytest.raises(InvalidURLError):
            canonicalize_origin(None)  # type: ignore[arg-type]


class TestOriginOrNone:
    """Tests for the tolerant variant."""

    def test_valid(self) -> None:
        """Valid URLs give their origin."""
        assert origin_or_none("https://example.com/a") == "https://example.com"

    def test_invalid(self) -> None:
        """Invalid values give None instead of raising."""
        assert origin_or_none("'src'") is None

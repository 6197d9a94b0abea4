"""
Security tests for untrusted header and attribute values.

Header values and allow attributes typically come from third-party pages.
These tests verify that:
1. Malformed or injected header values are rejected, never half-applied
2. The lenient attribute parser never raises
3. Policies cannot be changed through objects the caller still holds
"""

import pytest

from permissions_policy import (
    AllowList,
    MalformedHeaderError,
    NormalizedPolicy,
    ParsedPolicy,
    PermissionsPolicy,
    parse_allow,
    parse_header,
)

HOST = "https://host.example"
FRAME = "https://frame.example"


class TestHostileHeaders:
    """Header values crafted to confuse the parser."""

    @pytest.mark.parametrize(
        "value",
        [
            "camera=*\r\nX-Injected: 1",
            "camera=*\ngeolocation=*",
            "camera=*\x00",
            "camera=(\"https://host.example\x7f\")",
            "camera=(self",
            "camera=\"unterminated",
            "camera=*,,geolocation=*",
            "=*",
            "camera=(self)(self)",
        ],
    )
    def test_rejected(self, value: str) -> None:
        """Invalid dictionaries raise instead of partially parsing."""
        with pytest.raises(MalformedHeaderError):
            parse_header(value)

    @pytest.mark.parametrize(
        "value",
        [
            "camera=(\"https://höst.example\")",
            "cämera=*",
            "camera=*\u2028",
        ],
    )
    def test_non_ascii_rejected(self, value: str) -> None:
        """Structured fields are ASCII only."""
        with pytest.raises(MalformedHeaderError):
            parse_header(value)

    def test_constructor_rejects_malformed_header(self) -> None:
        """No policy is built from an invalid header."""
        with pytest.raises(MalformedHeaderError):
            PermissionsPolicy(HOST, "camera=*, geolocation")

    def test_many_members(self) -> None:
        """Large headers parse in full."""
        value = ", ".join(f"feature{i}=()" for i in range(500))
        parsed = parse_header(value)
        assert len(parsed.features) == 500
        assert parsed.get("feature499") == AllowList.deny()


class TestHostileAllowAttributes:
    """The attribute parser tolerates anything."""

    @pytest.mark.parametrize(
        "value",
        [
            ";;;;",
            "camera 'self' 'self' 'self'",
            "camera \x00 \x7f",
            "camera https://[::1 https://host.example:99999",
            "camera *",
            "'self'; 'none'; *",
            "camera " + "x" * 10_000,
        ],
    )
    def test_never_raises(self, value: str) -> None:
        """Garbage is skipped, never raised."""
        assert isinstance(parse_allow(value), ParsedPolicy)

    def test_keyword_feature_names_are_just_names(self) -> None:
        """A directive named like a keyword does not change other features."""
        parsed = parse_allow("'none'; camera *")
        assert parsed.get("camera") == AllowList.wildcard()


class TestAliasing:
    """Caller-held objects cannot change a built policy."""

    def test_defaults_mapping_copied(self) -> None:
        """Mutating the caller's defaults dict has no effect."""
        defaults = {"camera": "*"}
        policy = PermissionsPolicy(HOST, "", default_allowlist=defaults)
        defaults["camera"] = "'none'"
        assert policy.allows_feature("camera")

    def test_defaults_read_only(self) -> None:
        """The exposed defaults cannot be assigned to."""
        policy = PermissionsPolicy(HOST, "", default_allowlist={"camera": "*"})
        with pytest.raises(TypeError):
            policy.default_allowlist["camera"] = "'none'"  # type: ignore[index]

    def test_normalized_header_copied(self) -> None:
        """A pre-normalized header is not shared with the caller."""
        header = NormalizedPolicy(features={"camera": AllowList.of({HOST})})
        policy = PermissionsPolicy(HOST, header)
        header.features["camera"] = AllowList.deny()
        assert policy.allows_feature("camera")
        assert policy.header is not header

    def test_normalized_allow_copied(self) -> None:
        """A pre-normalized allow attribute is not shared with the caller."""
        allow = NormalizedPolicy(features={"camera": AllowList.of({FRAME})})
        page = PermissionsPolicy(HOST, f'camera=("{FRAME}")')
        frame = page.inherit({"origin": FRAME, "allow": allow})
        allow.features["camera"] = AllowList.deny()
        assert frame.allows_feature("camera")

    def test_inherit_leaves_parent_untouched(self) -> None:
        """Deriving a frame policy does not change the page policy."""
        page = PermissionsPolicy(HOST, "camera=*")
        page.inherit({"origin": FRAME, "allow": "camera 'none'"})
        assert not page.is_iframe_policy
        assert page.allows_feature("camera")

"""
permissions_policy - Evaluate Permissions-Policy headers and iframe allow attributes.

Given a page origin, its Permissions-Policy header and, optionally, an
embedding iframe (origin plus allow attribute), decide whether a feature
such as "fullscreen" may be used by a given origin.

It provides:
- A strict parser for the Permissions-Policy header (RFC 8941 dictionary)
- A lenient parser for the iframe allow attribute
- Resolution of 'self', 'src' and 'none' against concrete origins
- The allowsFeature() decision, including iframe inheritance

Example usage:
    >>> from permissions_policy import PermissionsPolicy
    >>> policy = PermissionsPolicy("https://example.com", "fullscreen=*")
    >>> policy.allows_feature("fullscreen", "https://other.example")
    True

    $ permissions-policy check fullscreen --origin https://example.com --header "fullscreen=(self)"
"""

from permissions_policy.errors import (
    InvalidDefaultAllowlistError,
    InvalidURLError,
    MalformedHeaderError,
    PermissionsPolicyError,
)
from permissions_policy.normalize import normalize
from permissions_policy.origin import canonicalize_origin
from permissions_policy.parser import parse_allow, parse_header
from permissions_policy.policy import PermissionsPolicy
from permissions_policy.schema import (
    AllowList,
    AllowListKind,
    DefaultAllowlist,
    FrameInfo,
    NormalizedPolicy,
    ParsedPolicy,
    PolicyConfig,
    PolicyDecision,
    load_config,
    load_config_from_string,
)

__version__ = "0.1.0"
__author__ = "permissions-policy contributors"

__all__ = [
    "__version__",
    "__author__",
    "AllowList",
    "AllowListKind",
    "DefaultAllowlist",
    "FrameInfo",
    "InvalidDefaultAllowlistError",
    "InvalidURLError",
    "MalformedHeaderError",
    "NormalizedPolicy",
    "ParsedPolicy",
    "PermissionsPolicy",
    "PermissionsPolicyError",
    "PolicyConfig",
    "PolicyDecision",
    "canonicalize_origin",
    "load_config",
    "load_config_from_string",
    "normalize",
    "parse_allow",
    "parse_header",
]

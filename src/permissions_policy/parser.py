"""
Parsers for the two Permissions-Policy syntaxes.

Header syntax (strict), an RFC 8941 structured-field dictionary:

    Permissions-Policy: fullscreen=(self "https://example.com"), geolocation=()

Allow attribute syntax (lenient), semicolon-separated directives:

    <iframe allow="fullscreen 'src' https://example.com; geolocation *">

Both parsers return a ParsedPolicy whose origin sets may still contain the
quoted keywords 'self', 'src' and 'none'. Resolving those against concrete
origins is left to permissions_policy.normalize.
"""

import logging
import re

from http_sfv import Dictionary, InnerList, Token

from permissions_policy.errors import (
    MalformedHeaderError,
    MissingAllowlistError,
    UnknownHeaderValueError,
)
from permissions_policy.origin import origin_or_none
from permissions_policy.schema import (
    AllowList,
    NormalizedPolicy,
    ParsedPolicy,
    SourceKeyword,
)

logger = logging.getLogger(__name__)

RE_SEMI_OWS = re.compile(r";\s*")

WILDCARD = "*"


# =============================================================================
# Allow attribute
# =============================================================================


def parse_allow(attr_value: str | ParsedPolicy | NormalizedPolicy) -> ParsedPolicy | NormalizedPolicy:
    """
    Parse the value of an iframe ``allow`` attribute.

    Never raises: empty directives are skipped and targets that are neither
    keywords nor URLs are dropped. A directive without targets yields an
    empty origin set, which normalization turns into the frame's own origin.

    Args:
        attr_value: Attribute string, or an already parsed policy

    Returns:
        ParsedPolicy for strings; parsed input is returned unchanged
    """
    if not isinstance(attr_value, str):
        return attr_value

    features: dict[str, AllowList] = {}
    for directive in RE_SEMI_OWS.split(attr_value):
        tokens = directive.split()
        if not tokens:
            continue
        feature, *targets = tokens

        if WILDCARD in targets:
            features[feature] = AllowList.wildcard()
            continue
        if SourceKeyword.NONE.value in targets:
            features[feature] = AllowList.deny()
            continue

        origins: set[str] = set()
        for target in targets:
            if target in (SourceKeyword.SELF.value, SourceKeyword.SRC.value):
                origins.add(target)
                continue
            origin = origin_or_none(target)
            if origin is not None:
                origins.add(origin)
        features[feature] = AllowList.of(origins)

    return ParsedPolicy(features=features)


# =============================================================================
# Permissions-Policy header
# =============================================================================


def parse_header(header_value: str | ParsedPolicy | NormalizedPolicy) -> ParsedPolicy | NormalizedPolicy:
    """
    Parse a Permissions-Policy header value.

    Each dictionary member maps a feature to a bare item or an inner list.
    ``*`` allows everywhere, ``none`` or an empty list allows nowhere,
    ``self`` becomes the 'self' keyword and any other token or string is
    read as a URL (invalid ones are dropped). Duplicate features: the last
    member wins.

    Args:
        header_value: Header string ("" when absent), or a parsed policy

    Returns:
        ParsedPolicy for strings; parsed input is returned unchanged

    Raises:
        MalformedHeaderError: If the dictionary syntax is invalid
        MissingAllowlistError: If a feature is given without a value
        UnknownHeaderValueError: If an item is not a token or string
    """
    if not isinstance(header_value, str):
        return header_value

    if not header_value.strip():
        return ParsedPolicy()

    dictionary = Dictionary()
    try:
        dictionary.parse(header_value.encode("ascii"))
    except ValueError as e:
        # UnicodeEncodeError is a ValueError as well
        logger.debug("Rejecting Permissions-Policy %r: %s", header_value, e)
        raise MalformedHeaderError(
            header_value=header_value,
            underlying_error=str(e),
        ) from e

    features: dict[str, AllowList] = {}
    for feature, member in dictionary.items():
        features[feature] = _allowlist_for_member(feature, member, header_value)

    return ParsedPolicy(features=features)


def _allowlist_for_member(feature: str, member: object, header_value: str) -> AllowList:
    if isinstance(member, InnerList):
        items = list(member)
    else:
        if member.value is True:
            raise MissingAllowlistError(header_value=header_value, feature=feature)
        items = [member]

    origins: set[str] = set()
    for item in items:
        value = item.value
        # Exact types only: display strings subclass str
        if type(value) not in (str, Token):
            raise UnknownHeaderValueError(
                header_value=header_value,
                feature=feature,
                value=repr(value),
            )

        text = str(value)
        if text == WILDCARD:
            return AllowList.wildcard()
        if text == "none":
            return AllowList.deny()
        if text == "self":
            origins.add(SourceKeyword.SELF.value)
            continue
        origin = origin_or_none(text)
        if origin is not None:
            origins.add(origin)

    if not origins:
        return AllowList.deny()
    return AllowList.of(origins)

"""
Resolution of symbolic allowlist keywords.

Parsing is origin-independent; this pass binds 'self' to the page origin
and 'src' to the iframe origin, and turns 'none' into an empty set. The
result is a NormalizedPolicy, which this module passes through untouched,
so normalize() is idempotent.
"""

from permissions_policy.schema import (
    AllowList,
    AllowListKind,
    NormalizedPolicy,
    ParsedPolicy,
    SourceKeyword,
)


def normalize(
    parsed: ParsedPolicy | NormalizedPolicy,
    self_origin: str,
    src_origin: str | None = None,
) -> NormalizedPolicy:
    """
    Resolve keywords in a parsed policy against concrete origins.

    Args:
        parsed: Output of parse_header() or parse_allow()
        self_origin: Canonical origin of the host page
        src_origin: Canonical origin of the iframe, when normalizing an
            allow attribute

    Returns:
        A NormalizedPolicy. Parsed input is never modified; normalized
        input is returned as-is.
    """
    if isinstance(parsed, NormalizedPolicy):
        return parsed

    return NormalizedPolicy(
        features={
            feature: _resolve(allowlist, self_origin, src_origin)
            for feature, allowlist in parsed.features.items()
        }
    )


def _resolve(allowlist: AllowList, self_origin: str, src_origin: str | None) -> AllowList:
    if allowlist.kind is not AllowListKind.ORIGINS:
        return allowlist

    origins = set(allowlist.origins)

    # An allow directive without targets means 'src' for iframes
    if not origins and src_origin:
        return AllowList.of({src_origin})

    if SourceKeyword.NONE.value in origins:
        return AllowList.of()

    if SourceKeyword.SELF.value in origins:
        origins.discard(SourceKeyword.SELF.value)
        origins.add(self_origin)

    if SourceKeyword.SRC.value in origins:
        origins.discard(SourceKeyword.SRC.value)
        # Without an iframe there is nothing for 'src' to match
        if src_origin:
            origins.add(src_origin)

    return AllowList.of(origins)

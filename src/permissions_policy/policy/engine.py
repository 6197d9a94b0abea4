"""
Policy evaluator for permissions_policy.

PermissionsPolicy answers ``document.featurePolicy.allowsFeature()`` for a
page, or for an iframe embedded in it, from three inputs:

    1. The page's Permissions-Policy header
    2. The iframe's allow attribute (iframe policies only)
    3. Caller-supplied default allowlists per feature

How it works:
    - If neither the header nor the allow attribute mention the feature,
      its default allowlist decides
    - Otherwise the header and the allow attribute must both allow the
      checked origin: the allow attribute can only narrow the header
    - Iframe policies are derived from the page's policy with inherit()

Instances are immutable. inherit() always returns a new instance.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from permissions_policy.errors import InvalidDefaultAllowlistError, InvalidURLError
from permissions_policy.normalize import normalize
from permissions_policy.origin import canonicalize_origin
from permissions_policy.parser import parse_allow, parse_header
from permissions_policy.schema import (
    AllowList,
    DefaultAllowlist,
    FrameContext,
    FrameInfo,
    NormalizedPolicy,
    ParsedPolicy,
    PolicyConfig,
    PolicyDecision,
)

logger = logging.getLogger(__name__)

HeaderValue = str | ParsedPolicy | NormalizedPolicy


class PermissionsPolicy:
    """
    Permissions policy of a document.

    Usage:
        page = PermissionsPolicy(
            "https://example.com",
            "fullscreen=(self)",
            default_allowlist={"fullscreen": "'self'"},
        )
        page.allows_feature("fullscreen")  # True

        frame = page.inherit({"origin": "https://embed.example", "allow": "fullscreen"})
        frame.allows_feature("fullscreen")  # False, header only allows self

    Attributes:
        origin: Canonical origin of the host page
        header: Normalized Permissions-Policy header
        default_allowlist: Read-only default allowlist per feature
        frame: Resolved iframe context, or None for a top-level document
    """

    def __init__(
        self,
        origin: str,
        header_value: HeaderValue,
        default_allowlist: Mapping[str, DefaultAllowlist | str] | None = None,
        frame: FrameInfo | Mapping[str, Any] | None = None,
    ) -> None:
        """
        Build a policy.

        Args:
            origin: URL origin of the host page
            header_value: Permissions-Policy header ("" if absent), or the
                result of parse_header()
            default_allowlist: Default allowlist per supported feature. Any
                feature missing here defaults to 'self'.
            frame: Iframe details. Prefer inherit() over passing this directly.

        Raises:
            InvalidURLError: If the page or frame origin is not a valid URL
            MalformedHeaderError: If header_value cannot be parsed
            InvalidDefaultAllowlistError: If a default is not *, 'self', 'src' or 'none'
        """
        self._origin = canonicalize_origin(origin)
        # Deep copy: a pre-normalized header passes through normalize() as-is
        self._header = normalize(parse_header(header_value), self._origin).model_copy(deep=True)
        self._default_allowlist: Mapping[str, DefaultAllowlist] = MappingProxyType(
            _coerce_defaults(default_allowlist or {})
        )
        self._frame: FrameContext | None = None

        if frame is not None:
            info = frame if isinstance(frame, FrameInfo) else FrameInfo.model_validate(dict(frame))
            frame_origin = canonicalize_origin(info.origin)
            self._frame = FrameContext(
                origin=frame_origin,
                allow=normalize(parse_allow(info.allow), self._origin, frame_origin).model_copy(deep=True),
            )

        logger.debug(
            "Built policy for %s (frame=%s, %d header feature(s))",
            self._origin,
            self._frame.origin if self._frame else None,
            len(self._header.features),
        )

    @classmethod
    def from_config(cls, config: PolicyConfig) -> "PermissionsPolicy":
        """Build a policy from a loaded scenario."""
        return cls(
            config.origin,
            config.header,
            default_allowlist=config.default_allowlist,
            frame=config.frame,
        )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def origin(self) -> str:
        return self._origin

    @property
    def header(self) -> NormalizedPolicy:
        """A copy of the normalized header; writes to it do not reach this policy."""
        return self._header.model_copy(deep=True)

    @property
    def default_allowlist(self) -> Mapping[str, DefaultAllowlist]:
        return self._default_allowlist

    @property
    def frame(self) -> FrameContext | None:
        """A copy of the iframe context, or None for a top-level document."""
        if self._frame is None:
            return None
        return self._frame.model_copy(deep=True)

    @property
    def is_iframe_policy(self) -> bool:
        return self._frame is not None

    def __repr__(self) -> str:
        frame = f", frame={self._frame.origin!r}" if self._frame else ""
        return f"{self.__class__.__name__}(origin={self._origin!r}{frame})"

    # =========================================================================
    # Derivation
    # =========================================================================

    def inherit(self, frame: FrameInfo | Mapping[str, Any]) -> "PermissionsPolicy":
        """
        Make a frame inherit from this (host page) policy.

        The new policy keeps this policy's origin, header and defaults and
        attaches the given iframe. This policy is left untouched. Called on
        an iframe policy, the existing frame context is replaced, not nested.

        Args:
            frame: Iframe origin and allow attribute

        Returns:
            A new PermissionsPolicy for the iframe
        """
        # TODO: nested iframes should intersect with the parent frame's allow attribute
        return PermissionsPolicy(
            self._origin,
            self._header,
            default_allowlist=dict(self._default_allowlist),
            frame=frame,
        )

    # =========================================================================
    # Evaluation
    # =========================================================================

    def allows_feature(self, feature: str, origin: str | None = None) -> bool:
        """
        Whether feature may be used by origin.

        See https://developer.mozilla.org/en-US/docs/Web/API/FeaturePolicy/allowsFeature

        Args:
            feature: Feature identifier (e.g. "fullscreen")
            origin: Origin to check. When None or empty, the iframe's origin
                for iframe policies, else the page's origin.

        Returns:
            True if allowed. Never raises; invalid origins are denied.
        """
        return self.evaluate(feature, origin).allowed

    def evaluate(self, feature: str, origin: str | None = None) -> PolicyDecision:
        """
        Evaluate a feature and explain the result.

        Same rules as allows_feature(), returning a PolicyDecision that
        names the part of the policy that decided.
        """
        if not origin:
            checked = self._frame.origin if self._frame else self._origin
        else:
            try:
                checked = canonicalize_origin(origin)
            except InvalidURLError as e:
                logger.debug("Denying %s for invalid origin %r: %s", feature, origin, e.reason)
                return PolicyDecision.deny(
                    f"Invalid origin: {origin!r}",
                    rule="invalid_origin",
                    feature=feature,
                )

        from_header = self._header.get(feature)
        from_iframe = self._frame.allow.get(feature) if self._frame else None

        if from_header is None and from_iframe is None:
            decision = self._default_decision(feature, checked)
        else:
            decision = self._explicit_decision(feature, checked, from_header, from_iframe)

        logger.debug(
            "%s %s for %s (%s)",
            "Allowed" if decision.allowed else "Denied",
            feature,
            checked,
            decision.rule_matched,
        )
        return decision

    def features(self) -> list[str]:
        """All feature names this policy knows about, sorted."""
        names = set(self._default_allowlist) | set(self._header.features)
        if self._frame:
            names |= set(self._frame.allow.features)
        return sorted(names)

    def allowed_features(self, origin: str | None = None) -> list[str]:
        """Features from features() that origin may use."""
        return [name for name in self.features() if self.allows_feature(name, origin)]

    def _default_decision(self, feature: str, checked: str) -> PolicyDecision:
        """Neither header nor allow attribute mention feature."""
        default = self._default_allowlist.get(feature, DefaultAllowlist.SELF)
        rule = f"default_allowlist[{default.value}]"
        frame_origin = self._frame.origin if self._frame else None
        context = {"feature": feature, "origin": checked}

        if default is DefaultAllowlist.NONE:
            return PolicyDecision.deny("Default allowlist is 'none'", rule=rule, **context)

        if default is DefaultAllowlist.WILDCARD:
            if self._frame is None or frame_origin == self._origin:
                return PolicyDecision.allow("Default allowlist is *", rule=rule, **context)
            return PolicyDecision.deny(
                "Default allowlist * does not extend to cross-origin frames",
                rule=rule,
                **context,
            )

        if default is DefaultAllowlist.SRC:
            if checked == frame_origin:
                return PolicyDecision.allow("Origin is the frame's own origin", rule=rule, **context)
            return PolicyDecision.deny("Default allowlist 'src' only allows the frame's origin", rule=rule, **context)

        # 'self'
        if self._frame is not None:
            allowed = frame_origin == self._origin and frame_origin == checked
        else:
            allowed = checked == self._origin
        if allowed:
            return PolicyDecision.allow("Origin is same-origin with the page", rule=rule, **context)
        return PolicyDecision.deny("Default allowlist 'self' only allows the page's origin", rule=rule, **context)

    def _explicit_decision(
        self,
        feature: str,
        checked: str,
        from_header: AllowList | None,
        from_iframe: AllowList | None,
    ) -> PolicyDecision:
        """Header and allow attribute must both allow checked."""
        context = {"feature": feature, "origin": checked}

        if not self._header_allows(checked, from_header):
            return PolicyDecision.deny(
                f"Permissions-Policy header does not allow {checked}",
                rule=f"header[{from_header}]",
                **context,
            )
        if not self._frame_allows(checked, from_iframe):
            if from_iframe is None:
                rule = "allow_attribute[missing]"
            else:
                rule = f"allow_attribute[{from_iframe}]"
            return PolicyDecision.deny(
                f"iframe allow attribute does not allow {checked}",
                rule=rule,
                **context,
            )

        if from_iframe is not None:
            rule = f"allow_attribute[{from_iframe}]"
        else:
            rule = f"header[{from_header}]"
        return PolicyDecision.allow(f"Policy allows {checked}", rule=rule, **context)

    def _header_allows(self, checked: str, from_header: AllowList | None) -> bool:
        if from_header is None:
            return True
        return from_header.allows(checked)

    def _frame_allows(self, checked: str, from_iframe: AllowList | None) -> bool:
        if self._frame is None:
            return True

        frame_origin = self._frame.origin
        if from_iframe is None:
            return frame_origin == self._origin and checked == frame_origin
        if from_iframe.is_wildcard:
            return checked == frame_origin
        if from_iframe.is_none:
            return False
        return checked in from_iframe.origins and frame_origin in from_iframe.origins


def _coerce_defaults(defaults: Mapping[str, DefaultAllowlist | str]) -> dict[str, DefaultAllowlist]:
    coerced: dict[str, DefaultAllowlist] = {}
    for feature, value in defaults.items():
        try:
            coerced[feature] = DefaultAllowlist(value)
        except ValueError as e:
            raise InvalidDefaultAllowlistError(feature=feature, value=str(value)) from e
    return coerced

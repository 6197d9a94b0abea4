"""
Schema definitions for permissions_policy.

This module defines the Pydantic models used throughout the package:
- AllowList: Per-feature rule (wildcard, deny-all, or a set of origins)
- ParsedPolicy/NormalizedPolicy: Feature -> AllowList maps before and
  after symbolic keywords are resolved
- FrameInfo/FrameContext: Embedding iframe as given by the caller and as
  stored once resolved
- PolicyDecision: The result of evaluating a feature
- PolicyConfig: A YAML-loadable policy scenario

Design Decisions:
    - All models are immutable (frozen=True) and reject unknown fields
    - Parsed and normalized policies are distinct types, so normalization
      can tell them apart without inspecting object identity
    - Wildcard and deny-all allowlists never carry origins
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from permissions_policy.errors import ConfigLoadError


# =============================================================================
# Enums
# =============================================================================


class AllowListKind(str, Enum):
    """Variant tag of an AllowList."""

    WILDCARD = "*"
    NONE = "none"
    ORIGINS = "origins"


class SourceKeyword(str, Enum):
    """
    Symbolic allowlist entries, resolved during normalization.

    The header syntax spells them ``self``/``none``; the allow attribute
    spells them ``'self'``/``'src'``/``'none'``. Both parsers store the
    quoted form.
    """

    SELF = "'self'"
    SRC = "'src'"
    NONE = "'none'"


KEYWORDS = frozenset(keyword.value for keyword in SourceKeyword)


class DefaultAllowlist(str, Enum):
    """
    Default allowlist of a feature, used when neither the header nor the
    allow attribute mention it.

    Features without a configured default behave as SELF.
    """

    WILDCARD = "*"
    SELF = "'self'"
    SRC = "'src'"
    NONE = "'none'"

    @classmethod
    def _missing_(cls, value: object) -> "DefaultAllowlist | None":
        # Accept the unquoted spelling too: self, src, none
        if isinstance(value, str):
            quoted = f"'{value.strip().lower()}'"
            for member in cls:
                if member.value == quoted:
                    return member
        return None


# =============================================================================
# Allowlists
# =============================================================================


class AllowList(BaseModel):
    """
    Allowlist for a single feature.

    Attributes:
        kind: WILDCARD (allowed everywhere), NONE (allowed nowhere) or
            ORIGINS (allowed for the listed origins)
        origins: Origins for the ORIGINS kind. Before normalization this may
            also hold SourceKeyword values.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: AllowListKind = Field(
        default=AllowListKind.ORIGINS,
        description="Allowlist variant",
    )
    origins: frozenset[str] = Field(
        default_factory=frozenset,
        description="Origins (and, before normalization, keywords)",
    )

    @model_validator(mode="after")
    def _terminal_kinds_have_no_origins(self) -> "AllowList":
        if self.kind is not AllowListKind.ORIGINS and self.origins:
            msg = f"{self.kind.value!r} allowlist cannot list origins"
            raise ValueError(msg)
        return self

    @classmethod
    def wildcard(cls) -> "AllowList":
        """Create an allow-everywhere list."""
        return cls(kind=AllowListKind.WILDCARD)

    @classmethod
    def deny(cls) -> "AllowList":
        """Create an allow-nowhere list."""
        return cls(kind=AllowListKind.NONE)

    @classmethod
    def of(cls, origins: Any = ()) -> "AllowList":
        """Create an origin-set list."""
        return cls(kind=AllowListKind.ORIGINS, origins=frozenset(origins))

    @property
    def is_wildcard(self) -> bool:
        return self.kind is AllowListKind.WILDCARD

    @property
    def is_none(self) -> bool:
        return self.kind is AllowListKind.NONE

    @property
    def has_markers(self) -> bool:
        """Whether any symbolic keyword is still unresolved."""
        return not KEYWORDS.isdisjoint(self.origins)

    def allows(self, origin: str) -> bool:
        """Plain membership test: wildcard allows all, none allows nothing."""
        if self.is_wildcard:
            return True
        if self.is_none:
            return False
        return origin in self.origins

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "origins": sorted(self.origins),
        }

    def __str__(self) -> str:
        if self.is_wildcard:
            return "*"
        if self.is_none:
            return "none"
        return "(" + " ".join(sorted(self.origins)) + ")"


class _FeatureMap(BaseModel):
    """Shared accessors for feature -> allowlist maps."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    features: dict[str, AllowList] = Field(
        default_factory=dict,
        description="Allowlist per feature identifier",
    )

    def get(self, feature: str) -> AllowList | None:
        """Return the allowlist for feature, or None if it is not mentioned."""
        return self.features.get(feature)

    def __contains__(self, feature: object) -> bool:
        return feature in self.features

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {name: allowlist.to_dict() for name, allowlist in self.features.items()}


class ParsedPolicy(_FeatureMap):
    """
    Output of the header and allow-attribute parsers.

    Origin sets may still contain 'self', 'src' and 'none'. Nothing here
    depends on the page or frame origin yet.
    """


class NormalizedPolicy(_FeatureMap):
    """
    A policy whose origin sets hold concrete origins only.

    Produced by normalize(); normalizing it again returns it unchanged.
    """

    @model_validator(mode="after")
    def _no_symbolic_keywords(self) -> "NormalizedPolicy":
        for name, allowlist in self.features.items():
            if allowlist.has_markers:
                msg = f"Unresolved keyword in normalized allowlist for {name!r}"
                raise ValueError(msg)
        return self


# =============================================================================
# Frames
# =============================================================================


class FrameInfo(BaseModel):
    """
    An embedding iframe, as described by the caller.

    Attributes:
        origin: URL (or origin) of the document loaded in the iframe
        allow: Value of the iframe's allow attribute, or a parsed policy
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    origin: str = Field(
        ...,
        description="URL origin of the iframe",
        min_length=1,
    )
    allow: str | ParsedPolicy | NormalizedPolicy = Field(
        default="",
        description="Value of the allow attribute",
    )


class FrameContext(BaseModel):
    """
    A resolved iframe: canonical origin plus normalized allow attribute.

    Attributes:
        origin: Canonical origin of the iframe
        allow: Allow attribute with 'self' and 'src' resolved
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    origin: str = Field(..., description="Canonical origin of the iframe")
    allow: NormalizedPolicy = Field(
        default_factory=NormalizedPolicy,
        description="Normalized allow attribute",
    )


# =============================================================================
# Decisions
# =============================================================================


class PolicyDecision(BaseModel):
    """
    Result of evaluating a feature against a policy.

    Attributes:
        allowed: Whether the feature may be used
        reason: Human-readable explanation of the decision
        rule_matched: Which part of the policy decided
        feature: The feature that was checked
        origin: The canonical origin it was checked against
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed: bool = Field(
        ...,
        description="Whether the feature may be used",
    )
    reason: str = Field(
        ...,
        description="Human-readable explanation of the decision",
    )
    rule_matched: str | None = Field(
        default=None,
        description="Which part of the policy decided",
    )
    feature: str = Field(default="", description="Feature that was checked")
    origin: str | None = Field(default=None, description="Origin that was checked")

    @classmethod
    def allow(cls, reason: str, rule: str | None = None, **kwargs: Any) -> "PolicyDecision":
        """Create an ALLOW decision."""
        return cls(allowed=True, reason=reason, rule_matched=rule, **kwargs)

    @classmethod
    def deny(cls, reason: str, rule: str | None = None, **kwargs: Any) -> "PolicyDecision":
        """Create a DENY decision."""
        return cls(allowed=False, reason=reason, rule_matched=rule, **kwargs)


# =============================================================================
# Configuration
# =============================================================================


class PolicyConfig(BaseModel):
    """
    A policy scenario: everything needed to build a PermissionsPolicy.

    Attributes:
        origin: URL origin of the host page
        header: Permissions-Policy header value ("" if absent)
        default_allowlist: Default allowlist per supported feature
        frame: Optional iframe the policy is evaluated in
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    origin: str = Field(
        ...,
        description="URL origin of the host page",
        min_length=1,
    )
    header: str = Field(
        default="",
        description="Permissions-Policy header value",
    )
    default_allowlist: dict[str, DefaultAllowlist] = Field(
        default_factory=dict,
        description="Default allowlist per feature",
    )
    frame: FrameInfo | None = Field(
        default=None,
        description="Optional iframe context",
    )


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_config(path: Path | str) -> PolicyConfig:
    """
    Load a policy scenario from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated PolicyConfig object

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigLoadError: If the YAML is invalid or doesn't match the schema
    """
    path = Path(path)
    with path.open() as f:
        content = f.read()

    return _config_from_yaml(content, source=str(path))


def load_config_from_string(content: str) -> PolicyConfig:
    """Load a policy scenario from a YAML string."""
    return _config_from_yaml(content, source="<string>")


def _config_from_yaml(content: str, source: str) -> PolicyConfig:
    try:
        data = yaml.safe_load(content)
        return PolicyConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigLoadError(source=source, underlying_error=str(e)) from e

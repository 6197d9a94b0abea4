"""
Policy evaluation for permissions_policy.

Key concepts:
    - PermissionsPolicy: Holds a page's normalized header, its default
      allowlists and, for iframes, the normalized allow attribute
    - allows_feature(): The boolean answer for a feature and origin
    - evaluate(): The same answer as a PolicyDecision with a reason
    - inherit(): Derives an iframe's policy from its embedding page

The evaluator is deterministic and side-effect free: the same inputs always
produce the same decisions, and no call mutates a policy.
"""

from permissions_policy.policy.engine import PermissionsPolicy

__all__ = [
    "PermissionsPolicy",
]

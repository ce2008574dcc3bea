"""
Three-valued outcome used by every step of policy evaluation.
"""

from enum import Enum


class PolicyResult(str, Enum):
    """Outcome of evaluating part of a policy.

    ``EMPTY`` means "nothing was configured here", which is different from
    a rule that was configured and failed.
    """

    PASSED = "passed"
    NOT_PASSED = "not passed"
    EMPTY = "empty"

    @classmethod
    def from_bool(cls, value: bool) -> "PolicyResult":
        return cls.PASSED if value else cls.NOT_PASSED

    def merge(self, other: "PolicyResult") -> "PolicyResult":
        """Priority OR: PASSED beats NOT_PASSED, which beats EMPTY."""
        if PolicyResult.PASSED in (self, other):
            return PolicyResult.PASSED
        if PolicyResult.NOT_PASSED in (self, other):
            return PolicyResult.NOT_PASSED
        return PolicyResult.EMPTY

    def invert(self) -> "PolicyResult":
        if self is PolicyResult.PASSED:
            return PolicyResult.NOT_PASSED
        if self is PolicyResult.NOT_PASSED:
            return PolicyResult.PASSED
        return PolicyResult.EMPTY

    def to_bool(self, default: bool) -> bool:
        """Collapse to a boolean, reading EMPTY as ``default``."""
        if self is PolicyResult.EMPTY:
            return default
        return self is PolicyResult.PASSED

    def __add__(self, other: "PolicyResult") -> "PolicyResult":
        if not isinstance(other, PolicyResult):
            return NotImplemented
        return self.merge(other)

    def __invert__(self) -> "PolicyResult":
        return self.invert()

    def __str__(self) -> str:
        return self.value

"""
Access package.

Turns the policy index and the destination tree into what each visitor
can see:

- resolver: visibility walk for one email, groups kept only when non-empty.
- table: the per-email result precomputed for every known identity, plus
  the anonymous fallback.
"""

from .resolver import AccessResolver
from .table import ANONYMOUS, IdentityAccessTable, UserView

__all__ = ["ANONYMOUS", "AccessResolver", "IdentityAccessTable", "UserView"]

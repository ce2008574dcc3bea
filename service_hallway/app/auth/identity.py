"""
Identity handed to the service by the proxy.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """A verified visitor."""
    email: str
    name: str

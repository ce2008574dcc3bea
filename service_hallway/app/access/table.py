"""
Precomputed visible destinations for every known identity.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Tuple

from shared.logging import get_logger

from ..auth.identity import Identity
from ..routes.models import Destination
from .resolver import AccessResolver

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

ANONYMOUS = ""


@dataclass(frozen=True)
class UserView:
    """Everything the page template needs about one visitor."""
    name: str
    email: str
    background: str
    accessible_routes: Tuple[Destination, ...]


class IdentityAccessTable:
    """Email to visible destinations, built once at startup.

    Emails that never appear in the policy document get the anonymous view,
    which is what the empty identity can see.
    """

    def __init__(
        self,
        entries: Mapping[str, Tuple[Destination, ...]],
        anonymous: Tuple[Destination, ...],
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self._entries: Mapping[str, Tuple[Destination, ...]] = MappingProxyType(dict(entries))
        self.anonymous = anonymous
        self.metrics = metrics
        self.logger = get_logger("hallway.access.table")

        if self.metrics:
            self.metrics.set_gauge("access_table_identities", len(self._entries))

    @classmethod
    def build(
        cls,
        resolver: AccessResolver,
        emails: Iterable[str],
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> "IdentityAccessTable":
        logger = get_logger("hallway.access.table")
        entries: Dict[str, Tuple[Destination, ...]] = {}
        for email in sorted(emails):
            entries[email] = tuple(resolver.resolve(email))
            logger.debug(
                "Identity resolved",
                email=email,
                routes=[route.label for route in entries[email]],
            )

        anonymous = tuple(resolver.resolve(ANONYMOUS))
        logger.info(
            "Identity access table built",
            identities=len(entries),
            anonymous_routes=len(anonymous),
        )
        return cls(entries, anonymous, metrics=metrics)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, email: object) -> bool:
        return email in self._entries

    @property
    def emails(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def lookup(self, email: str) -> Optional[Tuple[Destination, ...]]:
        """Personalised destinations, or None for an unregistered email."""
        return self._entries.get(email)

    def view_for(self, identity: Identity, background: str) -> UserView:
        routes = self.lookup(identity.email)
        if routes is None:
            self.logger.warning(
                "Unregistered user accessed the hallway",
                name=identity.name,
                email=identity.email,
            )
            if self.metrics:
                self.metrics.increment_counter("unregistered_identities_total")
            routes = self.anonymous

        return UserView(
            name=identity.name,
            email=identity.email,
            background=background,
            accessible_routes=routes,
        )

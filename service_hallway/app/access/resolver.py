"""
Per-identity visibility over the destination tree.
"""

from typing import List, Sequence

from shared.logging import get_logger

from ..policy.index import PolicyIndex
from ..routes.models import Destination, GroupDestination, LeafDestination


class AccessResolver:
    """Walks the destination tree and keeps what an identity may see."""

    def __init__(self, routes: Sequence[Destination], policy_index: PolicyIndex):
        self.routes = tuple(routes)
        self.policy_index = policy_index
        self.logger = get_logger("hallway.access.resolver")

    def can_access(self, leaf: LeafDestination, email: str) -> bool:
        policy = self.policy_index.get(leaf.key)
        if policy is None:
            self.logger.warning("Routing key has no policy", routing_key=leaf.key, label=leaf.label)
            return False

        authorized = policy.check_authorized(email)
        self.logger.debug("Route checked", routing_key=leaf.key, email=email, authorized=authorized)
        return authorized

    def resolve(self, email: str) -> List[Destination]:
        """Visible destinations for ``email``, in configuration order."""
        return self._filter(self.routes, email)

    def _filter(self, routes: Sequence[Destination], email: str) -> List[Destination]:
        visible: List[Destination] = []
        for route in routes:
            if isinstance(route, GroupDestination):
                children = self._filter(route.children, email)
                if children:
                    visible.append(route.model_copy(update={"children": tuple(children)}))
            elif self.can_access(route, email):
                visible.append(route)
        return visible

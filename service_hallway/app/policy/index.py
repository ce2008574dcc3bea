"""
Routing key to policy lookup, built once from the policy document.
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Optional

from shared.logging import get_logger

from .models import Policy, PolicyDocument


class PolicyIndex:
    """Read-only map from routing key to compiled policy."""

    def __init__(self, policies: Mapping[str, Policy], known_emails: FrozenSet[str] = frozenset()):
        self._policies: Mapping[str, Policy] = MappingProxyType(dict(policies))
        self._known_emails = known_emails

    @classmethod
    def from_document(cls, document: PolicyDocument) -> "PolicyIndex":
        """Index the document's routes by routing key.

        Known identities are collected from the policies as written, then
        every public route has its policy replaced with allow-all.
        """
        logger = get_logger("hallway.policy.index")
        known_emails = frozenset(document.extract_emails())

        policies: Dict[str, Policy] = {}
        public = []
        for route in document.routes:
            key = route.routing_key
            if key in policies:
                logger.warning("Duplicate routing key, later route wins", routing_key=key)
            if route.allow_public_unauthenticated_access:
                public.append(key)
            policies[key] = route.with_public_override().policy

        if public:
            logger.info("Public routes overridden with allow-all policy", routes=public)

        index = cls(policies, known_emails)
        logger.info(
            "Policy index built",
            routing_keys=len(index),
            known_identities=len(index.known_emails),
        )
        return index

    @property
    def known_emails(self) -> FrozenSet[str]:
        """Every matcher literal mentioned anywhere in the document."""
        return self._known_emails

    def get(self, routing_key: str) -> Optional[Policy]:
        return self._policies.get(routing_key)

    def __contains__(self, routing_key: object) -> bool:
        return routing_key in self._policies

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

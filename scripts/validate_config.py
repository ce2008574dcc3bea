#!/usr/bin/env python3
"""
Configuration validation script for the Hallway service.

Loads ``config.toml`` and ``pomerium.yaml`` from a configuration directory,
reports errors and destinations without a matching policy route, and prints
what every known identity would see.

Usage: python -m scripts.validate_config --conf-dir ./config [--email alice@example.com]
"""

import argparse
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from shared.errors import ConfigurationError
from shared.logging import configure_logging
from service_hallway.app.access import AccessResolver, IdentityAccessTable
from service_hallway.app.policy import PolicyIndex, load_policy_document
from service_hallway.app.routes import load_hallway_config
from service_hallway.app.routes.models import Destination, GroupDestination, LeafDestination


def iter_leaves(routes: Sequence[Destination]) -> Iterator[LeafDestination]:
    for route in routes:
        if isinstance(route, GroupDestination):
            yield from iter_leaves(route.children)
        else:
            yield route


def format_routes(routes: Sequence[Destination], indent: int = 1) -> List[str]:
    lines = []
    for route in routes:
        if isinstance(route, GroupDestination):
            lines.append(f"{'  ' * indent}[{route.label}]")
            lines.extend(format_routes(route.children, indent + 1))
        else:
            lines.append(f"{'  ' * indent}{route.label} -> {route.key}")
    return lines


def unmatched_routing_keys(routes: Sequence[Destination], index: PolicyIndex) -> List[str]:
    """Routing keys of destinations that no policy route covers."""
    return [leaf.key for leaf in iter_leaves(routes) if leaf.key not in index]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Validate a configuration directory and print the access table."""
    parser = argparse.ArgumentParser(description="Validate hallway configuration")
    parser.add_argument("--conf-dir", default="./", help="Directory holding config.toml and pomerium.yaml")
    parser.add_argument("--email", action="append", default=[], help="Only show these identities")
    args = parser.parse_args(argv)

    configure_logging("hallway-validate", "WARNING")
    conf_dir = Path(args.conf_dir)

    try:
        config = load_hallway_config(conf_dir / "config.toml")
        index = PolicyIndex.from_document(load_policy_document(conf_dir / "pomerium.yaml"))
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        for key, value in e.details.items():
            print(f"   - {key}: {value}")
        return 1

    print(f"✅ Loaded {len(config.routes)} destinations for {config.domain.name}")
    print(f"✅ Loaded {len(index)} policy routes, {len(index.known_emails)} known identities")

    unmatched = unmatched_routing_keys(config.routes, index)
    for key in unmatched:
        print(f"⚠️  No policy route for routing key: {key}")

    resolver = AccessResolver(config.routes, index)
    table = IdentityAccessTable.build(resolver, index.known_emails)

    emails = args.email or list(table.emails)
    for email in emails:
        routes = table.lookup(email)
        label = email
        if routes is None:
            routes = table.anonymous
            label = f"{email} (unregistered, anonymous view)"
        print(f"\n{label}:")
        print("\n".join(format_routes(routes)) or "  (nothing)")

    if not args.email:
        print("\n<anonymous>:")
        print("\n".join(format_routes(table.anonymous)) or "  (nothing)")

    print(f"\nValidation complete: {len(unmatched)} warnings")
    return 0


if __name__ == "__main__":
    sys.exit(main())

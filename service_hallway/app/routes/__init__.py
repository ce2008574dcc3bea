"""
Destination tree package: the links (and groups of links) the page can show.
"""

from .models import (
    DEFAULT_BUTTON_COLOR,
    Destination,
    Domain,
    GroupDestination,
    HallwayConfig,
    LeafDestination,
)
from .loader import load_config_from_str, load_hallway_config

__all__ = [
    "DEFAULT_BUTTON_COLOR",
    "Destination",
    "Domain",
    "GroupDestination",
    "HallwayConfig",
    "LeafDestination",
    "load_config_from_str",
    "load_hallway_config",
]

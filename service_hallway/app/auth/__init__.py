"""
Identity collaborator: who is asking, as asserted by the proxy.
"""

from .identity import Identity
from .jwt_decoder import JWT_HEADER, PomeriumJwtDecoder
from .well_known import DEBUG_KNOWN_ROUTES, KnownRoutes, fetch_known_routes

__all__ = [
    "DEBUG_KNOWN_ROUTES",
    "JWT_HEADER",
    "Identity",
    "KnownRoutes",
    "PomeriumJwtDecoder",
    "fetch_known_routes",
]

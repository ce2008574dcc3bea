"""
Well-known data published by the Pomerium proxy.
"""

from typing import Any, Dict, Optional
from urllib.parse import urljoin

import httpx
from pydantic import BaseModel, ValidationError

from shared.errors import ConfigurationError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception

WELL_KNOWN_PATH = "/.well-known/pomerium"

logger = get_logger("hallway.auth.well_known")


class KnownRoutes(BaseModel):
    """Subset of ``/.well-known/pomerium`` used by the hallway."""

    frontchannel_logout_uri: str
    jwks_uri: str


DEBUG_KNOWN_ROUTES = KnownRoutes(
    frontchannel_logout_uri="/test/logout",
    jwks_uri="/test/jwks.json",
)


def proxy_base_url(domain: str, proxy_url: Optional[str] = None) -> str:
    return (proxy_url or f"https://{domain}").rstrip("/")


def fetch_retry_config(attempts: int, delay: float) -> RetryConfig:
    """Fixed delay between attempts, no jitter."""
    return RetryConfig(
        max_attempts=attempts,
        base_delay=delay,
        max_delay=delay,
        jitter=False,
        backoff_strategy="fixed",
    )


async def fetch_json(
    url: str,
    *,
    retry_config: RetryConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """GET ``url`` and decode the JSON body, retrying on any HTTP or decode failure."""

    @retry_on_exception(exceptions=(httpx.HTTPError, ValueError), config=retry_config)
    async def _fetch(http: httpx.AsyncClient) -> Dict[str, Any]:
        response = await http.get(url)
        response.raise_for_status()
        return response.json()

    try:
        if client is not None:
            return await _fetch(client)
        async with httpx.AsyncClient(timeout=10.0) as http:
            return await _fetch(http)
    except RetryError as e:
        raise ConfigurationError(
            f"Couldn't fetch {url}",
            details={"attempts": e.attempts, "error": str(e.last_exception)},
        ) from e


async def fetch_known_routes(
    domain: str,
    *,
    retry_config: RetryConfig,
    proxy_url: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> KnownRoutes:
    url = proxy_base_url(domain, proxy_url) + WELL_KNOWN_PATH
    payload = await fetch_json(url, retry_config=retry_config, client=client)
    try:
        known = KnownRoutes.model_validate(payload)
    except ValidationError as e:
        raise ConfigurationError(
            "Well-known document is missing required routes",
            details={"url": url, "error": str(e)},
        ) from e

    logger.info(
        "Fetched well-known routes",
        url=url,
        frontchannel_logout_uri=known.frontchannel_logout_uri,
        jwks_uri=known.jwks_uri,
    )
    return known


def resolve_jwks_url(known: KnownRoutes, domain: str, proxy_url: Optional[str] = None) -> str:
    """Absolute JWKS URL; relative ``jwks_uri`` values are joined to the proxy base."""
    return urljoin(proxy_base_url(domain, proxy_url) + "/", known.jwks_uri)

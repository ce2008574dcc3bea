"""
Verification of the identity assertion Pomerium attaches to each request.
"""

from typing import Any, Dict, List, Optional

import httpx
from jose import jwt
from jose.exceptions import JWTError

from shared.errors import AuthenticationError
from shared.logging import get_logger
from shared.retry import RetryConfig

from .identity import Identity
from .well_known import fetch_json

JWT_HEADER = "X-Pomerium-Jwt-Assertion"
ALGORITHM = "ES256"


class PomeriumJwtDecoder:
    """Decodes ES256 assertions against a JWKS loaded once at startup."""

    def __init__(self, domain: str, keys: List[Dict[str, Any]], leeway: int = 60):
        self.domain = domain
        self.leeway = leeway
        self.logger = get_logger("hallway.auth.jwt")
        self._keys: Dict[str, Dict[str, Any]] = {
            key["kid"]: key for key in keys if "kid" in key
        }

    @classmethod
    async def from_jwks_url(
        cls,
        domain: str,
        jwks_url: str,
        *,
        retry_config: RetryConfig,
        leeway: int = 60,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PomeriumJwtDecoder":
        jwks = await fetch_json(jwks_url, retry_config=retry_config, client=client)
        keys = jwks.get("keys", [])
        decoder = cls(domain, keys, leeway=leeway)
        decoder.logger.info("JWKS loaded", url=jwks_url, keys_count=len(decoder._keys))
        return decoder

    @property
    def key_ids(self) -> List[str]:
        return list(self._keys)

    def decode(self, token: Optional[str]) -> Identity:
        if not token:
            raise AuthenticationError(f"Missing {JWT_HEADER} header")

        try:
            header = jwt.get_unverified_header(token)
            kid = header.get("kid")
            if not kid:
                raise JWTError("Token missing key ID")

            key = self._keys.get(kid)
            if key is None:
                raise JWTError(f"Key not found: {kid}")

            claims = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                audience=self.domain,
                issuer=self.domain,
                options={"verify_exp": True, "leeway": self.leeway},
            )
        except JWTError as e:
            self.logger.warning("Token verification failed", error=str(e))
            raise AuthenticationError("Invalid identity assertion", details={"error": str(e)}) from e

        email = claims.get("email")
        name = claims.get("name")
        if not isinstance(email, str) or not isinstance(name, str):
            self.logger.warning("Token is missing identity claims", claims=sorted(claims))
            raise AuthenticationError("Identity assertion lacks email or name")

        self.logger.debug("Token verified", email=email)
        return Identity(email=email, name=name)

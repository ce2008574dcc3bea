"""
Mock Pomerium proxy providing well-known routes, JWKS and signed assertions.
"""

from typing import Any, Dict

from fastapi import FastAPI, Query

from shared.logging import get_logger
from shared.test_helpers import MockTokenGenerator, TestUser


class MockPomeriumServer:
    """Mock Pomerium server implementation."""

    def __init__(self, domain: str = "hallway.example.com", port: int = 8443):
        self.domain = domain
        self.port = port
        self.base_url = f"http://localhost:{port}"
        self.logger = get_logger("mock.pomerium")
        self.app = FastAPI(title="Mock Pomerium", version="1.0.0")

        # In-memory signing key, regenerated on every start
        self.tokens = MockTokenGenerator(domain=domain)

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock Pomerium routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-pomerium",
                "message": "Mock Pomerium proxy for the Hallway service",
                "version": "1.0.0",
                "domain": self.domain,
            }

        @self.app.get("/.well-known/pomerium")
        async def well_known() -> Dict[str, Any]:
            """Pomerium well-known routes."""
            return {
                "authentication_callback_endpoint": f"{self.base_url}/oauth2/callback",
                "frontchannel_logout_uri": f"{self.base_url}/.pomerium/sign_out",
                "jwks_uri": f"{self.base_url}/.well-known/pomerium/jwks.json",
            }

        @self.app.get("/.well-known/pomerium/jwks.json")
        async def jwks_endpoint() -> Dict[str, Any]:
            """JWKS endpoint."""
            return self.tokens.jwks

        @self.app.get("/.pomerium/sign_out")
        async def sign_out():
            return {"message": "Signed out"}

        @self.app.get("/mint")
        async def mint(
            email: str = Query(...),
            name: str = Query(...),
            expires_in: int = Query(300),
        ):
            """Signed assertion to send as X-Pomerium-Jwt-Assertion."""
            assertion = self.tokens.generate_assertion(
                TestUser(email=email, name=name), expires_in=expires_in
            )
            self.logger.info("Assertion minted", email=email, expires_in=expires_in)
            return {"assertion": assertion, "header": "X-Pomerium-Jwt-Assertion"}


def create_app(domain: str = "hallway.example.com", port: int = 8443):
    """Create mock Pomerium application."""
    server = MockPomeriumServer(domain=domain, port=port)
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8443)

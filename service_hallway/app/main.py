"""
Hallway service: the personalised landing page behind the proxy.
"""

from pathlib import Path
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request, Response
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import AuthenticationError, HallwayException
from shared.logging import set_identity_context

from .access import AccessResolver, IdentityAccessTable
from .auth import DEBUG_KNOWN_ROUTES, JWT_HEADER, Identity, KnownRoutes, PomeriumJwtDecoder
from .auth.well_known import fetch_known_routes, fetch_retry_config, resolve_jwks_url
from .policy import PolicyIndex, load_policy_document
from .rendering import GlobalData, RenderCache, Renderer
from .routes import load_hallway_config

CONFIG_FILE = "config.toml"
POLICY_FILE = "pomerium.yaml"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
ASSET_MAX_AGE = 14 * 24 * 60 * 60
ASSET_CACHE_HEADERS = {"Cache-Control": f"max-age={ASSET_MAX_AGE}"}
ROOT_STATIC_FILES = (
    "apple-touch-icon.png",
    "favicon-16x16.png",
    "favicon-32x32.png",
    "favicon.ico",
    "site.webmanifest",
)


class CachedStaticFiles(StaticFiles):
    """Static files served with a long client-side cache lifetime."""

    def file_response(self, *args, **kwargs) -> Response:
        response = super().file_response(*args, **kwargs)
        response.headers.update(ASSET_CACHE_HEADERS)
        return response


class HallwayService(BaseService):
    """Hallway service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None):
        super().__init__("hallway", config or get_config("hallway"))

        conf_dir = Path(self.config.conf_dir)
        self.html_dir = Path(self.config.html_dir)

        self.hallway_config = load_hallway_config(conf_dir / CONFIG_FILE)
        self.domain = self.hallway_config.domain.name
        self.policy_index = PolicyIndex.from_document(load_policy_document(conf_dir / POLICY_FILE))

        resolver = AccessResolver(self.hallway_config.routes, self.policy_index)
        self.access_table = IdentityAccessTable.build(
            resolver, self.policy_index.known_emails, metrics=self.metrics
        )
        self.render_cache = RenderCache(
            clean_interval=self.config.cache_clean_interval_seconds,
            max_age=self.config.cache_max_age_seconds,
            metrics=self.metrics,
        )
        self.renderer = Renderer(
            self.html_dir,
            self.access_table,
            self.render_cache,
            background=self.config.background,
            metrics=self.metrics,
        )

        self.known_routes: Optional[KnownRoutes] = None
        self.jwt_decoder: Optional[PomeriumJwtDecoder] = None

        self.app.add_middleware(GZipMiddleware, minimum_size=500)
        self._setup_hallway_routes()

    def _setup_hallway_routes(self):
        """Set up hallway-specific routes."""

        @self.app.get("/", response_class=HTMLResponse)
        def index(identity: Identity = Depends(self.current_identity)):
            """Personalised hallway page."""
            markup = self.renderer.render(identity)
            return HTMLResponse(content=markup, headers=NO_CACHE_HEADERS)

        @self.app.get("/index.html", include_in_schema=False)
        async def redirect_index():
            return RedirectResponse(url="/", status_code=301)

        self.app.mount(
            "/assets",
            CachedStaticFiles(directory=self.html_dir / "assets", check_dir=False),
            name="assets",
        )
        for filename in ROOT_STATIC_FILES:
            self.app.add_api_route(
                f"/{filename}",
                self._static_file_endpoint(filename),
                methods=["GET"],
                include_in_schema=False,
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            if exc.status_code != 404:
                self.logger.warning("HTTP error", path=request.url.path, status_code=exc.status_code)
            return self._error_response(request, exc.status_code, None)

    def _static_file_endpoint(self, filename: str):
        path = self.html_dir / filename

        async def static_file():
            if not path.is_file():
                raise HTTPException(status_code=404)
            return FileResponse(path, headers=ASSET_CACHE_HEADERS)

        static_file.__name__ = f"static_{filename.replace('.', '_').replace('-', '_')}"
        return static_file

    async def current_identity(self, request: Request) -> Identity:
        """Identity for the request, from the proxy's assertion header."""
        if not self.config.auth_enabled:
            identity = Identity(email=self.config.debug_email, name=self.config.debug_name)
        elif self.jwt_decoder is None:
            raise AuthenticationError("Identity assertions can't be verified yet")
        else:
            identity = self.jwt_decoder.decode(request.headers.get(JWT_HEADER))

        set_identity_context(identity.email)
        return identity

    def _error_response(self, request: Request, status_code: int,
                        exc: Optional[HallwayException]) -> Response:
        return HTMLResponse(content=self.renderer.render_error(status_code), status_code=status_code)

    async def _check_dependencies(self) -> Dict[str, str]:
        return {
            "identity_assertions": "ok" if self.jwt_decoder or not self.config.auth_enabled else "pending",
            "render_cache": "ok" if self.render_cache.running else "stopped",
        }

    async def start(self):
        """Fetch the proxy's well-known data and start cache maintenance."""
        if self.config.auth_enabled:
            retry_config = fetch_retry_config(
                self.config.fetch_retry_attempts, self.config.fetch_retry_delay_seconds
            )
            self.known_routes = await fetch_known_routes(
                self.domain, retry_config=retry_config, proxy_url=self.config.proxy_url
            )
            self.jwt_decoder = await PomeriumJwtDecoder.from_jwks_url(
                self.domain,
                resolve_jwks_url(self.known_routes, self.domain, self.config.proxy_url),
                retry_config=retry_config,
                leeway=self.config.jwt_leeway_seconds,
            )
        else:
            self.logger.warning(
                "Identity assertions disabled, every request uses the debug identity",
                email=self.config.debug_email,
            )
            self.known_routes = DEBUG_KNOWN_ROUTES

        self.renderer.set_global_data(
            GlobalData(sign_out_url=self.known_routes.frontchannel_logout_uri)
        )
        await self.render_cache.start()
        self.logger.info("Hallway service started", domain=self.domain)

    async def stop(self):
        await self.render_cache.stop()
        self.logger.info("Hallway service stopped")


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = HallwayService(config)
    return service.app


def main():
    service = HallwayService()
    service.run()


if __name__ == "__main__":
    main()

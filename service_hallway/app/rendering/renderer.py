"""
HTML rendering for the hallway page and the error pages.
"""

from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from shared.errors import ConfigurationError, RenderError
from shared.logging import get_logger

from ..access.table import IdentityAccessTable, UserView
from ..auth.identity import Identity
from .cache import RenderCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

INDEX_TEMPLATE = "index.html"
NOT_FOUND_TEMPLATE = "404.html"
SERVER_ERROR_TEMPLATE = "50x.html"
FALLBACK_ERROR_TEXT = "Sorry we had an error!"


@dataclass(frozen=True)
class GlobalData:
    """Values shared by every rendered page."""
    sign_out_url: str


class Renderer:
    """Renders personalised pages through the cache."""

    def __init__(
        self,
        html_dir: Union[str, Path],
        access_table: IdentityAccessTable,
        cache: RenderCache,
        *,
        background: str,
        global_data: Optional[GlobalData] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.html_dir = Path(html_dir)
        self.access_table = access_table
        self.cache = cache
        self.background = background
        self.global_data = global_data or GlobalData(sign_out_url="")
        self.metrics = metrics
        self.logger = get_logger("hallway.rendering")

        self.env = Environment(
            loader=FileSystemLoader(str(self.html_dir)),
            autoescape=select_autoescape(["html", "htm", "xml"]),
        )
        try:
            self.template = self.env.get_template(INDEX_TEMPLATE)
        except TemplateError as e:
            raise ConfigurationError(
                f"Couldn't load template {INDEX_TEMPLATE} from {self.html_dir}",
                details={"error": str(e)},
            ) from e

    def set_global_data(self, global_data: GlobalData):
        """Replace the shared values once the proxy's well-known data is known."""
        self.global_data = global_data

    def render(self, identity: Identity) -> str:
        view = self.access_table.view_for(identity, self.background)
        return self.cache.get_or_render(view.email, lambda: self._render_view(view))

    def _render_view(self, view: UserView) -> str:
        timer = self.metrics.time_operation("render_duration_seconds") if self.metrics else nullcontext()
        try:
            with timer:
                return self.template.render(
                    name=view.name,
                    email=view.email,
                    background=view.background,
                    accessible_routes=view.accessible_routes,
                    sign_out_url=self.global_data.sign_out_url,
                )
        except Exception as e:
            self.logger.error("Failed to render page", email=view.email, error=str(e))
            raise RenderError(
                "Failed to render hallway page",
                details={"email": view.email, "error": str(e)},
            ) from e

    def render_error(self, status_code: int) -> str:
        """Error page for ``status_code``; never raises."""
        template_name = NOT_FOUND_TEMPLATE if status_code == 404 else SERVER_ERROR_TEMPLATE
        try:
            template = self.env.get_template(template_name)
            return template.render(
                status_code=status_code,
                sign_out_url=self.global_data.sign_out_url,
            )
        except Exception as e:
            self.logger.error("Failed to render error page", template=template_name, error=str(e))
            return FALLBACK_ERROR_TEXT

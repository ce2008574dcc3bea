"""
Rendering package: Jinja2 templates and the per-email render cache.
"""

from .cache import RenderCache, RenderCacheEntry
from .renderer import FALLBACK_ERROR_TEXT, GlobalData, Renderer

__all__ = ["FALLBACK_ERROR_TEXT", "GlobalData", "RenderCache", "RenderCacheEntry", "Renderer"]

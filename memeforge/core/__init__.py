"""Core utilities used across all modules."""

from .surface import RasterSurface
from .scaling import scale_factor, scale_overlay, scale_overlays_for, fit_within
from .fonts import get_font, resolve_font_path, clear_font_cache

__all__ = [
    "RasterSurface",
    "scale_factor",
    "scale_overlay",
    "scale_overlays_for",
    "fit_within",
    "get_font",
    "resolve_font_path",
    "clear_font_cache",
]

"""
Font loading for caption rendering.

Fonts are expensive to load from disk, so instances are cached by
(path, size). Resolution falls back through the configured font, a list of
common bold system fonts, and finally Pillow's bundled scalable font.
"""

from pathlib import Path
from typing import Optional

from PIL import ImageFont
from loguru import logger

from ..config import get_settings


FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/msttcorefonts/Impact.ttf",
    "/System/Library/Fonts/Supplemental/Impact.ttf",
    "/Library/Fonts/Impact.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]

_font_cache: dict[tuple[Optional[str], float], ImageFont.FreeTypeFont] = {}
_resolved_path: Optional[str] = None
_resolved = False


def resolve_font_path(requested: Optional[str] = None) -> Optional[str]:
    """
    Find the first usable font file.

    Returns None when no candidate exists; callers then use Pillow's default font.
    """
    global _resolved_path, _resolved

    if requested:
        if Path(requested).exists():
            return requested
        logger.warning(f"Font not found: {requested}, falling back to system fonts")

    if _resolved:
        return _resolved_path

    configured = get_settings().font_path
    candidates = ([configured] if configured else []) + FONT_CANDIDATES
    for candidate in candidates:
        if Path(candidate).exists():
            _resolved_path = candidate
            break
    else:
        logger.warning("No TrueType font found, using Pillow's default font")

    _resolved = True
    return _resolved_path


def get_font(size: float, font_path: Optional[str] = None) -> ImageFont.FreeTypeFont:
    """Get a cached font instance for the given size."""
    size = round(float(size), 2)
    path = resolve_font_path(font_path)
    key = (path, size)
    if key in _font_cache:
        return _font_cache[key]

    font = None
    if path:
        try:
            font = ImageFont.truetype(path, size)
        except OSError as e:
            logger.warning(f"Failed to load font {path}: {e}")

    if font is None:
        font = ImageFont.load_default(size=size)

    _font_cache[key] = font
    return font


def clear_font_cache():
    """Forget loaded fonts and the resolved font path."""
    global _resolved_path, _resolved
    _font_cache.clear()
    _resolved_path = None
    _resolved = False

"""
Visual Module

Renders captions onto raster surfaces with Pillow.
"""

from .overlays import (
    CaptionLayout,
    CaptionLine,
    compose,
    layout_overlay,
    render,
    wrap_text,
)

__all__ = ["CaptionLayout", "CaptionLine", "compose", "layout_overlay", "render", "wrap_text"]

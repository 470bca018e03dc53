"""
Caption Rendering with Pillow

Draws the top and bottom captions onto a raster surface:
the background frame is aspect-filled to the surface, then each caption is
word-wrapped to 90% of the surface width, centred, and drawn as a stroke
outline with the fill on top.

Key insight: layout is computed separately from drawing, so callers can
inspect line breaks and anchor positions without rasterising anything.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, ImageDraw, ImageFont, ImageOps
from loguru import logger

from ..core.fonts import get_font
from ..core.scaling import scale_overlays_for
from ..core.surface import RasterSurface
from ..models import TextOverlay


LINE_HEIGHT_RATIO = 1.2      # Line height as a multiple of font size
MAX_WIDTH_RATIO = 0.9        # Wrap width as a fraction of surface width

_WORD = re.compile(r"\S+")


@dataclass
class CaptionLine:
    """A single wrapped line, centred on (x, y)."""
    text: str
    x: float
    y: float
    width: float


@dataclass
class CaptionLayout:
    """Where one caption's lines land on a surface."""
    font_size: float
    stroke_width: float
    anchor_y: float
    max_width: float
    lines: list[CaptionLine] = field(default_factory=list)

    @property
    def line_height(self) -> float:
        return LINE_HEIGHT_RATIO * self.font_size


def wrap_text(content: str, font: ImageFont.FreeTypeFont, max_width: float) -> list[str]:
    """
    Word-wrap text to a pixel width.

    Breaks only at whitespace and keeps the original spacing inside a line.
    A word wider than max_width gets a line of its own, unbroken.
    Newlines always break.
    """
    lines: list[str] = []
    for paragraph in content.split("\n"):
        words = list(_WORD.finditer(paragraph))
        if not words:
            continue

        start, end = words[0].start(), words[0].end()
        for word in words[1:]:
            if font.getlength(paragraph[start:word.end()]) <= max_width:
                end = word.end()
            else:
                lines.append(paragraph[start:end])
                start, end = word.start(), word.end()
        lines.append(paragraph[start:end])

    return lines


def layout_overlay(
    overlay: TextOverlay,
    width: int,
    height: int,
    font_path: Optional[str] = None,
) -> CaptionLayout:
    """
    Lay out an already-scaled overlay on a width x height surface.

    Lines are stacked symmetrically about the anchor at
    vertical_position_percent of the surface height.
    """
    font = get_font(overlay.font_size, font_path)
    max_width = width * MAX_WIDTH_RATIO
    anchor_y = overlay.vertical_position_percent / 100 * height

    layout = CaptionLayout(
        font_size=overlay.font_size,
        stroke_width=overlay.stroke_width,
        anchor_y=anchor_y,
        max_width=max_width,
    )

    texts = wrap_text(overlay.content, font, max_width)
    first_y = anchor_y - (len(texts) - 1) * layout.line_height / 2
    for i, text in enumerate(texts):
        layout.lines.append(CaptionLine(
            text=text,
            x=width / 2,
            y=first_y + i * layout.line_height,
            width=font.getlength(text),
        ))

    return layout


def paint_background(surface: RasterSurface, frame: Image.Image):
    """Aspect-fill a frame onto the full surface. The frame itself is left untouched."""
    if frame.size == surface.size:
        filled = frame.convert("RGBA")
    else:
        filled = ImageOps.fit(frame.convert("RGBA"), surface.size, method=Image.Resampling.LANCZOS)
    surface.paste_frame(filled)


def draw_caption(
    layer: Image.Image,
    overlay: TextOverlay,
    layout: CaptionLayout,
    font_path: Optional[str] = None,
):
    """Draw one caption's lines: stroke first, fill over it."""
    if not layout.lines:
        return

    font = get_font(layout.font_size, font_path)
    stroke = int(round(layout.stroke_width))
    draw = ImageDraw.Draw(layer)

    for line in layout.lines:
        if stroke > 0:
            draw.text(
                (line.x, line.y), line.text, font=font, anchor="mm",
                fill=overlay.stroke_color,
                stroke_width=stroke, stroke_fill=overlay.stroke_color,
            )
        draw.text((line.x, line.y), line.text, font=font, anchor="mm", fill=overlay.color)


def render(
    surface: RasterSurface,
    background: Optional[Image.Image],
    top: TextOverlay,
    bottom: TextOverlay,
    font_path: Optional[str] = None,
) -> bool:
    """
    Render the background and both captions onto the surface.

    Overlays must already be scaled for this surface.
    Returns False (and draws nothing) when the background is not decoded yet.
    """
    if background is None:
        logger.debug(f"Skipping render on {surface}: frame not ready")
        return False

    paint_background(surface, background)

    # Captions go on their own layer so translucent colors blend instead of punching holes
    layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
    for overlay in (top, bottom):
        layout = layout_overlay(overlay, surface.width, surface.height, font_path)
        draw_caption(layer, overlay, layout, font_path)

    surface.image.alpha_composite(layer)
    return True


def compose(
    surface: RasterSurface,
    background: Optional[Image.Image],
    top: TextOverlay,
    bottom: TextOverlay,
    font_path: Optional[str] = None,
) -> bool:
    """Scale reference-unit overlays for the surface, then render."""
    scaled_top, scaled_bottom = scale_overlays_for(surface.width, surface.height, top, bottom)
    return render(surface, background, scaled_top, scaled_bottom, font_path)

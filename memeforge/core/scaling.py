"""
Resolution-independent caption scaling.

Captions are authored against a 500 unit reference frame. Before drawing onto
any surface the overlay is scaled by min(width, height) / 500, with the font
size floored so captions stay legible on small exports.
"""

from ..models import MIN_FONT_SIZE, REFERENCE_HEIGHT, TextOverlay


def scale_factor(width: int, height: int) -> float:
    """Scale factor for a surface of the given pixel size."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot scale for a {width}x{height} surface")
    return min(width, height) / REFERENCE_HEIGHT


def scale_overlay(overlay: TextOverlay, factor: float) -> TextOverlay:
    """
    Scale an overlay's font size and stroke width.

    Font size is floored at MIN_FONT_SIZE, stroke width is not.
    """
    if factor <= 0:
        raise ValueError(f"Scale factor must be positive, got {factor}")
    return overlay.model_copy(update={
        "font_size": max(overlay.font_size * factor, MIN_FONT_SIZE),
        "stroke_width": overlay.stroke_width * factor,
    })


def scale_overlays_for(
    width: int,
    height: int,
    *overlays: TextOverlay,
) -> tuple[TextOverlay, ...]:
    """Scale several overlays for one surface size."""
    factor = scale_factor(width, height)
    return tuple(scale_overlay(o, factor) for o in overlays)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """
    Shrink (never enlarge) a size to fit a bounding box, preserving aspect ratio.

    1024x768 inside 600x600 -> 600x450.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot fit a {width}x{height} frame")
    ratio = min(1.0, max_width / width, max_height / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))

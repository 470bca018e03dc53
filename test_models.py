"""
Tests for captions, media selection, export options, and the editor session.

Run with: pytest test_models.py
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from conftest import make_gif_bytes, make_image_bytes
from memeforge.models import (
    ExportConfig,
    ExportFormat,
    MediaKind,
    MediaSource,
    ResolutionTier,
    TextOverlay,
    infer_media_kind,
    parse_color,
    to_data_url,
)
from memeforge.session import EditorSession


def test_parse_color_forms():
    assert parse_color("#FFFFFF") == (255, 255, 255, 255)
    assert parse_color("#00000080") == (0, 0, 0, 128)
    assert parse_color("red") == (255, 0, 0, 255)
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
    assert parse_color([1, 2, 3, 4]) == (1, 2, 3, 4)


@pytest.mark.parametrize("value", ["not-a-color", (300, 0, 0), (1, 2), 42])
def test_parse_color_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_color(value)


def test_overlay_defaults():
    top, bottom = TextOverlay.top_default(), TextOverlay.bottom_default()
    assert top.content == "TOP TEXT"
    assert top.vertical_position_percent == 50
    assert bottom.content == "BOTTOM TEXT"
    assert bottom.vertical_position_percent == 90
    assert top.color == (255, 255, 255, 255)
    assert top.stroke_color == (0, 0, 0, 255)


@pytest.mark.parametrize("changes", [
    {"font_size": 0},
    {"stroke_width": -1},
    {"vertical_position_percent": 101},
    {"color": "nope"},
])
def test_overlay_validation(changes):
    with pytest.raises(ValidationError):
        TextOverlay(**changes)


def test_overlay_is_immutable():
    overlay = TextOverlay(content="A")
    with pytest.raises(ValidationError):
        overlay.content = "B"

    changed = overlay.with_changes(content="B", color="#00FF00")
    assert overlay.content == "A"
    assert changed.content == "B"
    assert changed.color == (0, 255, 0, 255)


@pytest.mark.parametrize("locator, mime, kind", [
    ("cat.png", None, MediaKind.IMAGE),
    ("cat.JPG", None, MediaKind.IMAGE),
    ("dance.gif", None, MediaKind.ANIMATED_IMAGE),
    ("clip.mp4", None, MediaKind.VIDEO),
    ("https://example.com/v/clip.webm?x=1", None, MediaKind.VIDEO),
    ("upload", "video/quicktime", MediaKind.VIDEO),
    ("upload", "image/gif", MediaKind.ANIMATED_IMAGE),
    ("data:image/png;base64,AAAA", None, MediaKind.IMAGE),
    ("data:video/mp4;base64,AAAA", None, MediaKind.VIDEO),
    (Path("dir/meme.jpeg"), None, MediaKind.IMAGE),
])
def test_infer_media_kind(locator, mime, kind):
    assert infer_media_kind(locator, mime) == kind


def test_infer_media_kind_from_bytes():
    assert infer_media_kind(make_gif_bytes()) == MediaKind.ANIMATED_IMAGE
    assert infer_media_kind(make_image_bytes((8, 8))) == MediaKind.IMAGE


def test_media_source_select():
    media = MediaSource.select("clip.mp4", natural_size=(1280, 720))
    assert media.kind == MediaKind.VIDEO
    assert media.is_video
    assert (media.natural_width, media.natural_height) == (1280, 720)

    raw = MediaSource.from_image_bytes(b"\x89PNG....")
    assert raw.kind == MediaKind.IMAGE
    assert raw.label == "<8 bytes>"


def test_export_config_quality():
    assert ExportConfig().quality == 0.9
    assert ExportConfig(quality=0.349).quality == 0.3
    assert ExportConfig(quality=1.0).quality == 1.0
    for bad in (0.0, 0.05, 1.5):
        with pytest.raises(ValidationError):
            ExportConfig(quality=bad)


def test_export_config_for_video_forces_png():
    config = ExportConfig(format="jpeg", quality=0.5, resolution_tier="low").for_media(MediaKind.VIDEO)
    assert config.format == ExportFormat.PNG
    assert config.resolution_tier == ResolutionTier.LOW

    original = ExportConfig(resolution_tier="original").for_media(MediaKind.VIDEO)
    assert original.resolution_tier == ResolutionTier.HIGH


def test_export_config_for_image_uses_original_size():
    config = ExportConfig(format="jpeg", resolution_tier="low").for_media(MediaKind.IMAGE)
    assert config.format == ExportFormat.JPEG
    assert config.resolution_tier == ResolutionTier.ORIGINAL


def test_export_format_extensions():
    assert ExportFormat.JPEG.extension == "jpg"
    assert ExportFormat.PNG.extension == "png"
    assert ExportFormat.JPEG.pillow_format == "JPEG"


def test_to_data_url():
    assert to_data_url(b"abc") == "data:image/png;base64,YWJj"


def test_session_edits_and_reset():
    session = EditorSession()
    session.edit_top(content="WHEN THE CODE", font_size=60, color="#FFFF00")
    session.edit_bottom(content="ACTUALLY WORKS")

    session.reset_captions()
    assert session.top.content == "TOP TEXT"
    assert session.bottom.content == "BOTTOM TEXT"
    # Styling survives a reset
    assert session.top.font_size == 60
    assert session.top.color == (255, 255, 0, 255)


def test_session_apply_generated():
    session = EditorSession()
    media = MediaSource.from_image_bytes(make_image_bytes((16, 16)))
    session.apply_generated(media, "ME", "ALSO ME")

    assert session.media is media
    assert session.overlays[0].content == "ME"
    assert session.overlays[1].content == "ALSO ME"
    assert session.bottom.vertical_position_percent == 90

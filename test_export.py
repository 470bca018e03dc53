"""
Tests for the full-resolution export pipeline.

Run with: pytest test_export.py
"""

import re
from io import BytesIO

import pytest
from PIL import Image

from conftest import make_image_bytes
from memeforge.export import ExportPipeline, encode_surface
from memeforge.export.pipeline import EncodeError
from memeforge.core import RasterSurface
from memeforge.media import StaticFrameSource
from memeforge.models import ExportConfig, ExportFormat, MediaKind, MediaSource, TextOverlay
from memeforge.preview import ManualRefreshScheduler, PreviewController


TOP = TextOverlay.top_default()
BOTTOM = TextOverlay.bottom_default()


def _decode(asset) -> Image.Image:
    return Image.open(BytesIO(asset.data))


def _counter(start=1_700_000_000_000):
    now = [start]

    def clock():
        return now[0]

    return clock


# =============================================================================
# Images
# =============================================================================

def test_jpeg_export_keeps_natural_size(image_bytes):
    pipeline = ExportPipeline()
    result = pipeline.export(
        MediaSource.from_image_bytes(image_bytes), TOP, BOTTOM,
        ExportConfig(format="jpeg", quality=0.5),
    )

    assert result.ok
    asset = result.asset
    img = _decode(asset)
    assert img.format == "JPEG"
    assert img.size == (1024, 768)
    assert (asset.width, asset.height) == (1024, 768)
    assert asset.mime_type == "image/jpeg"
    assert re.fullmatch(r"image-\d+\.jpg", asset.filename)


def test_png_export_caps_each_axis():
    media = MediaSource.from_image_bytes(make_image_bytes((2400, 1000)))
    result = ExportPipeline().export(media, TOP, BOTTOM, ExportConfig(format="png"))

    img = _decode(result.asset)
    assert img.format == "PNG"
    assert img.size == (1920, 1000)


def test_export_differs_from_preview_surface(image_bytes):
    media = MediaSource.from_image_bytes(image_bytes)
    controller = PreviewController(scheduler=ManualRefreshScheduler())
    controller.load(media, TOP, BOTTOM)
    before = controller.snapshot().tobytes()

    result = ExportPipeline().export(media, TOP, BOTTOM, frame_source=controller.source)

    assert result.asset.width == 1024
    assert controller.surface.size == (600, 450)
    assert controller.snapshot().tobytes() == before
    assert controller.frames_rendered == 1


def test_jpeg_quality_changes_output():
    media = MediaSource.from_image_bytes(make_image_bytes((256, 256), noise=True))
    pipeline = ExportPipeline()
    low = pipeline.export(media, TOP, BOTTOM, ExportConfig(format="jpeg", quality=0.1))
    high = pipeline.export(media, TOP, BOTTOM, ExportConfig(format="jpeg", quality=1.0))
    assert len(low.asset.data) < len(high.asset.data)


def test_png_ignores_quality():
    media = MediaSource.from_image_bytes(make_image_bytes((128, 128)))
    pipeline = ExportPipeline()
    a = pipeline.export(media, TOP, BOTTOM, ExportConfig(format="png", quality=0.1))
    b = pipeline.export(media, TOP, BOTTOM, ExportConfig(format="png", quality=1.0))
    assert a.asset.data == b.asset.data


def test_export_reuses_decoded_source(tmp_path):
    path = tmp_path / "meme.png"
    path.write_bytes(make_image_bytes((300, 200)))
    media = MediaSource.select(path)

    source = StaticFrameSource(media)
    source.load()
    path.unlink()

    result = ExportPipeline().export(media, TOP, BOTTOM, frame_source=source)
    assert result.ok
    assert _decode(result.asset).size == (300, 200)


def test_animated_image_exports_first_frame():
    from conftest import make_gif_bytes

    media = MediaSource.from_image_bytes(make_gif_bytes(), "image/gif")
    result = ExportPipeline().export(media, TOP, BOTTOM)
    assert result.asset.media_kind == MediaKind.ANIMATED_IMAGE
    assert re.fullmatch(r"animated-image-\d+\.png", result.asset.filename)
    assert _decode(result.asset).size == (64, 48)


# =============================================================================
# Video frame capture
# =============================================================================

@pytest.mark.parametrize("tier, size", [
    ("low", (640, 480)),
    ("medium", (1280, 720)),
    ("high", (320, 240)),
])
def test_video_tiers(capture_factory, tier, size):
    pipeline = ExportPipeline(decoder_factory=capture_factory(size=(320, 240)))
    result = pipeline.export(
        MediaSource.select("clip.mp4"), TOP, BOTTOM,
        ExportConfig(format="jpeg", quality=0.3, resolution_tier=tier),
    )

    img = _decode(result.asset)
    assert img.format == "PNG"
    assert img.size == size
    assert result.asset.format == ExportFormat.PNG
    assert re.fullmatch(rf"video-{tier}-\d+\.png", result.asset.filename)


def test_video_high_tier_fallback(capture_factory):
    pipeline = ExportPipeline(decoder_factory=capture_factory(report_size=False))
    result = pipeline.export(
        MediaSource.select("clip.mp4"), TOP, BOTTOM, ExportConfig(resolution_tier="high"),
    )
    assert _decode(result.asset).size == (1920, 1080)


def test_video_export_releases_its_own_decoder(capture_factory):
    factory = capture_factory()
    ExportPipeline(decoder_factory=factory).export(MediaSource.select("clip.mp4"), TOP, BOTTOM)
    assert len(factory.created) == 1
    assert factory.created[0].released


def test_video_export_captures_live_frame(capture_factory):
    factory = capture_factory(frames=5)
    scheduler = ManualRefreshScheduler()
    controller = PreviewController(scheduler=scheduler, decoder_factory=factory)
    media = MediaSource.select("clip.mp4")
    controller.load(media, TOP, BOTTOM)
    controller.play()
    scheduler.run(2)

    result = ExportPipeline(decoder_factory=factory).export(
        media, TOP, BOTTOM, ExportConfig(resolution_tier="high"), frame_source=controller.source,
    )

    assert result.ok
    # No second decoder was opened and playback carries on
    assert len(factory.created) == 1
    assert not factory.created[0].released
    assert controller.source.is_playing
    scheduler.tick()
    assert controller.frames_rendered == 4


# =============================================================================
# Failures and filenames
# =============================================================================

def test_decode_failure_returns_notice():
    result = ExportPipeline().export(MediaSource.from_image_bytes(b"junk"), TOP, BOTTOM)
    assert not result.ok
    assert result.asset is None
    assert result.error == "Error loading media for download. Please try again."


def test_video_open_failure_returns_notice(capture_factory):
    pipeline = ExportPipeline(decoder_factory=capture_factory(opened=False))
    result = pipeline.export(MediaSource.select("clip.mp4"), TOP, BOTTOM)
    assert result.error == "Error loading media for download. Please try again."


def test_encode_failure_returns_notice(image_bytes, monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise OSError("disk on fire")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    result = ExportPipeline().export(MediaSource.from_image_bytes(image_bytes), TOP, BOTTOM)
    assert result.asset is None
    assert result.error == "Error downloading meme. Please try again."


def test_encode_surface_raises_encode_error(monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise ValueError("unsupported")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    with pytest.raises(EncodeError):
        encode_surface(RasterSurface(4, 4), ExportConfig())


def test_filenames_are_unique_within_a_pipeline():
    pipeline = ExportPipeline(clock=_counter(1000))
    media = MediaSource.from_image_bytes(make_image_bytes((32, 32)))

    names = [pipeline.export(media, TOP, BOTTOM).asset.filename for _ in range(3)]
    assert names == ["image-1000.png", "image-1001.png", "image-1002.png"]


def test_asset_save(tmp_path, image_bytes):
    asset = ExportPipeline(clock=_counter(42)).export(
        MediaSource.from_image_bytes(image_bytes), TOP, BOTTOM,
    ).asset
    path = asset.save(tmp_path / "out")
    assert path.name == "image-42.png"
    assert path.read_bytes() == asset.data

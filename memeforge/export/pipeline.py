"""
Export Pipeline

Produces the downloadable, full-resolution meme:
1. Capture a frame (the decoded image, or the current video frame)
2. Allocate a fresh export surface at the target resolution
3. Scale the captions for that surface and render them
4. Encode to PNG or JPEG

The export surface is created per request and never shared with the preview.
Video export is a single PNG frame capture; no video encoding is attempted.
"""

import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

from PIL import Image
from loguru import logger

from ..config import get_settings
from ..core.surface import RasterSurface
from ..media.sources import (
    DecodeError,
    DecoderFactory,
    FrameSource,
    MediaError,
    StaticFrameSource,
    VideoFrameSource,
    supports_playback,
)
from ..models import (
    HIGH_TIER_FALLBACK,
    TIER_DIMENSIONS,
    ExportConfig,
    ExportFormat,
    MediaKind,
    MediaSource,
    TextOverlay,
)
from ..visual.overlays import compose


class EncodeError(MediaError):
    """Surface could not be serialized to an image file."""
    pass


@dataclass
class ExportedAsset:
    """An encoded meme, ready to be downloaded."""
    filename: str
    data: bytes
    format: ExportFormat
    width: int
    height: int
    media_kind: MediaKind

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.value}"

    def save(self, directory: Path) -> Path:
        """Write the asset into a directory, returning the file path."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.data)
        logger.info(f"Saved {self.filename} ({len(self.data)} bytes) to {directory}")
        return path


@dataclass
class ExportResult:
    """Outcome of an export request. Failures carry a user-facing notice."""
    asset: Optional[ExportedAsset] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.asset is not None


def encode_surface(surface: RasterSurface, config: ExportConfig) -> bytes:
    """Serialize a surface. Quality only applies to JPEG."""
    buffer = BytesIO()
    try:
        if config.format == ExportFormat.JPEG:
            surface.image.convert("RGB").save(
                buffer, "JPEG", quality=int(round(config.quality * 100))
            )
        else:
            surface.image.save(buffer, "PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode {config.format.value}: {e}") from e
    return buffer.getvalue()


class ExportPipeline:
    """
    Render and encode memes for download.

    Usage:
        pipeline = ExportPipeline()
        result = pipeline.export(media, top, bottom, ExportConfig(format="jpeg", quality=0.5))
        if result.ok:
            result.asset.save(Path("output"))
        else:
            print(result.error)
    """

    def __init__(
        self,
        max_dimension: Optional[int] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        font_path: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.max_dimension = max_dimension or get_settings().export_max_dimension
        self.font_path = font_path
        self._decoder_factory = decoder_factory
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last_timestamp = 0

    def export(
        self,
        media: MediaSource,
        top: TextOverlay,
        bottom: TextOverlay,
        config: Optional[ExportConfig] = None,
        frame_source: Optional[FrameSource] = None,
    ) -> ExportResult:
        """Export a meme, reporting failures as a notice instead of raising."""
        try:
            asset = self.render_asset(media, top, bottom, config, frame_source)
        except DecodeError as e:
            logger.error(f"Export failed, could not load {media.label}: {e}")
            return ExportResult(error="Error loading media for download. Please try again.")
        except EncodeError as e:
            logger.error(f"Export failed, could not encode: {e}")
            return ExportResult(error="Error downloading meme. Please try again.")

        return ExportResult(asset=asset)

    def render_asset(
        self,
        media: MediaSource,
        top: TextOverlay,
        bottom: TextOverlay,
        config: Optional[ExportConfig] = None,
        frame_source: Optional[FrameSource] = None,
    ) -> ExportedAsset:
        """
        Export a meme. Raises DecodeError or EncodeError.

        frame_source lets the caller hand over the preview's live source:
        images reuse its decoded bitmap, videos capture its current frame.
        """
        config = (config or ExportConfig(max_dimension=self.max_dimension)).for_media(media.kind)

        if media.kind == MediaKind.VIDEO:
            frame, size = self._capture_video_frame(media, config, frame_source)
        else:
            frame, size = self._capture_image(media, config, frame_source)

        surface = RasterSurface(*size, role="export")
        compose(surface, frame, top, bottom, self.font_path)
        data = encode_surface(surface, config)

        asset = ExportedAsset(
            filename=self._filename(media.kind, config),
            data=data,
            format=config.format,
            width=surface.width,
            height=surface.height,
            media_kind=media.kind,
        )
        logger.info(
            f"Exported {asset.filename}: {asset.width}x{asset.height} "
            f"{config.format.value} ({len(data)} bytes)"
        )
        return asset

    def _capture_image(
        self,
        media: MediaSource,
        config: ExportConfig,
        frame_source: Optional[FrameSource],
    ) -> tuple[Image.Image, tuple[int, int]]:
        if isinstance(frame_source, StaticFrameSource) and frame_source.is_ready() \
                and frame_source.media == media:
            frame = frame_source.current_frame()
        else:
            source = StaticFrameSource(media)
            source.load()
            frame = source.current_frame()

        width, height = frame.size
        return frame, (min(width, config.max_dimension), min(height, config.max_dimension))

    def _capture_video_frame(
        self,
        media: MediaSource,
        config: ExportConfig,
        frame_source: Optional[FrameSource],
    ) -> tuple[Image.Image, tuple[int, int]]:
        owned = None
        if supports_playback(frame_source) and frame_source.media == media:
            source = frame_source
        else:
            source = owned = VideoFrameSource(media, decoder_factory=self._decoder_factory, loop=False)

        try:
            if owned is not None:
                owned.load()
            if not source.refresh():
                raise DecodeError(f"No decoded video frame available for {media.label}")

            # Copy so the live preview can keep decoding while we render
            frame = source.current_frame().copy()
            if config.resolution_tier in TIER_DIMENSIONS:
                size = TIER_DIMENSIONS[config.resolution_tier]
            else:
                size = source.decoder_size() or HIGH_TIER_FALLBACK
        finally:
            if owned is not None:
                owned.close()

        return frame, size

    def _filename(self, kind: MediaKind, config: ExportConfig) -> str:
        """<kind>-[<tier>-]<timestamp>.<ext>, unique within this pipeline."""
        timestamp = self._clock()
        if timestamp <= self._last_timestamp:
            timestamp = self._last_timestamp + 1
        self._last_timestamp = timestamp

        parts = [kind.value.replace("_", "-")]
        if kind == MediaKind.VIDEO:
            parts.append(config.resolution_tier.value)
        parts.append(str(timestamp))
        return f"{'-'.join(parts)}.{config.format.extension}"

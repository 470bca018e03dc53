"""
Core data models for the meme compositor.
These define captions, selected media, and export options.
"""

import base64
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, field_validator


RGBA = tuple[int, int, int, int]
Locator = Union[Path, str, bytes]

# Every caption is authored against a frame this many units tall
REFERENCE_HEIGHT = 500
MIN_FONT_SIZE = 24

DEFAULT_TOP_TEXT = "TOP TEXT"
DEFAULT_BOTTOM_TEXT = "BOTTOM TEXT"

VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".m4v", ".mkv", ".avi", ".ogv"}
ANIMATED_EXTENSIONS = {".gif"}


def parse_color(value) -> RGBA:
    """
    Normalize a color to an RGBA tuple.

    Accepts "#RRGGBB", "#RRGGBBAA", CSS color names, or 3/4 tuples.
    """
    if isinstance(value, str):
        try:
            return tuple(ImageColor.getcolor(value.strip(), "RGBA"))
        except ValueError:
            raise ValueError(f"Unrecognized color: {value!r}")

    if isinstance(value, (tuple, list)) and len(value) in (3, 4):
        channels = [int(c) for c in value]
        if any(c < 0 or c > 255 for c in channels):
            raise ValueError(f"Color channels must be 0-255: {value!r}")
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)

    raise ValueError(f"Unrecognized color: {value!r}")


class TextOverlay(BaseModel):
    """
    One styled caption.

    Font size and stroke width are in reference units (a 500 unit tall frame);
    the vertical position is a percentage of the surface height.
    """
    model_config = ConfigDict(frozen=True)

    content: str = ""
    font_size: float = Field(default=48, gt=0)
    color: RGBA = (255, 255, 255, 255)
    stroke_color: RGBA = (0, 0, 0, 255)
    stroke_width: float = Field(default=3, ge=0)
    vertical_position_percent: float = Field(default=50, ge=0, le=100)

    @field_validator("color", "stroke_color", mode="before")
    @classmethod
    def _normalize_color(cls, value):
        return parse_color(value)

    def with_changes(self, **changes) -> "TextOverlay":
        """Return a validated copy with some fields replaced."""
        return TextOverlay.model_validate({**self.model_dump(), **changes})

    @classmethod
    def top_default(cls) -> "TextOverlay":
        return cls(content=DEFAULT_TOP_TEXT, vertical_position_percent=50)

    @classmethod
    def bottom_default(cls) -> "TextOverlay":
        return cls(content=DEFAULT_BOTTOM_TEXT, vertical_position_percent=90)


class MediaKind(str, Enum):
    """Kind of selected media, fixed at selection time."""
    IMAGE = "image"
    ANIMATED_IMAGE = "animated_image"
    VIDEO = "video"


def _kind_from_mime(mime_type: str) -> Optional[MediaKind]:
    mime_type = mime_type.lower().split(";")[0].strip()
    if mime_type.startswith("video/"):
        return MediaKind.VIDEO
    if mime_type == "image/gif":
        return MediaKind.ANIMATED_IMAGE
    if mime_type.startswith("image/"):
        return MediaKind.IMAGE
    return None


def infer_media_kind(locator: Locator, mime_type: Optional[str] = None) -> MediaKind:
    """Infer the media kind from a MIME type, a data URI, magic bytes, or an extension."""
    if mime_type:
        kind = _kind_from_mime(mime_type)
        if kind:
            return kind

    if isinstance(locator, bytes):
        if locator[:6] in (b"GIF87a", b"GIF89a"):
            return MediaKind.ANIMATED_IMAGE
        return MediaKind.IMAGE

    text = str(locator)
    if text.startswith("data:"):
        kind = _kind_from_mime(text[5:].split(",", 1)[0])
        return kind or MediaKind.IMAGE

    if text.startswith(("http://", "https://")):
        suffix = Path(urlparse(text).path).suffix.lower()
    else:
        suffix = Path(text).suffix.lower()

    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if suffix in ANIMATED_EXTENSIONS:
        return MediaKind.ANIMATED_IMAGE
    return MediaKind.IMAGE


class MediaSource(BaseModel):
    """
    A selected piece of media.
    Replaced wholesale on every new selection, never mutated.
    """
    model_config = ConfigDict(frozen=True)

    kind: MediaKind
    locator: Locator
    natural_width: Optional[int] = Field(default=None, gt=0)
    natural_height: Optional[int] = Field(default=None, gt=0)
    mime_type: Optional[str] = None

    @classmethod
    def select(
        cls,
        locator: Locator,
        mime_type: Optional[str] = None,
        natural_size: Optional[tuple[int, int]] = None,
    ) -> "MediaSource":
        """Create a media source, inferring its kind once."""
        width, height = natural_size or (None, None)
        return cls(
            kind=infer_media_kind(locator, mime_type),
            locator=locator,
            natural_width=width,
            natural_height=height,
            mime_type=mime_type,
        )

    @classmethod
    def from_image_bytes(cls, data: bytes, mime_type: str = "image/png") -> "MediaSource":
        return cls.select(data, mime_type=mime_type)

    @property
    def is_video(self) -> bool:
        return self.kind == MediaKind.VIDEO

    @property
    def label(self) -> str:
        """Short description for log lines."""
        if isinstance(self.locator, bytes):
            return f"<{len(self.locator)} bytes>"
        text = str(self.locator)
        if text.startswith("data:"):
            return text[:32] + "..."
        return text


class ExportFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self == ExportFormat.JPEG else "png"

    @property
    def pillow_format(self) -> str:
        return self.value.upper()


class ResolutionTier(str, Enum):
    """Named export sizes. LOW/MEDIUM/HIGH are used for video frame capture."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ORIGINAL = "original"    # Natural size capped at max_dimension per axis


TIER_DIMENSIONS = {
    ResolutionTier.LOW: (640, 480),
    ResolutionTier.MEDIUM: (1280, 720),
}
HIGH_TIER_FALLBACK = (1920, 1080)


class ExportConfig(BaseModel):
    """Options for a single export request. Never persisted."""
    model_config = ConfigDict(frozen=True)

    format: ExportFormat = ExportFormat.PNG
    quality: float = 0.9                 # 0.1-1.0 in steps of 0.1, JPEG only
    resolution_tier: ResolutionTier = ResolutionTier.HIGH
    max_dimension: int = Field(default=1920, gt=0)

    @field_validator("quality")
    @classmethod
    def _snap_quality(cls, value: float) -> float:
        if not 0.1 <= value <= 1.0:
            raise ValueError("quality must be between 0.1 and 1.0")
        return round(value, 1)

    def for_media(self, kind: MediaKind) -> "ExportConfig":
        """
        Normalize options for a media kind.

        Video exports are a single captured frame, always PNG.
        Image exports ignore the tier and use the capped natural size.
        """
        if kind == MediaKind.VIDEO:
            if self.resolution_tier == ResolutionTier.ORIGINAL:
                return self.model_copy(update={"format": ExportFormat.PNG, "resolution_tier": ResolutionTier.HIGH})
            return self.model_copy(update={"format": ExportFormat.PNG})
        return self.model_copy(update={"resolution_tier": ResolutionTier.ORIGINAL})


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """Encode bytes as a data: URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"

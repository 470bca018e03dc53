"""
Meme Forge - caption compositing and preview engine.

Overlays styled top/bottom captions on images, GIFs, and video frames,
keeps a live low-resolution preview in sync with edits, and exports
full-resolution PNG/JPEG memes.
"""

from .models import (
    ExportConfig,
    ExportFormat,
    MediaKind,
    MediaSource,
    ResolutionTier,
    TextOverlay,
)
from .session import EditorSession
from .core import RasterSurface, scale_factor, scale_overlay
from .media import DecodeError, MediaError, open_frame_source
from .visual import compose, render
from .preview import PreviewController, PreviewState, ManualRefreshScheduler, AsyncioRefreshScheduler
from .export import EncodeError, ExportPipeline, ExportResult, ExportedAsset

__version__ = "1.0.0"

__all__ = [
    "ExportConfig",
    "ExportFormat",
    "MediaKind",
    "MediaSource",
    "ResolutionTier",
    "TextOverlay",
    "EditorSession",
    "RasterSurface",
    "scale_factor",
    "scale_overlay",
    "DecodeError",
    "MediaError",
    "open_frame_source",
    "compose",
    "render",
    "PreviewController",
    "PreviewState",
    "ManualRefreshScheduler",
    "AsyncioRefreshScheduler",
    "EncodeError",
    "ExportPipeline",
    "ExportResult",
    "ExportedAsset",
]

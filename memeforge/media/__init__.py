"""
Media Module

Resolves media locators and decodes frames from images (Pillow)
and videos (OpenCV).
"""

from .locators import read_bytes, materialize, decode_data_uri
from .sources import (
    DecodeError,
    FrameSource,
    MediaError,
    StaticFrameSource,
    VideoFrameSource,
    open_frame_source,
    supports_playback,
)

__all__ = [
    "read_bytes",
    "materialize",
    "decode_data_uri",
    "DecodeError",
    "FrameSource",
    "MediaError",
    "StaticFrameSource",
    "VideoFrameSource",
    "open_frame_source",
    "supports_playback",
]

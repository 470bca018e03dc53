"""
Frame Sources

Yield the current decoded bitmap for the selected media.

Two variants, picked once at selection time by open_frame_source():
- StaticFrameSource: images and animated images, decoded once with Pillow
- VideoFrameSource: a streaming OpenCV decoder with play/pause

They share no base class; callers probe capabilities with supports_playback().
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Optional, Union

import cv2
import httpx
import numpy as np
from PIL import Image
from loguru import logger

from ..config import get_settings
from ..models import MediaKind, MediaSource
from .locators import materialize, read_bytes


class MediaError(Exception):
    """Base class for media decode/encode failures."""
    pass


class DecodeError(MediaError):
    """Media bytes are unreadable or unsupported."""
    pass


# Anything shaped like cv2.VideoCapture: isOpened, read, get, set, release
DecoderFactory = Callable[[str], Any]


def frame_to_image(frame: np.ndarray) -> Image.Image:
    """Convert an OpenCV BGR/BGRA/gray frame to an RGBA Pillow image."""
    if frame.ndim == 2:
        rgb = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
    elif frame.shape[2] == 4:
        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA), "RGBA")
    else:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb, "RGB").convert("RGBA")


class StaticFrameSource:
    """
    A still or animated image, decoded once.

    current_frame() returns the same bitmap on every call.
    Animated images contribute their first frame.
    """

    kind_tag = "static"
    playable = False

    def __init__(self, media: MediaSource):
        self.media = media
        self._frame: Optional[Image.Image] = None
        self.frame_count = 0

    def load(self):
        """Decode the locator. Raises DecodeError on failure."""
        if self._frame is not None:
            return

        try:
            data = read_bytes(self.media.locator)
        except (OSError, ValueError, httpx.HTTPError) as e:
            raise DecodeError(f"Cannot read image {self.media.label}: {e}") from e

        try:
            with Image.open(BytesIO(data)) as img:
                self.frame_count = getattr(img, "n_frames", 1)
                img.seek(0)
                frame = img.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Cannot decode image {self.media.label}: {e}") from e

        self._frame = frame
        logger.info(
            f"Decoded {self.media.kind.value} {self.media.label} "
            f"({frame.width}x{frame.height}, {self.frame_count} frame(s))"
        )

    def is_ready(self) -> bool:
        return self._frame is not None

    def refresh(self) -> bool:
        return self.is_ready()

    def current_frame(self) -> Optional[Image.Image]:
        return self._frame

    def natural_size(self) -> Optional[tuple[int, int]]:
        return self._frame.size if self._frame is not None else None

    def close(self):
        self._frame = None


class VideoFrameSource:
    """
    A video stream wrapped around an OpenCV-compatible decoder.

    The source keeps the most recently decoded frame. While playing, each
    advance() decodes one more frame; at the end of the stream it rewinds when
    looping is on, otherwise playback stops.
    """

    kind_tag = "video"
    playable = True

    def __init__(
        self,
        media: MediaSource,
        decoder_factory: Optional[DecoderFactory] = None,
        loop: Optional[bool] = None,
    ):
        self.media = media
        self._decoder_factory = decoder_factory or cv2.VideoCapture
        self.loop = get_settings().video_loop if loop is None else loop
        self._capture = None
        self._frame: Optional[Image.Image] = None
        self._temp_path: Optional[Path] = None
        self.is_playing = False
        self.frames_decoded = 0

    def load(self):
        """Open the stream and try to decode the first frame. Raises DecodeError."""
        if self._capture is not None:
            return

        try:
            target, self._temp_path = materialize(self.media.locator, self.media.mime_type)
        except (OSError, ValueError) as e:
            raise DecodeError(f"Cannot read video {self.media.label}: {e}") from e

        capture = self._decoder_factory(target)
        if not capture.isOpened():
            capture.release()
            self._remove_temp()
            raise DecodeError(f"Cannot open video: {self.media.label}")

        self._capture = capture
        if self._read_next():
            logger.info(f"Opened video {self.media.label} ({self.describe()})")
        else:
            logger.debug(f"Video {self.media.label} opened, first frame not decoded yet")

    def refresh(self) -> bool:
        """Retry decoding the first frame if metadata was not ready at load time."""
        if self._capture is not None and self._frame is None:
            self._read_next()
        return self.is_ready()

    def decoder_size(self) -> Optional[tuple[int, int]]:
        """Dimensions reported by the decoder, None until metadata is available."""
        if self._capture is None:
            return None
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        if width > 0 and height > 0:
            return (width, height)
        return None

    def natural_size(self) -> Optional[tuple[int, int]]:
        size = self.decoder_size()
        if size is None and self._frame is not None:
            size = self._frame.size
        return size

    @property
    def fps(self) -> Optional[float]:
        if self._capture is None:
            return None
        fps = self._capture.get(cv2.CAP_PROP_FPS)
        return float(fps) if fps and fps > 0 else None

    def is_ready(self) -> bool:
        return self._frame is not None and self.natural_size() is not None

    def current_frame(self) -> Optional[Image.Image]:
        return self._frame

    def play(self):
        if self.is_playing:
            return
        self.is_playing = True
        logger.debug(f"Video playing: {self.media.label}")

    def pause(self):
        if not self.is_playing:
            return
        self.is_playing = False
        logger.debug(f"Video paused: {self.media.label} (frame {self.frames_decoded})")

    def advance(self) -> bool:
        """Decode the next frame while playing. Returns True if a new frame is available."""
        if not self.is_playing or self._capture is None:
            return False
        if self._read_next():
            return True
        logger.info(f"End of video reached: {self.media.label}")
        self.is_playing = False
        return False

    def _read_next(self) -> bool:
        ok, frame = self._capture.read()
        if (not ok or frame is None) and self.loop and self.frames_decoded > 0:
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, frame = self._capture.read()
        if not ok or frame is None:
            return False
        self._frame = frame_to_image(frame)
        self.frames_decoded += 1
        return True

    def describe(self) -> str:
        size = self.natural_size()
        dims = f"{size[0]}x{size[1]}" if size else "unknown size"
        fps = f"{self.fps:.2f} fps" if self.fps else "unknown fps"
        return f"{dims}, {fps}"

    def close(self):
        """Stop playback and release the decoder."""
        self.is_playing = False
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        self._remove_temp()

    def _remove_temp(self):
        if self._temp_path is not None:
            self._temp_path.unlink(missing_ok=True)
            self._temp_path = None


FrameSource = Union[StaticFrameSource, VideoFrameSource]


def open_frame_source(
    media: MediaSource,
    decoder_factory: Optional[DecoderFactory] = None,
) -> FrameSource:
    """Pick the frame source variant for a media kind. Does not decode anything yet."""
    if media.kind == MediaKind.VIDEO:
        return VideoFrameSource(media, decoder_factory=decoder_factory)
    return StaticFrameSource(media)


def supports_playback(source: Optional[FrameSource]) -> bool:
    return bool(source is not None and getattr(source, "playable", False))

"""
Preview Controller

Keeps a small (at most 600x600) preview surface in sync with the selected
media and the two captions.

State machine:
    empty -> loading            load(media)
    loading -> ready            poll_ready() once the frame source is ready
    ready/paused -> playing     play()      (video only)
    playing -> paused           pause()     (or end of a non-looping video)
    any -> empty                reset() / close() / next load()

While playing, exactly one refresh callback is outstanding. It decodes the
next frame, re-renders, and reschedules itself. Every transition that must
stop rendering cancels that handle first.
"""

from enum import Enum
from typing import Optional

from PIL import Image
from loguru import logger

from ..config import get_settings
from ..core.scaling import fit_within
from ..core.surface import RasterSurface
from ..media.sources import (
    DecodeError,
    DecoderFactory,
    FrameSource,
    open_frame_source,
    supports_playback,
)
from ..models import MediaSource, TextOverlay
from ..visual.overlays import compose
from .scheduler import AsyncioRefreshScheduler, FrameHandle


class PreviewState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"


class PreviewController:
    """
    Interactive preview of the meme being edited.

    Usage:
        controller = PreviewController()
        controller.load(media, top, bottom)
        controller.update_overlays(top.with_changes(content="NEW"), bottom)
        controller.play()      # video only
        controller.pause()
        image = controller.snapshot()
    """

    def __init__(
        self,
        scheduler=None,
        max_size: Optional[tuple[int, int]] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        font_path: Optional[str] = None,
    ):
        settings = get_settings()
        self.scheduler = scheduler or AsyncioRefreshScheduler()
        self.max_size = max_size or (settings.preview_max_size, settings.preview_max_size)
        self.font_path = font_path
        self._decoder_factory = decoder_factory

        self.state = PreviewState.EMPTY
        self.media: Optional[MediaSource] = None
        self.source: Optional[FrameSource] = None
        self.surface: Optional[RasterSurface] = None
        self.last_error: Optional[DecodeError] = None
        self.frames_rendered = 0

        self._top: Optional[TextOverlay] = None
        self._bottom: Optional[TextOverlay] = None
        self._tick_handle: Optional[FrameHandle] = None

    @property
    def active_loops(self) -> int:
        return 0 if self._tick_handle is None else 1

    @property
    def overlays(self) -> tuple[Optional[TextOverlay], Optional[TextOverlay]]:
        return (self._top, self._bottom)

    def load(self, media: MediaSource, top: TextOverlay, bottom: TextOverlay) -> bool:
        """
        Switch to new media.

        Any running loop for the previous media is cancelled before the new
        source is opened. Returns True if the preview is ready immediately.
        Decode failures are logged, kept in last_error, and leave the
        controller in the loading state.
        """
        self._teardown()
        self.media = media
        self._top, self._bottom = top, bottom
        self.last_error = None
        self.state = PreviewState.LOADING

        self.source = open_frame_source(media, decoder_factory=self._decoder_factory)
        try:
            self.source.load()
        except DecodeError as e:
            logger.error(f"Preview load failed for {media.label}: {e}")
            self.last_error = e
            return False

        return self.poll_ready()

    def poll_ready(self) -> bool:
        """Finish loading once the frame source is ready. Safe to call repeatedly."""
        if self.state != PreviewState.LOADING:
            return self.state != PreviewState.EMPTY
        if self.source is None or self.last_error is not None:
            return False
        if not self.source.refresh():
            return False

        natural_width, natural_height = self.source.natural_size()
        width, height = fit_within(natural_width, natural_height, *self.max_size)
        self.surface = RasterSurface(width, height, role="preview")
        self.state = PreviewState.READY
        logger.info(
            f"Preview ready: {self.media.label} "
            f"{natural_width}x{natural_height} -> {width}x{height}"
        )
        self._render()
        return True

    def update_overlays(self, top: TextOverlay, bottom: TextOverlay):
        """
        Replace the captions.

        When idle (ready or paused) this re-renders once, synchronously.
        While playing the next refresh picks them up.
        """
        self._top, self._bottom = top, bottom
        if self.state in (PreviewState.READY, PreviewState.PAUSED):
            self._render()

    def play(self) -> bool:
        """Start the live preview loop. Video only, idempotent."""
        if not supports_playback(self.source):
            logger.debug("Play ignored: media has no playback")
            return False
        if self.state == PreviewState.PLAYING:
            return True
        if self.state not in (PreviewState.READY, PreviewState.PAUSED):
            logger.debug(f"Play ignored in state {self.state.value}")
            return False

        # Schedule first: if the scheduler raises, nothing has changed yet
        self._schedule_tick()
        self.source.play()
        self.state = PreviewState.PLAYING
        return True

    def pause(self) -> bool:
        """Stop the live preview loop. Idempotent."""
        if self.state != PreviewState.PLAYING:
            return False
        self._cancel_tick()
        self.source.pause()
        self.state = PreviewState.PAUSED
        return True

    def toggle_playback(self) -> PreviewState:
        if self.state == PreviewState.PLAYING:
            self.pause()
        else:
            self.play()
        return self.state

    def reset(self):
        """Drop the media and return to empty."""
        self._teardown()
        self.media = None
        self.last_error = None

    def close(self):
        """Tear down; no callbacks survive this."""
        self.reset()

    def snapshot(self) -> Optional[Image.Image]:
        """Copy of the preview pixels, or None before the first render."""
        if self.surface is None or self.frames_rendered == 0:
            return None
        return self.surface.snapshot()

    def _teardown(self):
        self._cancel_tick()
        if self.source is not None:
            self.source.close()
            self.source = None
        self.surface = None
        self.state = PreviewState.EMPTY

    def _schedule_tick(self):
        self._cancel_tick()
        self._tick_handle = self.scheduler.schedule(self._tick)

    def _cancel_tick(self):
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _tick(self):
        self._tick_handle = None
        if self.state != PreviewState.PLAYING:
            return

        self.source.advance()
        if not self.source.is_playing:
            # Non-looping video ran out of frames
            self.state = PreviewState.PAUSED
            return

        self._render()
        self._schedule_tick()

    def _render(self):
        if self.surface is None or self.source is None:
            return
        frame = self.source.current_frame()
        if compose(self.surface, frame, self._top, self._bottom, self.font_path):
            self.frames_rendered += 1

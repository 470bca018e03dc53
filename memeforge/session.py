"""
Editing session.

Holds the state the editor UI mutates: the selected media and the two
captions. The preview controller and export pipeline receive these values
explicitly on every call; nothing in the rendering core reads this object.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from .models import DEFAULT_BOTTOM_TEXT, DEFAULT_TOP_TEXT, MediaSource, TextOverlay


@dataclass
class EditorSession:
    top: TextOverlay = field(default_factory=TextOverlay.top_default)
    bottom: TextOverlay = field(default_factory=TextOverlay.bottom_default)
    media: Optional[MediaSource] = None

    @property
    def overlays(self) -> tuple[TextOverlay, TextOverlay]:
        return (self.top, self.bottom)

    def select_media(self, media: MediaSource) -> MediaSource:
        """Replace the selected media wholesale."""
        self.media = media
        logger.info(f"Selected {media.kind.value}: {media.label}")
        return media

    def edit_top(self, **changes) -> TextOverlay:
        self.top = self.top.with_changes(**changes)
        return self.top

    def edit_bottom(self, **changes) -> TextOverlay:
        self.bottom = self.bottom.with_changes(**changes)
        return self.bottom

    def reset_captions(self):
        """Restore the default caption text, keeping styling."""
        self.top = self.top.with_changes(content=DEFAULT_TOP_TEXT)
        self.bottom = self.bottom.with_changes(content=DEFAULT_BOTTOM_TEXT)

    def apply_generated(self, media: MediaSource, top_content: str, bottom_content: str):
        """Adopt an AI-generated background together with its suggested captions."""
        self.select_media(media)
        self.top = self.top.with_changes(content=top_content)
        self.bottom = self.bottom.with_changes(content=bottom_content)

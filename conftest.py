"""
Shared fixtures: synthetic media and a fake OpenCV capture.
"""

from io import BytesIO

import cv2
import numpy as np
import pytest
from PIL import Image

from memeforge import config as config_module
from memeforge.core import clear_font_cache


def make_image_bytes(size=(1024, 768), color=(30, 90, 160), fmt="PNG", noise=False) -> bytes:
    """Encode a solid (or noisy) test image."""
    width, height = size
    if noise:
        rng = np.random.default_rng(7)
        pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        img = Image.fromarray(pixels, "RGB")
    else:
        img = Image.new("RGB", size, color)
    buffer = BytesIO()
    img.save(buffer, fmt)
    return buffer.getvalue()


def make_gif_bytes(size=(64, 48), frames=3) -> bytes:
    images = [Image.new("RGB", size, (40 * i, 0, 0)) for i in range(frames)]
    buffer = BytesIO()
    images[0].save(buffer, "GIF", save_all=True, append_images=images[1:], duration=100, loop=0)
    return buffer.getvalue()


class FakeCapture:
    """Stand-in for cv2.VideoCapture that serves synthetic BGR frames."""

    def __init__(self, frames=5, size=(320, 240), report_size=True, opened=True,
                 fps=30.0, pending_reads=0):
        width, height = size
        self.frames = [
            np.full((height, width, 3), (i * 40) % 256, dtype=np.uint8)
            for i in range(frames)
        ]
        self.size = size
        self.report_size = report_size
        self.opened = opened
        self.fps = fps
        self.pending_reads = pending_reads   # reads that fail before the stream is ready
        self.position = 0
        self.reads = 0
        self.released = False

    def isOpened(self):
        return self.opened and not self.released

    def read(self):
        if self.pending_reads > 0:
            self.pending_reads -= 1
            return False, None
        if self.position >= len(self.frames):
            return False, None
        frame = self.frames[self.position].copy()
        self.position += 1
        self.reads += 1
        return True, frame

    def get(self, prop):
        if prop == cv2.CAP_PROP_FRAME_WIDTH:
            return float(self.size[0]) if self.report_size else 0.0
        if prop == cv2.CAP_PROP_FRAME_HEIGHT:
            return float(self.size[1]) if self.report_size else 0.0
        if prop == cv2.CAP_PROP_FPS:
            return self.fps
        return 0.0

    def set(self, prop, value):
        if prop == cv2.CAP_PROP_POS_FRAMES:
            self.position = int(value)
            return True
        return False

    def release(self):
        self.released = True


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Fresh settings per test, pointed at temp directories."""
    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "tmp"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.delenv("HF_API_KEY", raising=False)
    monkeypatch.delenv("VIDEO_LOOP", raising=False)
    monkeypatch.setattr(config_module, "_settings", None)
    clear_font_cache()
    yield
    clear_font_cache()


@pytest.fixture
def image_bytes():
    return make_image_bytes()


@pytest.fixture
def capture_factory():
    """
    Build decoder factories that hand out FakeCapture instances.

    factory = capture_factory(frames=3); factory.created lists the captures opened.
    """
    def build(**kwargs):
        created = []

        def open_capture(target):
            capture = FakeCapture(**kwargs)
            created.append(capture)
            return capture

        open_capture.created = created
        return open_capture

    return build

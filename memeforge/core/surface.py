"""
Raster surfaces - fixed-size RGBA pixel buffers that captions are drawn onto.
"""

from PIL import Image


class RasterSurface:
    """
    An addressable 2D pixel buffer with a fixed width and height.

    The preview controller and the export pipeline each own their own
    surface; a surface is never shared between them.
    """

    def __init__(self, width: int, height: int, role: str = "preview"):
        if width < 1 or height < 1:
            raise ValueError(f"Surface dimensions must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.role = role
        self.image = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def clear(self):
        """Reset every pixel to transparent."""
        self.image.paste((0, 0, 0, 0), (0, 0, self.width, self.height))

    def paste_frame(self, frame: Image.Image):
        """Replace the surface contents with a frame that already matches its size."""
        if frame.size != self.size:
            raise ValueError(f"Frame {frame.size} does not match surface {self.size}")
        self.image.paste(frame.convert("RGBA"), (0, 0))

    def snapshot(self) -> Image.Image:
        """Copy of the current pixels, safe to hand to callers."""
        return self.image.copy()

    def __repr__(self) -> str:
        return f"RasterSurface({self.width}x{self.height}, role={self.role!r})"

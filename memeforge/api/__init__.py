"""HTTP service for the meme editor."""

from .server import app

__all__ = ["app"]

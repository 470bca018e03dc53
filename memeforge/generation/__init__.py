"""
Generation Module

Text-to-image generation for AI memes.
"""

from .client import GenerationError, ImageGenerationClient

__all__ = ["GenerationError", "ImageGenerationClient"]

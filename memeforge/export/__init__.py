"""
Export Module

Renders full-resolution memes and encodes them for download.
"""

from .pipeline import EncodeError, ExportedAsset, ExportPipeline, ExportResult, encode_surface

__all__ = ["EncodeError", "ExportedAsset", "ExportPipeline", "ExportResult", "encode_surface"]

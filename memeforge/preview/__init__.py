"""
Preview Module

Live, low-resolution preview of the meme being edited.
"""

from .controller import PreviewController, PreviewState
from .scheduler import AsyncioRefreshScheduler, ManualRefreshScheduler

__all__ = [
    "PreviewController",
    "PreviewState",
    "AsyncioRefreshScheduler",
    "ManualRefreshScheduler",
]

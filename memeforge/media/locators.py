"""
Media locator resolution.

A locator is whatever the media picker handed us: a local path, an http(s)
URL, a data: URI (what the generation service returns), or raw bytes.
"""

import base64
import mimetypes
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx
from loguru import logger

from ..config import get_settings
from ..models import Locator


def is_remote(locator: Locator) -> bool:
    return isinstance(locator, str) and locator.startswith(("http://", "https://"))


def decode_data_uri(uri: str) -> tuple[bytes, Optional[str]]:
    """Split a data: URI into its payload and MIME type."""
    header, sep, payload = uri[5:].partition(",")
    if not sep:
        raise ValueError("Malformed data URI")
    params = header.split(";")
    mime_type = params[0] or None
    if "base64" in params[1:]:
        return base64.b64decode(payload, validate=False), mime_type
    return unquote_to_bytes(payload), mime_type


def read_bytes(locator: Locator, timeout: float = 30.0) -> bytes:
    """
    Load the bytes behind a locator.

    Raises OSError, ValueError or httpx.HTTPError when the bytes cannot be fetched.
    """
    if isinstance(locator, bytes):
        return locator

    text = str(locator)
    if text.startswith("data:"):
        data, _ = decode_data_uri(text)
        return data

    if is_remote(text):
        logger.debug(f"Downloading media from {text}")
        response = httpx.get(text, follow_redirects=True, timeout=timeout)
        response.raise_for_status()
        return response.content

    return Path(text).read_bytes()


def materialize(locator: Locator, mime_type: Optional[str] = None) -> tuple[str, Optional[Path]]:
    """
    Turn a locator into something a video decoder can open.

    URLs and paths pass through. Bytes and data URIs are written to a temp
    file; its path is returned second so the caller can delete it.
    """
    if isinstance(locator, Path):
        return str(locator), None
    if isinstance(locator, str) and not locator.startswith("data:"):
        return locator, None

    if isinstance(locator, bytes):
        data = locator
    else:
        data, uri_mime = decode_data_uri(locator)
        mime_type = mime_type or uri_mime

    suffix = (mime_type and mimetypes.guess_extension(mime_type)) or ".mp4"
    temp_dir = get_settings().temp_dir
    temp_dir.mkdir(parents=True, exist_ok=True)
    temp_path = temp_dir / f"media-{uuid.uuid4().hex[:12]}{suffix}"
    temp_path.write_bytes(data)
    logger.debug(f"Wrote {len(data)} bytes of media to {temp_path}")
    return str(temp_path), temp_path

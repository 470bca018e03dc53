"""
Text-to-Image Client

Generates meme backgrounds from a text prompt through the Hugging Face
inference API (FLUX.1-schnell by default). The response body is the raw
image, which we hand back as bytes or as a data: URL the media picker can
select directly.
"""

from typing import Optional

import httpx
from loguru import logger

from ..config import get_settings
from ..models import MediaSource, to_data_url


class GenerationError(Exception):
    """Text-to-image API error."""
    pass


class ImageGenerationClient:
    """
    Client for the text-to-image inference endpoint.

    Usage:
        client = ImageGenerationClient()
        png_bytes = client.generate("a cat wearing sunglasses")
        media = client.generate_media("a cat wearing sunglasses")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize with API key from parameter or environment.
        """
        settings = get_settings()
        self.api_key = api_key or settings.hf_api_key
        if not self.api_key:
            raise ValueError(
                "Hugging Face API key required. "
                "Set HF_API_KEY environment variable or pass api_key."
            )

        self.model_url = model_url or settings.hf_model_url
        self.client = httpx.Client(
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout or settings.generation_timeout,
            transport=transport,
        )

    def generate(self, prompt: str) -> bytes:
        """
        Generate an image for a prompt.

        Returns:
            Encoded image bytes (PNG or JPEG, as the model returns them)
        """
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValueError("Prompt is required")

        logger.info(f"Generating image for prompt: '{prompt[:60]}'")
        try:
            response = self.client.post(self.model_url, json={"inputs": prompt})
        except httpx.HTTPError as e:
            raise GenerationError(f"Request to {self.model_url} failed: {e}") from e

        if response.status_code != 200:
            raise GenerationError(
                f"Image generation failed ({response.status_code}): {response.text[:500]}"
            )

        content_type = response.headers.get("content-type", "")
        if content_type.startswith(("application/json", "text/")) or not response.content:
            raise GenerationError(f"Expected an image, got '{content_type or 'empty body'}'")

        logger.info(f"Generated image: {len(response.content)} bytes")
        return response.content

    def generate_data_url(self, prompt: str) -> str:
        """Generate an image and encode it as data:image/png;base64,..."""
        return to_data_url(self.generate(prompt))

    def generate_media(self, prompt: str) -> MediaSource:
        """Generate an image and wrap it as selectable media."""
        return MediaSource.from_image_bytes(self.generate(prompt))

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

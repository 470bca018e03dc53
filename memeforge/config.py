"""
Central configuration for the meme compositor.
Uses environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from pathlib import Path


class Settings(BaseSettings):
    # Text-to-image generation (optional, only the generate flow needs it)
    hf_api_key: Optional[str] = Field(default=None, alias="HF_API_KEY")
    hf_model_url: str = Field(
        default="https://api-inference.huggingface.co/models/black-forest-labs/FLUX.1-schnell",
        alias="HF_MODEL_URL",
    )
    generation_timeout: float = Field(default=120.0, alias="GENERATION_TIMEOUT")

    # Directories
    temp_dir: Path = Field(default=Path("/tmp/memeforge"), alias="TEMP_DIR")
    output_dir: Path = Field(default=Path("./output"), alias="OUTPUT_DIR")

    # Rendering
    font_path: Optional[str] = Field(default=None, alias="FONT_PATH")
    preview_max_size: int = Field(default=600, alias="PREVIEW_MAX_SIZE")
    export_max_dimension: int = Field(default=1920, alias="EXPORT_MAX_DIMENSION")
    refresh_rate: float = Field(default=60.0, alias="REFRESH_RATE")  # preview ticks per second
    video_loop: bool = Field(default=True, alias="VIDEO_LOOP")

    # Service
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }


# Lazy-load settings so importing the package never touches the environment
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings, initializing if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

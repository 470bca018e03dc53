"""
Meme Generator API

Small companion service for the meme editor:
- GET  /health          liveness check
- POST /generate-image  text prompt -> generated background as a data URL

Rendering and export stay client-side; this service never composites.
"""

# Load environment variables from .env file BEFORE anything else
from dotenv import load_dotenv
load_dotenv()

from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from loguru import logger

from ..generation import GenerationError, ImageGenerationClient
from ..models import to_data_url


app = FastAPI(
    title="Meme Forge",
    description="Text-to-image backgrounds for the meme editor",
    version="1.0.0",
)

# CORS for the browser editor
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = None


class GenerateImageResponse(BaseModel):
    image: str


def get_generation_client() -> Optional[ImageGenerationClient]:
    try:
        return ImageGenerationClient()
    except ValueError as e:
        logger.error(f"Image generation unavailable: {e}")
        return None


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/generate-image", response_model=GenerateImageResponse)
def generate_image(
    request: GenerateImageRequest,
    client: Optional[ImageGenerationClient] = Depends(get_generation_client),
):
    try:
        if not request.prompt or not request.prompt.strip():
            return JSONResponse(status_code=400, content={"error": "Prompt is required"})
        if client is None:
            return JSONResponse(status_code=500, content={"error": "Image generation failed"})

        data = client.generate(request.prompt)
    except GenerationError as e:
        logger.error(f"Error generating image: {e}")
        return JSONResponse(status_code=500, content={"error": "Image generation failed"})
    finally:
        if client is not None:
            client.close()

    return GenerateImageResponse(image=to_data_url(data))

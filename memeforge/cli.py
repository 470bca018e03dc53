"""
Command Line Interface

For local development and headless rendering.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from .config import get_settings
from .export import ExportPipeline
from .models import ExportConfig, MediaSource
from .preview import AsyncioRefreshScheduler, PreviewController
from .session import EditorSession


def _session_from_args(args) -> EditorSession:
    session = EditorSession()
    caption_style = {}
    if args.font_size:
        caption_style["font_size"] = args.font_size
    if args.color:
        caption_style["color"] = args.color
    if args.stroke:
        caption_style["stroke_color"] = args.stroke
    if args.stroke_width is not None:
        caption_style["stroke_width"] = args.stroke_width

    session.edit_top(content=args.top, **caption_style)
    session.edit_bottom(content=args.bottom, **caption_style)
    if getattr(args, "media", None):
        session.select_media(MediaSource.select(args.media, mime_type=args.mime))
    return session


async def _play_for(controller: PreviewController, seconds: float):
    controller.play()
    await asyncio.sleep(seconds)
    controller.pause()


def cmd_preview(args):
    """Render the interactive preview once and save it."""
    session = _session_from_args(args)
    controller = PreviewController(scheduler=AsyncioRefreshScheduler())

    try:
        if not controller.load(session.media, *session.overlays):
            logger.error(f"Preview not available: {controller.last_error or 'media still loading'}")
            sys.exit(1)

        if args.play_seconds and session.media.is_video:
            asyncio.run(_play_for(controller, args.play_seconds))
            logger.info(f"Rendered {controller.frames_rendered} preview frames")

        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        controller.snapshot().save(output, "PNG")
        print(f"Preview: {output} ({controller.surface.width}x{controller.surface.height})")
    finally:
        controller.close()


def cmd_export(args):
    """Export the full-resolution meme."""
    session = _session_from_args(args)
    config = ExportConfig(format=args.format, quality=args.quality, resolution_tier=args.tier)

    result = ExportPipeline().export(session.media, session.top, session.bottom, config)
    if not result.ok:
        print(result.error, file=sys.stderr)
        sys.exit(1)

    path = result.asset.save(Path(args.output_dir or get_settings().output_dir))
    print(f"Output: {path}")


def cmd_generate(args):
    """Generate a background from a prompt and export it as a meme."""
    from .generation import GenerationError, ImageGenerationClient

    session = _session_from_args(args)
    try:
        with ImageGenerationClient() as client:
            media = client.generate_media(args.prompt)
    except GenerationError as e:
        logger.error(f"Error generating image: {e}")
        sys.exit(1)

    session.apply_generated(media, args.top, args.bottom)
    config = ExportConfig(format=args.format, quality=args.quality)
    result = ExportPipeline().export(session.media, session.top, session.bottom, config)
    if not result.ok:
        print(result.error, file=sys.stderr)
        sys.exit(1)

    path = result.asset.save(Path(args.output_dir or get_settings().output_dir))
    print(f"Output: {path}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "memeforge.api:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )


def _quality(value: str) -> float:
    """argparse type for --quality: a number between 0.1 and 1.0."""
    try:
        quality = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {value!r}")
    if not 0.1 <= quality <= 1.0:
        raise argparse.ArgumentTypeError(f"quality must be between 0.1 and 1.0, got {value}")
    return quality


def _add_caption_args(p):
    p.add_argument("--top", default="TOP TEXT", help="Top caption")
    p.add_argument("--bottom", default="BOTTOM TEXT", help="Bottom caption")
    p.add_argument("--font-size", type=float, help="Font size in reference units (500 unit frame)")
    p.add_argument("--color", help="Caption fill color, e.g. '#FFFFFF'")
    p.add_argument("--stroke", help="Caption outline color")
    p.add_argument("--stroke-width", type=float)


def _add_media_args(p):
    p.add_argument("media", help="Image/GIF/video path, URL, or data: URI")
    p.add_argument("--mime", help="MIME type, when the locator has no extension")


def main():
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )

    parser = argparse.ArgumentParser(
        description="Meme caption compositor CLI"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # preview command
    p = subparsers.add_parser("preview", help="Render the preview surface to a PNG")
    _add_media_args(p)
    _add_caption_args(p)
    p.add_argument("--output", default="preview.png")
    p.add_argument("--play-seconds", type=float, default=0, help="Play a video preview before saving")
    p.set_defaults(func=cmd_preview)

    # export command
    p = subparsers.add_parser("export", help="Export the full-resolution meme")
    _add_media_args(p)
    _add_caption_args(p)
    p.add_argument("--format", default="png", choices=["png", "jpeg"])
    p.add_argument("--quality", type=_quality, default=0.9, help="JPEG quality, 0.1-1.0")
    p.add_argument("--tier", default="high", choices=["low", "medium", "high"], help="Video frame size")
    p.add_argument("--output-dir")
    p.set_defaults(func=cmd_export)

    # generate command
    p = subparsers.add_parser("generate", help="Generate a background and export a meme")
    p.add_argument("prompt", help="Text prompt for the background image")
    _add_caption_args(p)
    p.add_argument("--format", default="png", choices=["png", "jpeg"])
    p.add_argument("--quality", type=_quality, default=0.9, help="JPEG quality, 0.1-1.0")
    p.add_argument("--output-dir")
    p.set_defaults(func=cmd_generate)

    # serve command
    p = subparsers.add_parser("serve", help="Start API server")
    p.add_argument("--host")
    p.add_argument("--port", type=int)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if args.command:
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()

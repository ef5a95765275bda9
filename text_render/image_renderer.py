"""
Image Renderers
===============
Draw text onto PNG and JPEG templates using Pillow.

``ImageRenderer`` loads the template, lets the subclass prepare the image
(e.g. flatten transparency for JPEG), draws the text and saves the result
in the subclass's format.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from .exceptions import RenderError
from .fonts import FontService
from .models import RenderJob
from .renderer import aligned_x

logger = logging.getLogger(__name__)


class ImageRenderer:
    """Base class for raster renderers."""

    format_name = "IMAGE"
    image_format = ""
    save_options: dict = {}

    def __init__(self, font_service: FontService):
        self.font_service = font_service

    def render(self, job: RenderJob) -> None:
        config = job.text_config
        logger.debug(
            f"Rendering {self.format_name} for text: '{job.text}' "
            f"at ({config.x}, {config.y})"
        )

        image = self.preprocess(self._load(job.template_path))
        self._draw_text(image, job)

        job.output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(job.output_path, format=self.image_format, **self.save_options)
        logger.debug(f"Successfully rendered {self.format_name} to: {job.output_path}")

    def preprocess(self, image: Image.Image) -> Image.Image:
        """Bring the template into a mode text can be drawn on in colour."""
        if image.mode in ("RGB", "RGBA"):
            return image
        return image.convert("RGBA")

    def _load(self, template_path: Path) -> Image.Image:
        try:
            with Image.open(template_path) as source:
                return source.copy()
        except OSError as e:
            raise RenderError(
                f"Failed to read image from {template_path}: {e}",
                template_path=template_path,
            ) from e

    def _draw_text(self, image: Image.Image, job: RenderJob):
        config = job.text_config
        font = self.font_service.image_font(config.font_name, config.font_style, config.font_size)
        draw = ImageDraw.Draw(image)

        text_width = draw.textlength(job.text, font=font)
        x = aligned_x(config.x, text_width, config.alignment)
        fill = config.color + (255,) if image.mode == "RGBA" else config.color

        if isinstance(font, ImageFont.FreeTypeFont):
            # "ls": x is the left edge, y the baseline
            draw.text((x, config.y), job.text, font=font, fill=fill, anchor="ls")
        else:
            ascent = font.getbbox(job.text)[3]
            draw.text((x, config.y - ascent), job.text, font=font, fill=fill)

        logger.debug(
            f"Text rendered with font: {config.font_name}, size: {config.font_size}, "
            f"style: {config.font_style.value}, color: {config.hex_color}, "
            f"alignment: {config.alignment.value}"
        )


class PngRenderer(ImageRenderer):
    format_name = "PNG"
    image_format = "PNG"


class JpegRenderer(ImageRenderer):
    """Handles both ``.jpg`` and ``.jpeg`` templates."""

    format_name = "JPEG"
    image_format = "JPEG"
    save_options = {"quality": 95}

    def preprocess(self, image: Image.Image) -> Image.Image:
        # JPEG has no alpha channel: flatten onto white.
        if image.mode == "RGB":
            return image
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

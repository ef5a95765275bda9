"""
PDF Renderer
============
Stamps text onto the first page of a PDF template using PyMuPDF (fitz).

Coordinate system:
    Top-left origin, the same as for PNG/JPEG templates. ``y`` is the text
    baseline, in points from the top edge of the page.

Fonts:
    Built-in base-14 fonts and embedded system fonts, resolved through
    :class:`FontService`. Unknown fonts fall back to Times Roman.
"""

from __future__ import annotations

import logging
import threading

import fitz  # PyMuPDF

from .exceptions import RenderError
from .fonts import FontService
from .models import RenderJob
from .renderer import aligned_x

logger = logging.getLogger(__name__)

# MuPDF contexts are not safe to use from several threads at once.
_MUPDF_LOCK = threading.Lock()


class PdfRenderer:
    """Renders a job onto a PDF template."""

    format_name = "PDF"

    def __init__(self, font_service: FontService):
        self.font_service = font_service

    def render(self, job: RenderJob) -> None:
        config = job.text_config
        logger.debug(f"Rendering PDF for text: '{job.text}' at ({config.x}, {config.y})")

        job.output_path.parent.mkdir(parents=True, exist_ok=True)
        font = self.font_service.pdf_font(config.font_name, config.font_style)

        with _MUPDF_LOCK:
            try:
                doc = fitz.open(str(job.template_path))
            except (RuntimeError, OSError, ValueError) as e:
                raise RenderError(
                    f"Failed to read PDF template {job.template_path}: {e}",
                    template_path=job.template_path,
                ) from e

            with doc:
                if doc.page_count == 0:
                    raise RenderError(
                        f"PDF template has no pages: {job.template_path}",
                        template_path=job.template_path,
                    )

                page = doc[0]
                text_width = font.text_length(job.text, config.font_size)
                x = aligned_x(config.x, text_width, config.alignment)
                logger.debug(
                    f"Page height: {page.rect.height}, text width: {text_width:.2f}, "
                    f"aligned x: {x:.2f} ({config.alignment.value})"
                )

                page.insert_text(
                    fitz.Point(x, config.y),
                    job.text,
                    fontsize=config.font_size,
                    fontname=font.fontname,
                    fontfile=font.fontfile,
                    color=tuple(channel / 255 for channel in config.color),
                    overlay=True,
                )
                doc.save(str(job.output_path), garbage=3, deflate=True)

        logger.debug(
            f"Rendered PDF with font: {font.fontname}, size: {config.font_size}, "
            f"style: {config.font_style.value}, color: {config.hex_color} -> {job.output_path}"
        )

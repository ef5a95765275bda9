"""
Service Container
=================
The one place where services are constructed and wired together.
Every service is a singleton within its container.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .csv_reader import CsvReader
from .engine import RenderEngine, RenderSettings
from .executor import BatchExecutor
from .fonts import FontService
from .image_renderer import JpegRenderer, PngRenderer
from .pdf_renderer import PdfRenderer


@dataclass
class ServiceContainer:
    settings: RenderSettings
    font_service: FontService
    csv_reader: CsvReader
    pdf_renderer: PdfRenderer
    png_renderer: PngRenderer
    jpeg_renderer: JpegRenderer
    executor: BatchExecutor
    engine: RenderEngine


def build_container(settings: Optional[RenderSettings] = None) -> ServiceContainer:
    settings = settings or RenderSettings()

    font_service = FontService(settings.font_dirs)
    csv_reader = CsvReader()
    pdf_renderer = PdfRenderer(font_service)
    png_renderer = PngRenderer(font_service)
    jpeg_renderer = JpegRenderer(font_service)
    executor = BatchExecutor(timeout_seconds=settings.timeout_seconds)

    engine = RenderEngine(
        settings=settings,
        csv_reader=csv_reader,
        executor=executor,
        renderers={
            "pdf": pdf_renderer,
            "png": png_renderer,
            "jpg": jpeg_renderer,
            "jpeg": jpeg_renderer,
        },
    )

    return ServiceContainer(
        settings=settings,
        font_service=font_service,
        csv_reader=csv_reader,
        pdf_renderer=pdf_renderer,
        png_renderer=png_renderer,
        jpeg_renderer=jpeg_renderer,
        executor=executor,
        engine=engine,
    )

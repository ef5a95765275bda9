"""Renderer contract shared by the PDF and image renderers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Alignment, RenderJob


@runtime_checkable
class Renderer(Protocol):
    """Writes one output file for one job. Raises on failure."""

    format_name: str

    def render(self, job: RenderJob) -> None:
        ...


def aligned_x(x: float, text_width: float, alignment: Alignment) -> float:
    """Left edge of the text so that it is aligned on ``x``."""
    if alignment is Alignment.CENTER:
        return x - text_width / 2
    if alignment is Alignment.RIGHT:
        return x - text_width
    return x

"""Exceptions raised while preparing or rendering a batch."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class RenderError(Exception):
    """
    Raised when a template cannot be loaded or an output cannot be written.

    Attributes:
        message: Error description
        template_path: Template involved, if any
    """

    def __init__(self, message: str, template_path: Optional[Path] = None):
        self.message = message
        self.template_path = template_path
        super().__init__(message)


class UnsupportedTemplateError(RenderError):
    """Raised for template extensions no renderer handles."""

    def __init__(self, template_path: Path):
        super().__init__(
            f"Unsupported template format. Use PDF, PNG, JPG, or JPEG: {template_path}",
            template_path=template_path,
        )

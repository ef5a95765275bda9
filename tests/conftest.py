"""Shared fixtures: templates and CSV files generated on the fly."""

from __future__ import annotations

import logging
from pathlib import Path

import fitz
import pytest
from PIL import Image

from text_render.fonts import FontService


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers added by setup_logging so they do not outlive a test."""
    yield
    package_logger = logging.getLogger("text_render")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def no_system_fonts(monkeypatch):
    """Only scan explicitly configured font directories."""
    monkeypatch.setattr(
        FontService,
        "font_directories",
        lambda self: [d for d in self.extra_font_dirs if d.is_dir()],
    )


@pytest.fixture
def font_service(no_system_fonts) -> FontService:
    return FontService()


@pytest.fixture
def pdf_template(tmp_path) -> Path:
    path = tmp_path / "certificate.pdf"
    doc = fitz.open()
    doc.new_page(width=595, height=842)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def png_template(tmp_path) -> Path:
    path = tmp_path / "card.png"
    Image.new("RGB", (400, 200), "white").save(path)
    return path


@pytest.fixture
def jpeg_template(tmp_path) -> Path:
    path = tmp_path / "badge.jpg"
    Image.new("RGB", (400, 200), "white").save(path, format="JPEG")
    return path


@pytest.fixture
def write_csv(tmp_path):
    def _write(content: str, name: str = "names.csv") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write

"""
Data Models
===========
Pydantic models and enums shared by the CSV reader, the renderers,
the batch executor and the CLI.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class Alignment(str, Enum):
    """Horizontal alignment of the text relative to the x coordinate."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Alignment":
        if value is None or not value.strip():
            return cls.LEFT
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Invalid alignment: '{value}'. Valid values: left, center, right"
            ) from None


class MeasurementUnit(str, Enum):
    """Unit used for the x/y coordinates given on the command line."""
    PX = "px"
    MM = "mm"

    @property
    def pixel_multiplier(self) -> float:
        # 72 points per inch / 25.4 mm per inch
        return 2.835 if self is MeasurementUnit.MM else 1.0

    def to_pixels(self, value: float) -> float:
        return value * self.pixel_multiplier

    @classmethod
    def parse(cls, value: Optional[str]) -> "MeasurementUnit":
        if value is None or not value.strip():
            return cls.PX
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Invalid measurement unit: '{value}'. Valid values: px, mm"
            ) from None


class FontStyle(str, Enum):
    NORMAL = "normal"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"

    @classmethod
    def from_flags(cls, bold: bool, italic: bool) -> "FontStyle":
        if bold and italic:
            return cls.BOLD_ITALIC
        if bold:
            return cls.BOLD
        if italic:
            return cls.ITALIC
        return cls.NORMAL

    @property
    def is_bold(self) -> bool:
        return self in (FontStyle.BOLD, FontStyle.BOLD_ITALIC)

    @property
    def is_italic(self) -> bool:
        return self in (FontStyle.ITALIC, FontStyle.BOLD_ITALIC)


class FontCategory(str, Enum):
    """Where a font comes from. Declaration order is the listing order."""
    BUILT_IN = "built_in"
    SYSTEM = "system"

    @property
    def rank(self) -> int:
        return list(FontCategory).index(self)


# ─── Font Listing ─────────────────────────────────────────────────────────────


class FontInfo(BaseModel):
    """A font as shown by the font listing."""
    name: str
    category: FontCategory

    def sort_key(self) -> tuple[int, str]:
        return (self.category.rank, self.name.lower())

    def __lt__(self, other: "FontInfo") -> bool:
        return self.sort_key() < other.sort_key()


# ─── CSV Entries ──────────────────────────────────────────────────────────────


class CsvEntry(BaseModel):
    """
    One row of the input CSV: a name with an optional title prefix
    (e.g. "Dr.") and postfix (e.g. "PhD").
    """
    name: str
    prefix: Optional[str] = None
    postfix: Optional[str] = None

    @computed_field
    @property
    def display_text(self) -> str:
        """
        Text drawn on the template: ``<prefix> <name> <postfix>``.
        Blank prefix/postfix are left out and every part is trimmed.
        """
        parts = []
        if self.prefix and self.prefix.strip():
            parts.append(self.prefix.strip())
        parts.append(self.name.strip())
        if self.postfix and self.postfix.strip():
            parts.append(self.postfix.strip())
        return " ".join(parts)


# ─── Text Configuration ───────────────────────────────────────────────────────

_HEX_DIGITS = re.compile(r"^[0-9A-Fa-f]{6}$")

DEFAULT_FONT = "Times New Roman"
DEFAULT_FONT_SIZE = 12.0
DEFAULT_COLOR = (0, 0, 0)


class TextConfig(BaseModel):
    """
    Where and how the text is drawn.

    Coordinates are in pixels/points with a top-left origin; ``y`` is the
    baseline of the text.
    """
    x: float
    y: float
    alignment: Alignment = Alignment.LEFT
    font_name: str = DEFAULT_FONT
    font_size: float = Field(default=DEFAULT_FONT_SIZE, gt=0)
    color: tuple[int, int, int] = DEFAULT_COLOR
    font_style: FontStyle = FontStyle.NORMAL

    @property
    def hex_color(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(*self.color)

    @staticmethod
    def parse_hex_color(hex_color: Optional[str]) -> tuple[int, int, int]:
        """
        Parse ``#RRGGBB`` or ``#RGB`` (the ``#`` is optional).

        Raises:
            ValueError: If the value is not a valid hex colour.
        """
        if not hex_color:
            return DEFAULT_COLOR

        digits = hex_color[1:] if hex_color.startswith("#") else hex_color
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)

        if not _HEX_DIGITS.match(digits):
            raise ValueError(
                f"Invalid hex color format: '{hex_color}'. "
                f"Expected format: #RRGGBB or #RGB"
            )

        return (
            int(digits[0:2], 16),
            int(digits[2:4], 16),
            int(digits[4:6], 16),
        )


# ─── Jobs & Results ───────────────────────────────────────────────────────────


class RenderJob(BaseModel):
    """A single output file to produce."""
    text: str
    text_config: TextConfig
    template_path: Path
    output_path: Path


class FailedJob(BaseModel):
    text: str
    output_path: str
    error: str


class BatchResult(BaseModel):
    """Outcome of a batch run."""
    total: int = 0
    succeeded: int = 0
    failed: list[FailedJob] = Field(default_factory=list)
    mode: str = "sequential"
    elapsed_seconds: float = 0.0

    @computed_field
    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.succeeded / self.total * 100, 2)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

"""
Test Suite for Data Models
==========================
Enums, CSV entries, text configuration and batch results.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from text_render.models import (
    Alignment,
    BatchResult,
    CsvEntry,
    FailedJob,
    FontCategory,
    FontInfo,
    FontStyle,
    MeasurementUnit,
    RenderJob,
    TextConfig,
)


# ═══════════════════════════════════════════════════════════════════════════════
# ENUM TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestAlignment:

    @pytest.mark.parametrize("value,expected", [
        ("left", Alignment.LEFT),
        ("CENTER", Alignment.CENTER),
        (" Right ", Alignment.RIGHT),
        ("", Alignment.LEFT),
        (None, Alignment.LEFT),
    ])
    def test_parse(self, value, expected):
        assert Alignment.parse(value) is expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Invalid alignment: 'middle'"):
            Alignment.parse("middle")


class TestMeasurementUnit:

    def test_pixels_are_unscaled(self):
        assert MeasurementUnit.PX.to_pixels(100) == 100

    def test_millimeters_to_pixels(self):
        assert MeasurementUnit.MM.pixel_multiplier == 2.835
        assert MeasurementUnit.MM.to_pixels(10) == pytest.approx(28.35)

    def test_parse(self):
        assert MeasurementUnit.parse("MM") is MeasurementUnit.MM
        assert MeasurementUnit.parse("  ") is MeasurementUnit.PX

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match="Valid values: px, mm"):
            MeasurementUnit.parse("inch")


class TestFontStyle:

    @pytest.mark.parametrize("bold,italic,expected", [
        (False, False, FontStyle.NORMAL),
        (True, False, FontStyle.BOLD),
        (False, True, FontStyle.ITALIC),
        (True, True, FontStyle.BOLD_ITALIC),
    ])
    def test_from_flags(self, bold, italic, expected):
        assert FontStyle.from_flags(bold, italic) is expected

    def test_flags(self):
        assert FontStyle.BOLD_ITALIC.is_bold
        assert FontStyle.BOLD_ITALIC.is_italic
        assert not FontStyle.ITALIC.is_bold
        assert not FontStyle.NORMAL.is_italic


class TestFontInfo:

    def test_built_in_sorted_before_system(self):
        fonts = sorted([
            FontInfo(name="zeta", category=FontCategory.SYSTEM),
            FontInfo(name="Times New Roman", category=FontCategory.BUILT_IN),
            FontInfo(name="Arial", category=FontCategory.SYSTEM),
            FontInfo(name="Courier", category=FontCategory.BUILT_IN),
        ])
        assert [f.name for f in fonts] == ["Courier", "Times New Roman", "Arial", "zeta"]

    def test_names_sorted_case_insensitively(self):
        fonts = sorted([
            FontInfo(name="bravo", category=FontCategory.SYSTEM),
            FontInfo(name="Alpha", category=FontCategory.SYSTEM),
            FontInfo(name="charlie", category=FontCategory.SYSTEM),
        ])
        assert [f.name for f in fonts] == ["Alpha", "bravo", "charlie"]


# ═══════════════════════════════════════════════════════════════════════════════
# CSV ENTRY TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCsvEntry:

    def test_name_only(self):
        assert CsvEntry(name="John Doe").display_text == "John Doe"

    def test_prefix_and_postfix(self):
        entry = CsvEntry(name="Jane Doe", prefix="Dr.", postfix="PhD")
        assert entry.display_text == "Dr. Jane Doe PhD"

    def test_blank_parts_are_dropped(self):
        entry = CsvEntry(name=" Jane ", prefix="   ", postfix="")
        assert entry.display_text == "Jane"

    def test_display_text_is_serialized(self):
        data = CsvEntry(name="Adam", prefix="Mr.").model_dump()
        assert data["display_text"] == "Mr. Adam"


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT CONFIG TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestTextConfig:

    def test_defaults(self):
        config = TextConfig(x=10, y=20)
        assert config.alignment is Alignment.LEFT
        assert config.font_name == "Times New Roman"
        assert config.font_size == 12.0
        assert config.color == (0, 0, 0)
        assert config.font_style is FontStyle.NORMAL

    @pytest.mark.parametrize("value,expected", [
        ("#FF0000", (255, 0, 0)),
        ("00ff00", (0, 255, 0)),
        ("#F00", (255, 0, 0)),
        ("#abc", (170, 187, 204)),
        ("", (0, 0, 0)),
        (None, (0, 0, 0)),
    ])
    def test_parse_hex_color(self, value, expected):
        assert TextConfig.parse_hex_color(value) == expected

    @pytest.mark.parametrize("value", ["#GG0000", "#12345", "red", "#1234567"])
    def test_parse_hex_color_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid hex color format"):
            TextConfig.parse_hex_color(value)

    def test_hex_color(self):
        assert TextConfig(x=0, y=0, color=(255, 0, 16)).hex_color == "#FF0010"

    def test_font_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            TextConfig(x=0, y=0, font_size=0)


# ═══════════════════════════════════════════════════════════════════════════════
# BATCH RESULT TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestBatchResult:

    def test_empty_batch(self):
        result = BatchResult()
        assert result.total == 0
        assert result.success_rate == 100.0
        assert not result.has_failures

    def test_success_rate(self):
        result = BatchResult(
            total=4,
            succeeded=3,
            failed=[FailedJob(text="Bob", output_path="out/bob.pdf", error="boom")],
        )
        assert result.success_rate == 75.0
        assert result.has_failures

    def test_serialization(self):
        data = BatchResult(total=2, succeeded=2, mode="parallel").model_dump()
        assert data["success_rate"] == 100.0
        assert data["mode"] == "parallel"
        assert data["failed"] == []

    def test_render_job_paths(self):
        job = RenderJob(
            text="Ann",
            text_config=TextConfig(x=1, y=2),
            template_path="t.pdf",
            output_path="out/t-Ann.pdf",
        )
        assert isinstance(job.output_path, Path)
        assert job.output_path.name == "t-Ann.pdf"

"""
Test Suite for the CLI
======================
Invokes the click commands in-process with CliRunner.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import fitz
import pytest
from click.testing import CliRunner

from text_render import __version__
from text_render.cli import cli
from text_render.container import build_container
from text_render.engine import RenderEngine

pytestmark = pytest.mark.usefixtures("no_system_fonts")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def names_csv(write_csv):
    return write_csv("Ann Lee\nBen Stone,Dr.\n")


def render_args(template, csv_path, output, *extra):
    return [
        "render", "-t", str(template), "-c", str(csv_path), "-o", str(output),
        "--x", "50", "--y", "100", *extra,
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# GROUP TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestGroup:

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
        assert "bulk-render" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("render", "fonts", "info"):
            assert command in result.output


# ═══════════════════════════════════════════════════════════════════════════════
# RENDER COMMAND TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestRenderCommand:

    def test_png_batch(self, runner, png_template, names_csv, tmp_path):
        output = tmp_path / "out"
        result = runner.invoke(cli, render_args(png_template, names_csv, output, "-s", "30"))

        assert result.exit_code == 0, result.output
        assert "Processing 2 entries (sequential mode)..." in result.output
        assert f"Completed! Output files saved to: {output.resolve()}" in result.output
        assert sorted(p.name for p in output.iterdir()) == ["card-Ann_Lee.png", "card-Ben_Stone.png"]

    def test_pdf_with_options(self, runner, pdf_template, names_csv, tmp_path):
        output = tmp_path / "out"
        result = runner.invoke(cli, render_args(
            pdf_template, names_csv, output,
            "-u", "MM", "-a", "Center", "-f", "Helvetica", "-C", "#00F",
            "-b", "--prefix", "2024", "--postfix", "final",
        ))

        assert result.exit_code == 0, result.output
        rendered = output / "2024-certificate-Ben_Stone-final.pdf"
        with fitz.open(str(rendered)) as doc:
            span = doc[0].get_text("dict")["blocks"][0]["lines"][0]["spans"][0]
        assert span["text"] == "Dr. Ben Stone"
        assert span["color"] == 0x0000FF
        assert span["origin"][1] == pytest.approx(100 * 2.835, abs=0.5)

    def test_parallel_mode(self, runner, png_template, names_csv, tmp_path):
        result = runner.invoke(cli, render_args(
            png_template, names_csv, tmp_path / "out", "-p", "2", "--sequential-threshold", "0",
        ))
        assert result.exit_code == 0, result.output
        assert "Processing 2 entries (parallel mode)..." in result.output

    def test_empty_csv(self, runner, png_template, write_csv, tmp_path):
        result = runner.invoke(cli, render_args(png_template, write_csv("\n"), tmp_path / "out"))
        assert result.exit_code == 0
        assert "No entries found in CSV file." in result.output

    def test_report(self, runner, png_template, names_csv, tmp_path):
        report = tmp_path / "report.json"
        result = runner.invoke(cli, render_args(
            png_template, names_csv, tmp_path / "out", "--report", str(report),
        ))
        assert result.exit_code == 0, result.output
        assert json.loads(report.read_text(encoding="utf-8"))["succeeded"] == 2

    def test_failed_entries_reported(self, runner, tmp_path, names_csv):
        template = tmp_path / "broken.png"
        template.write_bytes(b"not an image")

        result = runner.invoke(cli, render_args(template, names_csv, tmp_path / "out"))

        assert result.exit_code == 0
        assert "Failed Entries" in result.output

    def test_strict_fails_on_errors(self, runner, tmp_path, names_csv):
        template = tmp_path / "broken.png"
        template.write_bytes(b"not an image")

        result = runner.invoke(cli, render_args(template, names_csv, tmp_path / "out", "--strict"))

        assert result.exit_code == 1

    def test_runs_through_engine(self, runner, png_template, names_csv, tmp_path):
        with patch.object(RenderEngine, "run", autospec=True, side_effect=RenderEngine.run) as run:
            result = runner.invoke(cli, render_args(png_template, names_csv, tmp_path / "out"))

        assert result.exit_code == 0, result.output
        run.assert_called_once()

    def test_undecodable_csv(self, runner, png_template, tmp_path):
        csv_path = tmp_path / "latin.csv"
        csv_path.write_bytes(b"\xff\xfe\xfaAnn\n")

        result = runner.invoke(cli, render_args(png_template, csv_path, tmp_path / "out"))

        assert result.exit_code == 1
        assert "Error: " in result.output
        assert "codec" in result.output
        assert "Unexpected" not in result.output

    def test_list_fonts_needs_no_other_options(self, runner):
        result = runner.invoke(cli, ["render", "--list-fonts"])
        assert result.exit_code == 0
        assert "[Built-in - PDF, PNG, JPEG]" in result.output
        assert "Times New Roman" in result.output


class TestRenderValidation:

    def test_missing_required_options(self, runner):
        result = runner.invoke(cli, ["render"])
        assert result.exit_code == 2
        for option in ("--template", "--csv", "--x", "--y"):
            assert f"Missing required option: '{option}'" in result.output

    def test_missing_coordinate(self, runner, png_template, names_csv):
        result = runner.invoke(cli, ["render", "-t", str(png_template), "-c", str(names_csv), "--x", "1"])
        assert result.exit_code == 2
        assert "'--y'" in result.output
        assert "'--x'" not in result.output

    @pytest.mark.parametrize("option,value", [
        ("--color", "notacolor"),
        ("--align", "middle"),
        ("--unit", "inch"),
        ("--font-size", "0"),
        ("--threads", "0"),
    ])
    def test_invalid_option_values(self, runner, png_template, names_csv, tmp_path, option, value):
        result = runner.invoke(
            cli, render_args(png_template, names_csv, tmp_path / "out", option, value)
        )
        assert result.exit_code == 2

    def test_missing_template_file(self, runner, names_csv, tmp_path):
        result = runner.invoke(cli, render_args(tmp_path / "nope.pdf", names_csv, tmp_path / "out"))
        assert result.exit_code == 1
        assert "Template file does not exist" in result.output

    def test_missing_csv_file(self, runner, png_template, tmp_path):
        result = runner.invoke(cli, render_args(png_template, tmp_path / "nope.csv", tmp_path / "out"))
        assert result.exit_code == 1
        assert "CSV file does not exist" in result.output

    def test_unsupported_template(self, runner, names_csv, tmp_path):
        template = tmp_path / "template.gif"
        template.write_bytes(b"GIF89a")
        result = runner.invoke(cli, render_args(template, names_csv, tmp_path / "out"))
        assert result.exit_code == 1
        assert "Unsupported template format" in result.output


# ═══════════════════════════════════════════════════════════════════════════════
# FONTS & INFO COMMAND TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFontsCommand:

    def test_sections(self, runner):
        result = runner.invoke(cli, ["fonts"])
        assert result.exit_code == 0
        assert "[Built-in - PDF, PNG, JPEG]" in result.output
        assert "[System Fonts - PDF, PNG, JPEG]" in result.output
        assert "[System Fonts - PNG, JPEG only]" in result.output
        for name in ("Courier", "Helvetica", "Times New Roman"):
            assert name in result.output

    def test_fonts_come_from_container(self, runner, tmp_path):
        with patch("text_render.cli.build_container", wraps=build_container) as factory:
            result = runner.invoke(cli, ["fonts", "--font-dir", str(tmp_path)])

        assert result.exit_code == 0
        factory.assert_called_once()
        assert factory.call_args.args[0].font_dirs == [str(tmp_path)]


class TestInfoCommand:

    def test_pdf_info(self, runner, pdf_template):
        result = runner.invoke(cli, ["info", str(pdf_template)])
        assert result.exit_code == 0
        assert "PDF" in result.output
        assert "595.0 x 842.0" in result.output

    def test_image_info(self, runner, png_template):
        result = runner.invoke(cli, ["info", str(png_template)])
        assert result.exit_code == 0
        assert "400 x 200" in result.output
        assert "RGB" in result.output

    def test_unsupported_format(self, runner, tmp_path):
        template = tmp_path / "notes.txt"
        template.write_text("hello", encoding="utf-8")
        result = runner.invoke(cli, ["info", str(template)])
        assert result.exit_code == 1

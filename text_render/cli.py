"""
CLI Interface
=============
Command-line interface for the bulk text renderer.

Usage:
    bulk-render render -t template.pdf -c names.csv --x 100 --y 200 [options]
    bulk-render fonts
    bulk-render info <template>
"""

from __future__ import annotations

import os
from pathlib import Path

import click
import fitz
from PIL import Image
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .container import build_container
from .engine import SUPPORTED_EXTENSIONS, RenderSettings, setup_logging
from .exceptions import RenderError
from .executor import DEFAULT_SEQUENTIAL_THRESHOLD
from .fonts import FontService
from .models import (
    Alignment,
    BatchResult,
    FontCategory,
    FontStyle,
    MeasurementUnit,
    TextConfig,
)
from .naming import file_extension

console = Console()
err_console = Console(stderr=True)


# ─── Option Types ─────────────────────────────────────────────────────────────


class AlignmentType(click.ParamType):
    """Case-insensitive alignment: left, center, right."""
    name = "alignment"

    def convert(self, value, param, ctx):
        if isinstance(value, Alignment):
            return value
        try:
            return Alignment.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class UnitType(click.ParamType):
    """Case-insensitive measurement unit: px, mm."""
    name = "unit"

    def convert(self, value, param, ctx):
        if isinstance(value, MeasurementUnit):
            return value
        try:
            return MeasurementUnit.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class HexColorType(click.ParamType):
    name = "color"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        try:
            return TextConfig.parse_hex_color(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


# ─── Commands ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="bulk-render")
def cli():
    """Bulk render text onto PDF, PNG, or JPEG templates using data from a CSV file."""
    pass


@cli.command()
@click.option("--template", "-t", "template", type=click.Path(path_type=Path),
              help="Template file path (PDF, PNG, JPG, or JPEG)")
@click.option("--csv", "-c", "csv_path", type=click.Path(path_type=Path),
              help="CSV file path containing text entries")
@click.option("--output", "-o", default="./output", show_default=True,
              type=click.Path(path_type=Path), help="Output folder")
@click.option("--x", "x", type=float, help="X coordinate for text placement")
@click.option("--y", "y", type=float, help="Y coordinate for text placement")
@click.option("--unit", "-u", default="px", show_default=True, type=UnitType(),
              help="Measurement unit for coordinates: px (pixels), mm (millimeters)")
@click.option("--align", "-a", "alignment", default="left", show_default=True,
              type=AlignmentType(), help="Text alignment: left, center, right")
@click.option("--font", "-f", "font_name", default="Times New Roman", show_default=True,
              help="Font name")
@click.option("--font-size", "-s", default=12.0, show_default=True,
              type=click.FloatRange(min=0, min_open=True), help="Font size")
@click.option("--color", "-C", default="#000000", show_default=True, type=HexColorType(),
              help="Font color in hex format (e.g. #FF0000, #000)")
@click.option("--bold", "-b", is_flag=True, default=False, help="Use bold font style")
@click.option("--italic", "-i", is_flag=True, default=False, help="Use italic font style")
@click.option("--threads", "-p", default=None, type=click.IntRange(min=1),
              help="Number of parallel threads [default: available processors]")
@click.option("--sequential-threshold", default=DEFAULT_SEQUENTIAL_THRESHOLD,
              show_default=True, type=click.IntRange(min=0),
              help="Jobs below this count are processed sequentially. "
                   "Set to 0 to always use parallel processing.")
@click.option("--prefix", default=None, help="Output filename prefix")
@click.option("--postfix", default=None, help="Output filename postfix")
@click.option("--font-dir", "font_dirs", multiple=True,
              type=click.Path(file_okay=False, path_type=Path),
              help="Extra directory to search for fonts (repeatable)")
@click.option("--list-fonts", is_flag=True, default=False,
              help="List available fonts for PDF, PNG, and JPEG rendering and exit")
@click.option("--report", "report_path", default=None, type=click.Path(path_type=Path),
              help="Write a JSON report of the batch to this file")
@click.option("--strict", is_flag=True, default=False,
              help="Exit with status 1 if any entry fails to render")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Enable verbose logging (INFO level)")
@click.option("--debug", is_flag=True, default=False,
              help="Enable debug logging (DEBUG level)")
@click.option("--log-file", default=None, help="Path to log file")
@click.pass_context
def render(
    ctx: click.Context,
    template: Path,
    csv_path: Path,
    output: Path,
    x: float,
    y: float,
    unit: MeasurementUnit,
    alignment: Alignment,
    font_name: str,
    font_size: float,
    color: tuple[int, int, int],
    bold: bool,
    italic: bool,
    threads: int,
    sequential_threshold: int,
    prefix: str,
    postfix: str,
    font_dirs: tuple[Path, ...],
    list_fonts: bool,
    report_path: Path,
    strict: bool,
    verbose: bool,
    debug: bool,
    log_file: str,
):
    """Render one output file per CSV entry."""

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(log_level, log_file)

    settings = RenderSettings(
        output_dir=str(output),
        prefix=prefix,
        postfix=postfix,
        report_path=str(report_path) if report_path else None,
        sequential_threshold=sequential_threshold,
        font_dirs=[str(d) for d in font_dirs],
        log_level=log_level,
        log_file=log_file,
    )
    if threads:
        settings.parallelism = threads

    container = build_container(settings)

    if list_fonts:
        _display_fonts(container.font_service)
        return

    _require_options(ctx, template=template, csv=csv_path, x=x, y=y)
    _validate_files(ctx, template, csv_path)

    text_config = TextConfig(
        x=unit.to_pixels(x),
        y=unit.to_pixels(y),
        alignment=alignment,
        font_name=font_name,
        font_size=font_size,
        color=color,
        font_style=FontStyle.from_flags(bold, italic),
    )

    engine = container.engine
    exit_code = 0

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(
                f"Rendering {file_extension(template).upper()}...", total=None
            )

            def on_start(count: int, mode: str):
                progress.console.print(f"Processing {count} entries ({mode} mode)...")
                progress.update(task, total=count)

            result = engine.run(
                template,
                csv_path,
                text_config,
                progress_listener=lambda done, total: progress.update(task, completed=done),
                on_start=on_start,
            )

        if result.total == 0:
            console.print("No entries found in CSV file.")
            return

        console.print(
            f"Completed! Output files saved to: {output.resolve()}",
            soft_wrap=True,
            highlight=False,
            markup=False,
        )
        _display_summary(result)

        if strict and result.has_failures:
            exit_code = 1

    except (RenderError, OSError) as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}", soft_wrap=True, highlight=False)
        exit_code = 1
    except Exception as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}", soft_wrap=True, highlight=False)
        if debug:
            err_console.print_exception()
        exit_code = 1

    if exit_code:
        ctx.exit(exit_code)


@cli.command()
@click.option("--font-dir", "font_dirs", multiple=True,
              type=click.Path(file_okay=False, path_type=Path),
              help="Extra directory to search for fonts (repeatable)")
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def fonts(font_dirs: tuple[Path, ...], debug: bool):
    """List available fonts for PDF, PNG, and JPEG rendering."""
    setup_logging("DEBUG" if debug else "WARNING")
    settings = RenderSettings(font_dirs=[str(d) for d in font_dirs])
    _display_fonts(build_container(settings).font_service)


@cli.command()
@click.argument("template_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def info(template_path: Path):
    """Display template information, to help choose coordinates."""

    extension = file_extension(template_path).lower()
    if extension not in SUPPORTED_EXTENSIONS:
        err_console.print(f"[red]Error:[/] Unsupported template format: {escape(str(template_path))}")
        raise SystemExit(1)

    table = Table(title="Template Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    table.add_row("File", escape(template_path.name))
    table.add_row("Format", extension.upper())
    table.add_row("File Size", f"{os.path.getsize(template_path) / 1024:.1f} KB")

    try:
        if extension == "pdf":
            with fitz.open(str(template_path)) as doc:
                table.add_row("Pages", str(doc.page_count))
                if doc.page_count:
                    rect = doc[0].rect
                    mm = MeasurementUnit.MM.pixel_multiplier
                    table.add_row("Page 1 Size (pt)", f"{rect.width:.1f} x {rect.height:.1f}")
                    table.add_row(
                        "Page 1 Size (mm)",
                        f"{rect.width / mm:.1f} x {rect.height / mm:.1f}",
                    )
        else:
            with Image.open(template_path) as image:
                table.add_row("Size (px)", f"{image.width} x {image.height}")
                table.add_row("Mode", image.mode)
    except (RuntimeError, OSError, ValueError) as e:
        err_console.print(f"[red]Error:[/] Failed to read template: {escape(str(e))}")
        raise SystemExit(1)

    console.print()
    console.print(table)
    console.print()


# ─── Validation Helpers ───────────────────────────────────────────────────────


def _require_options(ctx: click.Context, **values):
    missing = [name for name, value in values.items() if value is None]
    for name in missing:
        click.echo(f"Missing required option: '--{name}'", err=True)
    if missing:
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(2)


def _validate_files(ctx: click.Context, template: Path, csv_path: Path):
    if not template.exists():
        click.echo(f"Template file does not exist: {template}", err=True)
        ctx.exit(1)
    if not csv_path.exists():
        click.echo(f"CSV file does not exist: {csv_path}", err=True)
        ctx.exit(1)
    if file_extension(template).lower() not in SUPPORTED_EXTENSIONS:
        click.echo(
            f"Unsupported template format. Use PDF, PNG, JPG, or JPEG: {template}",
            err=True,
        )
        ctx.exit(1)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_fonts(font_service: FontService):
    """Print fonts grouped by the formats they work with."""
    font_list = font_service.unified_fonts()
    pdf_registered = {name.lower() for name in font_service.pdf_fonts()}
    system = [f for f in font_list if f.category == FontCategory.SYSTEM]

    def section(title: str, names: list[str], note: str = ""):
        console.print()
        console.print(title, style="bold cyan", markup=False, highlight=False)
        if note:
            console.print(note, style="dim", markup=False, highlight=False)
        for name in names:
            console.print(f"  {name}", markup=False, highlight=False)

    console.print("=== Available Fonts ===", style="bold", markup=False)
    section(
        "[Built-in - PDF, PNG, JPEG]",
        [f.name for f in font_list if f.category == FontCategory.BUILT_IN],
    )
    section(
        "[System Fonts - PDF, PNG, JPEG]",
        [f.name for f in system if f.name.lower() in pdf_registered],
    )
    section(
        "[System Fonts - PNG, JPEG only]",
        [f.name for f in system if f.name.lower() not in pdf_registered],
        note="(These fonts are not usable for PDF embedding and will fall back to Times Roman)",
    )


def _display_summary(result: BatchResult):
    """Display batch processing summary."""
    console.print()

    if result.failed:
        table = Table(title="Failed Entries", border_style="red")
        table.add_column("Text", style="bold")
        table.add_column("Output")
        table.add_column("Error")
        for failure in result.failed:
            table.add_row(
                escape(failure.text),
                escape(os.path.basename(failure.output_path)),
                escape(failure.error),
            )
        console.print(table)
        console.print()

    status = "[green]✓[/]" if not result.failed else "[yellow]⚠[/]"
    console.print(
        Panel.fit(
            f"{status} [bold]{result.succeeded}[/] of {result.total} rendered "
            f"({result.success_rate}%), {len(result.failed)} failed "
            f"[dim]| {result.mode} | {result.elapsed_seconds:.2f}s[/]",
            border_style="cyan" if not result.failed else "yellow",
        )
    )
    console.print()


if __name__ == "__main__":
    cli()

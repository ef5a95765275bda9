"""
Render Engine
=============
Orchestrates a bulk render run.

Usage:
    container = build_container(RenderSettings(output_dir="out"))
    result = container.engine.run(template, csv_path, text_config)

Flow:
    CSV → CsvReader → CsvEntries → RenderJobs → BatchExecutor(Renderer)
    → BatchResult (optionally saved as a JSON report)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .csv_reader import CsvReader
from .exceptions import UnsupportedTemplateError
from .executor import DEFAULT_SEQUENTIAL_THRESHOLD, DEFAULT_TIMEOUT_SECONDS, BatchExecutor
from .models import BatchResult, CsvEntry, RenderJob, TextConfig
from .naming import file_extension, generate_from_clean_name, unique_path
from .progress import ProgressListener, ProgressTracker
from .renderer import Renderer

logger = logging.getLogger(__name__)

StartListener = Callable[[int, str], None]

SUPPORTED_EXTENSIONS = ("pdf", "png", "jpg", "jpeg")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RenderSettings:
    """Run-wide settings, independent of the text styling."""

    # Output
    output_dir: str = "./output"
    prefix: Optional[str] = None
    postfix: Optional[str] = None
    report_path: Optional[str] = None

    # Processing
    parallelism: int = field(default_factory=lambda: os.cpu_count() or 1)
    sequential_threshold: int = DEFAULT_SEQUENTIAL_THRESHOLD
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Fonts
    font_dirs: list[str] = field(default_factory=list)

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[str] = None


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None):
    """Configure the ``text_render`` package logger. Safe to call repeatedly."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    package_logger = logging.getLogger("text_render")
    package_logger.setLevel(log_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # Console handler
    if not any(type(h) is logging.StreamHandler for h in package_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        package_logger.addHandler(console)

    # File handler, once per file
    if log_file:
        log_path = os.path.abspath(log_file)
        if not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == log_path
            for h in package_logger.handlers
        ):
            Path(log_path).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    for handler in package_logger.handlers:
        handler.setLevel(log_level)


class RenderEngine:
    """
    Turns a template and a CSV file into one output file per CSV entry.
    """

    def __init__(
        self,
        settings: RenderSettings,
        csv_reader: CsvReader,
        executor: BatchExecutor,
        renderers: dict[str, Renderer],
    ):
        self.settings = settings
        self.csv_reader = csv_reader
        self.executor = executor
        self.renderers = renderers

    def select_renderer(self, template_path: Path) -> Renderer:
        """Renderer for the template's extension (case-insensitive)."""
        extension = file_extension(template_path).lower()
        renderer = self.renderers.get(extension)
        if renderer is None:
            raise UnsupportedTemplateError(template_path)
        return renderer

    def read_entries(self, csv_path: Path) -> list[CsvEntry]:
        return self.csv_reader.read_entries(csv_path)

    def build_jobs(
        self,
        entries: list[CsvEntry],
        template_path: Path,
        text_config: TextConfig,
    ) -> list[RenderJob]:
        """One job per entry; output names are unique within the batch."""
        output_dir = Path(self.settings.output_dir).resolve()
        extension = file_extension(template_path)
        taken: set[Path] = set()
        jobs = []

        for entry in entries:
            filename = generate_from_clean_name(
                str(template_path),
                entry.name,
                self.settings.prefix,
                self.settings.postfix,
                extension,
            )
            output_path = unique_path(output_dir / filename, taken)
            if output_path.name != filename:
                logger.warning(f"Duplicate output name '{filename}', using '{output_path.name}'")
            jobs.append(RenderJob(
                text=entry.display_text,
                text_config=text_config,
                template_path=template_path,
                output_path=output_path,
            ))

        return jobs

    def execute(
        self,
        jobs: list[RenderJob],
        renderer: Renderer,
        progress_listener: Optional[ProgressListener] = None,
    ) -> BatchResult:
        tracker = ProgressTracker(len(jobs))
        if progress_listener:
            tracker.add_listener(progress_listener)

        result = self.executor.execute_all(
            jobs,
            renderer,
            self.settings.parallelism,
            tracker,
            self.settings.sequential_threshold,
        )

        if self.settings.report_path:
            self.save_report(result, Path(self.settings.report_path))
        return result

    def run(
        self,
        template_path: Path,
        csv_path: Path,
        text_config: TextConfig,
        progress_listener: Optional[ProgressListener] = None,
        on_start: Optional[StartListener] = None,
    ) -> BatchResult:
        """
        Render every CSV entry onto the template.

        ``on_start`` is called with the job count and execution mode
        (``"sequential"`` or ``"parallel"``) just before rendering begins.
        An empty CSV returns an empty result without calling it.

        Raises:
            UnsupportedTemplateError: If no renderer handles the template.
            OSError: If the CSV cannot be read.
            UnicodeDecodeError: If the CSV is not UTF-8.
        """
        renderer = self.select_renderer(template_path)
        Path(self.settings.output_dir).mkdir(parents=True, exist_ok=True)

        entries = self.read_entries(csv_path)
        if not entries:
            logger.info("No entries found in CSV file.")
            return BatchResult()

        jobs = self.build_jobs(entries, template_path, text_config)
        if on_start:
            on_start(len(jobs), BatchExecutor.mode_for(len(jobs), self.settings.sequential_threshold))
        return self.execute(jobs, renderer, progress_listener)

    def save_report(self, result: BatchResult, filepath: Path):
        """Save the batch result as JSON."""
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(result.model_dump(), f, indent=2, ensure_ascii=False, default=str)
            logger.info(f"Saved report: {filepath}")
        except OSError as e:
            logger.error(f"Failed to save report: {e}")

"""
CSV Reader
==========
Reads the list of names to render.

Accepted layouts:
    John Doe                    # single column
    Jane Doe,Dr.,PhD            # name,prefix,postfix
    name,prefix,postfix         # optional header row (skipped)
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from .models import CsvEntry

logger = logging.getLogger(__name__)

HEADER_COLUMNS = ("name", "prefix", "postfix")


class CsvReader:
    """Parses CSV files into :class:`CsvEntry` objects."""

    encoding = "utf-8-sig"

    def read_lines(self, file_path: Path) -> list[str]:
        """Return every line trimmed, with empty lines dropped."""
        text = Path(file_path).read_text(encoding=self.encoding)
        return [line.strip() for line in text.splitlines() if line.strip()]

    def read_entries(self, file_path: Path) -> list[CsvEntry]:
        """
        Parse ``name[,prefix[,postfix]]`` rows.

        Args:
            file_path: Path to the CSV file.

        Returns:
            Entries in file order. Blank rows, a header row and rows
            without a name are skipped.
        """
        entries: list[CsvEntry] = []
        first_row = True

        with open(file_path, "r", encoding=self.encoding, newline="") as handle:
            reader = csv.reader(handle)
            for row_number, row in enumerate(reader, start=1):
                cells = [cell.strip() for cell in row]
                if not any(cells):
                    continue

                if first_row:
                    first_row = False
                    if self._is_header(cells):
                        logger.debug(f"Skipping header row: {row}")
                        continue

                cells += [""] * (len(HEADER_COLUMNS) - len(cells))
                name, prefix, postfix = cells[:3]

                if not name:
                    logger.warning(f"Row {row_number} has no name, skipping: {row}")
                    continue

                if len(row) > len(HEADER_COLUMNS):
                    logger.debug(
                        f"Row {row_number} has {len(row)} columns, "
                        f"extra columns ignored"
                    )

                entries.append(CsvEntry(name=name, prefix=prefix, postfix=postfix))

        logger.info(f"Read {len(entries)} entries from {file_path}")
        return entries

    @staticmethod
    def _is_header(cells: list[str]) -> bool:
        lowered = [c.lower() for c in cells if c]
        return (
            bool(lowered)
            and lowered[0] == "name"
            and all(c in HEADER_COLUMNS for c in lowered)
        )

"""
Output File Naming
==================
Builds output file names of the form::

    <prefix>-<template-name>-<text>-<postfix>.<format>

Prefix and postfix are optional.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

MAX_TEXT_LENGTH = 50

_SEPARATORS = re.compile(r"[\s,;]+")
_INVALID_CHARS = re.compile(r'[\\/:*?"<>|]')
_WHITESPACE = re.compile(r"\s+")


def generate(
    template_path: str,
    text: Optional[str],
    prefix: Optional[str],
    postfix: Optional[str],
    fmt: str,
) -> str:
    """
    Generate a file name from the first word of ``text``.

    >>> generate("/path/to/template.pdf", "John Doe", "wedding", "final", "pdf")
    'wedding-template-John-final.pdf'
    """
    return _assemble(template_path, _first_part(text), prefix, postfix, fmt)


def generate_from_clean_name(
    template_path: str,
    name: Optional[str],
    prefix: Optional[str],
    postfix: Optional[str],
    fmt: str,
) -> str:
    """
    Generate a file name from a whole name (no title prefix/postfix),
    with whitespace replaced by underscores.

    >>> generate_from_clean_name("card.png", "Adam  Smith", None, None, "png")
    'card-Adam_Smith.png'
    """
    if name is None or not name.strip():
        part = "unnamed"
    else:
        part = _WHITESPACE.sub("_", name.strip())[:MAX_TEXT_LENGTH]
    return _assemble(template_path, part, prefix, postfix, fmt)


def unique_path(path: Path, taken: set[Path]) -> Path:
    """
    Return ``path`` or, if already in ``taken``, the first free
    ``<stem>-N<suffix>`` variant. The returned path is added to ``taken``.
    """
    candidate = path
    counter = 2
    while candidate in taken:
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        counter += 1
    taken.add(candidate)
    return candidate


def file_extension(path: str | Path) -> str:
    """Extension without the dot; empty for names like ``.hidden``."""
    name = _base_name(str(path))
    dot = name.rfind(".")
    return name[dot + 1:] if dot > 0 else ""


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _assemble(
    template_path: str,
    text_part: str,
    prefix: Optional[str],
    postfix: Optional[str],
    fmt: str,
) -> str:
    pieces = []
    if prefix and prefix.strip():
        pieces.append(prefix)
    pieces.append(_template_stem(template_path))
    pieces.append(_sanitize(text_part))
    if postfix and postfix.strip():
        pieces.append(postfix)
    return "-".join(pieces) + "." + fmt.lower()


def _base_name(path: str) -> str:
    # Accept both separators so Windows-style paths work everywhere.
    return re.split(r"[\\/]", path)[-1]


def _template_stem(template_path: str) -> str:
    name = _base_name(str(template_path))
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else name


def _first_part(text: Optional[str]) -> str:
    if text is None or not text.strip():
        return "unnamed"
    first = _SEPARATORS.split(text.strip())[0]
    return first[:MAX_TEXT_LENGTH]


def _sanitize(text: str) -> str:
    return _INVALID_CHARS.sub("_", text)

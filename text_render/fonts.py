"""
Font Service
============
Resolves font names for PDF and raster rendering.

Sources:
    - Built-in fonts (Helvetica, Courier, Times New Roman): the PDF base-14
      fonts, always available without system dependencies.
    - System fonts: TrueType/OpenType files discovered in the usual OS font
      directories. Discovery runs once, on first use.

Name lookup is case-insensitive and tolerant: exact family name, then
partial family name, then font file name.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import fitz  # PyMuPDF
from PIL import ImageFont

from .models import FontCategory, FontInfo, FontStyle

logger = logging.getLogger(__name__)

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
MAX_SCAN_DEPTH = 3
MAX_COLLECTION_FACES = 10

BUILT_IN_FONTS = ("Helvetica", "Courier", "Times New Roman")

_BUILT_IN_ALIASES = {
    "helvetica": "Helvetica",
    "sansserif": "Helvetica",
    "sans-serif": "Helvetica",
    "courier": "Courier",
    "monospace": "Courier",
    "times new roman": "Times New Roman",
    "times": "Times New Roman",
    "serif": "Times New Roman",
}

# PyMuPDF base-14 font codes
_BASE14 = {
    "Helvetica": {
        FontStyle.NORMAL: "helv",
        FontStyle.BOLD: "hebo",
        FontStyle.ITALIC: "heit",
        FontStyle.BOLD_ITALIC: "hebi",
    },
    "Courier": {
        FontStyle.NORMAL: "cour",
        FontStyle.BOLD: "cobo",
        FontStyle.ITALIC: "coit",
        FontStyle.BOLD_ITALIC: "cobi",
    },
    "Times New Roman": {
        FontStyle.NORMAL: "tiro",
        FontStyle.BOLD: "tibo",
        FontStyle.ITALIC: "tiit",
        FontStyle.BOLD_ITALIC: "tibi",
    },
}

# Raster rendering needs a real font file; these families are metric
# compatible stand-ins for the built-ins.
_RASTER_SUBSTITUTES = {
    "Helvetica": ("Helvetica", "Arial", "Liberation Sans", "DejaVu Sans", "FreeSans"),
    "Times New Roman": (
        "Times New Roman", "Times", "Liberation Serif", "DejaVu Serif", "FreeSerif",
    ),
    "Courier": ("Courier New", "Courier", "Liberation Mono", "DejaVu Sans Mono", "FreeMono"),
}

_CANONICAL_STYLE_NAMES = {
    "regular", "normal", "book", "roman", "bold", "italic", "oblique",
    "bold italic", "bold oblique",
}


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def built_in_name(font_name: Optional[str]) -> Optional[str]:
    """Canonical built-in font for ``font_name``, or None."""
    if font_name is None:
        return None
    return _BUILT_IN_ALIASES.get(font_name.strip().lower())


# ─── Font Faces ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FontFace:
    """One face inside a font file."""
    family: str
    style_name: str
    path: Path
    index: int = 0

    @property
    def style(self) -> FontStyle:
        lowered = self.style_name.lower()
        return FontStyle.from_flags(
            bold="bold" in lowered,
            italic="italic" in lowered or "oblique" in lowered,
        )

    @property
    def is_canonical(self) -> bool:
        return self.style_name.lower() in _CANONICAL_STYLE_NAMES

    @property
    def pdf_capable(self) -> bool:
        # Only the first face of a collection can be embedded by file path.
        return self.index == 0


@dataclass(frozen=True)
class PdfFont:
    """A font as understood by ``fitz.Page.insert_text``."""
    fontname: str
    fontfile: Optional[str] = None

    def text_length(self, text: str, fontsize: float) -> float:
        if self.fontfile:
            return fitz.Font(fontfile=self.fontfile).text_length(text, fontsize=fontsize)
        return fitz.get_text_length(text, fontname=self.fontname, fontsize=fontsize)


# ─── Service ──────────────────────────────────────────────────────────────────


class FontService:
    """
    Registry of available fonts, shared by the PDF and image renderers.

    Thread-safe: system font discovery is guarded and runs only once.
    """

    def __init__(self, extra_font_dirs: Optional[Iterable[str | Path]] = None):
        self.extra_font_dirs = [Path(d) for d in extra_font_dirs or []]
        self._lock = threading.Lock()
        self._registered = False
        self._families: dict[str, dict[FontStyle, FontFace]] = {}
        self._family_names: dict[str, str] = {}
        self._files: dict[str, list[FontFace]] = {}

    # ── Registration ──────────────────────────────────────────────────

    @property
    def registered(self) -> bool:
        return self._registered

    def register_system_fonts(self):
        """Scan font directories and register every readable face."""
        with self._lock:
            if self._registered:
                return
            logger.info("Registering system fonts...")
            for font_dir in self.font_directories():
                for font_file in self._scan_directory(font_dir):
                    for face in self._load_faces(font_file):
                        self._add_face(face)
            self._registered = True
            logger.debug(f"System fonts registered. Total families: {len(self._families)}")

    def _ensure_registered(self):
        if not self._registered:
            self.register_system_fonts()

    def font_directories(self) -> list[Path]:
        """OS font directories (plus configured extras) that exist."""
        home = Path.home()
        if sys.platform == "darwin":
            dirs = [
                home / "Library" / "Fonts",
                Path("/Library/Fonts"),
                Path("/System/Library/Fonts"),
            ]
        elif sys.platform.startswith("win"):
            dirs = [home / "AppData" / "Local" / "Microsoft" / "Windows" / "Fonts"]
            windir = os.environ.get("WINDIR")
            if windir:
                dirs.insert(0, Path(windir) / "Fonts")
        else:
            dirs = [
                home / ".fonts",
                home / ".local" / "share" / "fonts",
                Path("/usr/share/fonts"),
                Path("/usr/local/share/fonts"),
            ]
        return [d for d in self.extra_font_dirs + dirs if d.is_dir()]

    def _scan_directory(self, font_dir: Path) -> list[Path]:
        found = []
        base_depth = len(font_dir.parts)
        for root, subdirs, files in os.walk(font_dir):
            if len(Path(root).parts) - base_depth >= MAX_SCAN_DEPTH - 1:
                subdirs[:] = []
            for filename in files:
                if filename.lower().endswith(FONT_EXTENSIONS):
                    found.append(Path(root) / filename)
        return sorted(found)

    def _load_faces(self, font_file: Path) -> list[FontFace]:
        faces = []
        is_collection = font_file.suffix.lower() == ".ttc"
        for index in range(MAX_COLLECTION_FACES if is_collection else 1):
            try:
                font = ImageFont.truetype(str(font_file), size=12, index=index)
            except OSError as e:
                if index == 0:
                    logger.debug(f"Failed to load font file {font_file}: {e}")
                break
            family, style_name = font.getname()
            faces.append(FontFace(
                family=family or font_file.stem,
                style_name=style_name or "Regular",
                path=font_file,
                index=index,
            ))
        return faces

    def _add_face(self, face: FontFace):
        key = face.family.lower()
        self._family_names.setdefault(key, face.family)
        styles = self._families.setdefault(key, {})
        current = styles.get(face.style)
        if current is None or (face.is_canonical and not current.is_canonical):
            styles[face.style] = face
        self._files.setdefault(_normalize(face.path.stem), []).append(face)

    # ── Lookup ────────────────────────────────────────────────────────

    def resolve(self, font_name: str, style: FontStyle = FontStyle.NORMAL) -> Optional[FontFace]:
        """
        Find the system face best matching ``font_name`` and ``style``.

        Returns:
            The face, or None if no system font matches.
        """
        self._ensure_registered()
        styles = self._match_family(font_name) or self._match_file(font_name)
        if not styles:
            logger.debug(f"No system font found for: {font_name}")
            return None
        face = styles.get(style) or styles.get(FontStyle.NORMAL)
        if face is None:
            face = next(iter(styles.values()))
        if face.style != style:
            logger.debug(f"Font '{font_name}' has no {style.value} face, using {face.style_name}")
        return face

    def _match_family(self, font_name: str) -> Optional[dict[FontStyle, FontFace]]:
        search = font_name.strip().lower()
        if not search:
            return None
        if search in self._families:
            return self._families[search]
        for key in sorted(self._families):
            if search in key or key in search:
                logger.debug(f"Font '{font_name}' matched family '{self._family_names[key]}'")
                return self._families[key]
        return None

    def _match_file(self, font_name: str) -> Optional[dict[FontStyle, FontFace]]:
        search = _normalize(font_name)
        if not search:
            return None
        for stem in sorted(self._files):
            if stem and (search in stem or stem in search):
                styles: dict[FontStyle, FontFace] = {}
                for face in self._files[stem]:
                    styles.setdefault(face.style, face)
                logger.debug(f"Font '{font_name}' matched file '{stem}'")
                return styles
        return None

    # ── Renderer Fonts ────────────────────────────────────────────────

    def pdf_font(self, font_name: Optional[str], style: FontStyle = FontStyle.NORMAL) -> PdfFont:
        """
        Font for PDF rendering. Falls back to Times Roman (in the requested
        style) when nothing usable is found.
        """
        if font_name is None:
            logger.debug("No font specified, using default Times Roman")
            return PdfFont(_BASE14["Times New Roman"][style])

        built_in = built_in_name(font_name)
        if built_in:
            logger.debug(f"Using built-in font: {built_in}")
            return PdfFont(_BASE14[built_in][style])

        face = self.resolve(font_name, style)
        if face is not None and face.pdf_capable:
            logger.debug(f"Using system font: {face.family} {face.style_name} ({face.path})")
            alias = "TR" + re.sub(r"[^A-Za-z0-9]", "", face.family + face.style_name)
            return PdfFont(alias, str(face.path))

        logger.warning(
            f"Font '{font_name}' not available for PDF embedding, "
            f"falling back to Times Roman."
        )
        return PdfFont(_BASE14["Times New Roman"][style])

    def image_font(
        self,
        font_name: Optional[str],
        style: FontStyle,
        size: float,
    ) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Font for PNG/JPEG rendering."""
        pixel_size = max(1, round(size))
        built_in = built_in_name(font_name) if font_name else "Times New Roman"
        candidates = _RASTER_SUBSTITUTES[built_in] if built_in else (font_name,)

        for candidate in candidates:
            face = self.resolve(candidate, style)
            if face is None:
                continue
            try:
                return ImageFont.truetype(str(face.path), size=pixel_size, index=face.index)
            except OSError as e:
                logger.debug(f"Failed to open {face.path} at size {pixel_size}: {e}")

        logger.warning(f"Font '{font_name}' not found on this system, using the default font.")
        return ImageFont.load_default(size=pixel_size)

    # ── Listing ───────────────────────────────────────────────────────

    def unified_fonts(self) -> list[FontInfo]:
        """Built-in fonts first, then every system family, each sorted."""
        self._ensure_registered()
        fonts = [FontInfo(name=name, category=FontCategory.BUILT_IN) for name in BUILT_IN_FONTS]
        built_in_keys = {name.lower() for name in BUILT_IN_FONTS}
        fonts.extend(
            FontInfo(name=name, category=FontCategory.SYSTEM)
            for key, name in self._family_names.items()
            if key not in built_in_keys
        )
        fonts.sort()
        logger.debug(f"Retrieved {len(fonts)} fonts ({len(BUILT_IN_FONTS)} built-in)")
        return fonts

    def pdf_fonts(self) -> set[str]:
        """System families with at least one face usable in PDFs."""
        self._ensure_registered()
        return {
            self._family_names[key]
            for key, styles in self._families.items()
            if any(face.pdf_capable for face in styles.values())
        }

    def image_fonts(self) -> set[str]:
        """System families usable for PNG/JPEG rendering."""
        self._ensure_registered()
        return set(self._family_names.values())

    def is_system_font_available(self, font_name: str) -> bool:
        self._ensure_registered()
        return self._match_family(font_name) is not None

    def is_font_available(self, font_name: str, fmt: str) -> bool:
        """Exact (case-insensitive) availability check for an output format."""
        fmt = fmt.lower()
        if fmt == "pdf":
            names = self.pdf_fonts()
        elif fmt in ("png", "jpg", "jpeg"):
            names = self.image_fonts()
        else:
            return False
        names = set(names) | set(BUILT_IN_FONTS)
        return any(name.lower() == font_name.lower() for name in names)

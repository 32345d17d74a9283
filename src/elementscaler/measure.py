"""Text width estimates for SVG text boxes, backed by Pillow fonts."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import ImageFont

logger = logging.getLogger(__name__)

DEFAULT_FONT_FAMILY = "sans-serif"
GENERIC_FONT_FALLBACKS = {
    "sans-serif": ["Liberation Sans", "DejaVu Sans", "Helvetica", "Arial"],
    "sans serif": ["Liberation Sans", "DejaVu Sans", "Helvetica", "Arial"],
    "ms shell dlg 2": ["Tahoma", "Liberation Sans", "DejaVu Sans"],
    "serif": ["Liberation Serif", "DejaVu Serif", "Times New Roman", "Times"],
    "monospace": ["Liberation Mono", "DejaVu Sans Mono", "Courier New", "Courier"],
}

# Margin of a text document around its content, in points.
TEXT_MARGIN = 4.0


class TextMeasurer:
    """Caches Pillow fonts and exposes width/line height helpers."""

    FONT_DIRS = [
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("~/.local/share/fonts").expanduser(),
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/Library/Fonts"),
        Path("C:/Windows/Fonts"),
    ]

    def __init__(self) -> None:
        self._font_cache: Dict[Tuple[str, int], Optional[ImageFont.FreeTypeFont]] = {}
        self._font_paths: Dict[str, Optional[str]] = {}

    def font(self, size: float, family: Optional[str]) -> Optional[ImageFont.FreeTypeFont]:
        key_size = max(1, int(round(size)))
        family = (family or DEFAULT_FONT_FAMILY).strip()
        cache_key = (family.lower(), key_size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        candidates: List[str] = []
        for fam in GENERIC_FONT_FALLBACKS.get(family.lower(), [family]):
            resolved = self._locate_font(fam)
            if resolved:
                candidates.append(resolved)
        candidates.append("DejaVuSans.ttf")

        font: Optional[ImageFont.FreeTypeFont] = None
        for candidate in candidates:
            try:
                font = ImageFont.truetype(candidate, key_size)
                break
            except OSError:
                continue
        if font is None:
            logger.debug("no font file for %r, using width heuristic", family)

        self._font_cache[cache_key] = font
        return font

    def measure(self, text: str, size: float, family: Optional[str]) -> float:
        font = self.font(size, family)
        if font is None:
            return heuristic_width(text, size)
        return float(font.getlength(text))

    def line_height(self, size: float, family: Optional[str]) -> float:
        font = self.font(size, family)
        if font is None:
            return 1.2 * size
        ascent, descent = font.getmetrics()
        return float(ascent + descent)

    def _locate_font(self, family: str) -> Optional[str]:
        key = family.lower()
        if key in self._font_paths:
            return self._font_paths[key]
        normalized = re.sub(r"[^a-z0-9]+", "", family, flags=re.IGNORECASE).lower()
        best_match: Optional[Tuple[int, str]] = None
        if normalized:
            for directory in self.FONT_DIRS:
                if not directory.is_dir():
                    continue
                for path in directory.rglob("*.ttf"):
                    stem = re.sub(r"[^a-z0-9]+", "", path.stem, flags=re.IGNORECASE).lower()
                    if stem in (normalized, normalized + "regular"):
                        score = 0
                    elif stem.startswith(normalized):
                        score = 1
                    else:
                        continue
                    if best_match is None or score < best_match[0]:
                        best_match = (score, str(path))
        resolved = best_match[1] if best_match else None
        self._font_paths[key] = resolved
        return resolved


def heuristic_width(text: str, font_size: float) -> float:
    width = 0.0
    for ch in text:
        if ch.isspace():
            width += font_size * 0.33
        elif ch in "il.,;:|'":
            width += font_size * 0.3
        elif ch in "mwMW@#":
            width += font_size * 0.9
        else:
            width += font_size * 0.6
    return width


TEXT_MEASURER = TextMeasurer()

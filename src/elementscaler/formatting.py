"""Number formatting and tolerant parsing for element attributes."""
from __future__ import annotations

import math
import re
import uuid
from typing import Optional

_FACTOR_RE = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)$")

DECIMAL_SEPARATOR = "."


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (C ``round``)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def format_value(value: float, decimals: int) -> str:
    """Render ``value`` with at most ``decimals`` decimals.

    Tiny values snap to ``"0"`` (never ``"-0"``), values that drifted within a
    few units of the last decimal place from a whole number snap onto it, and
    trailing zeros are stripped. The output always uses ``.`` as separator.
    """
    if decimals <= 0:
        return str(round_half_away(value))

    epsilon = 0.1
    for _ in range(decimals):
        epsilon /= 10.0
    val = value
    if -epsilon <= val <= epsilon:
        val = 0.0
    for _ in range(decimals):
        val *= 10.0
    scaled = round_half_away(val)
    if scaled == 0:
        return "0"

    divider = 10 ** decimals
    if decimals > 1:
        rest = abs(scaled) % divider
        if scaled < 0:
            rest = -rest
        if 0 < abs(rest) < 5:
            scaled -= rest
        elif rest > divider - 5:
            scaled += divider - rest
        elif rest < -(divider - 5):
            scaled -= divider + rest

    text = f"{scaled / divider:.{decimals}f}"
    text = text.rstrip("0").rstrip(DECIMAL_SEPARATOR)
    if text in ("", "-", "-0"):
        return "0"
    return text


def parse_optional_number(text: Optional[str]) -> Optional[float]:
    """Parse a finite float; missing, malformed or non-finite input gives ``None``."""
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_number(text: Optional[str], default: float = 0.0) -> float:
    value = parse_optional_number(text)
    return default if value is None else value


def parse_int(text: Optional[str], default: int = 0) -> int:
    value = parse_optional_number(text)
    return default if value is None else round_half_away(value)


def parse_bool(text: Optional[str], default: bool = False) -> bool:
    if text is None or not text.strip():
        return default
    return text.strip()[0] in "1tTyY"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def parse_factor(text: str) -> float:
    """Parse a command-line number; a comma is accepted as decimal separator."""
    candidate = text.strip().replace(",", ".")
    if not _FACTOR_RE.match(candidate):
        raise ValueError(f'could not convert "{text}" to a number')
    return float(candidate)


def new_uuid() -> str:
    """A fresh identifier in the braced lower-case form used by element files."""
    return "{" + str(uuid.uuid4()) + "}"

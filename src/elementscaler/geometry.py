"""Quarter-turn rotation, angle helpers and the bounding-box accumulator."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from .formatting import round_half_away

FULL_TURN = 360


def rotate_point90(x: float, y: float) -> Tuple[float, float]:
    """Clockwise quarter turn around the origin (screen coordinates, y down)."""
    return -y, x


def rotate_box90(x: float, y: float, width: float, height: float) -> Tuple[float, float]:
    """New top-left corner of a box after a clockwise quarter turn.

    The caller swaps width and height.
    """
    return -y - height, x


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def normalize_angles(start: float, angle: float) -> Tuple[int, int]:
    """Whole-degree ``start`` in ``[0, 360)`` and a non-negative sweep.

    Both are reduced modulo 360 and a negative sweep is folded into the start
    angle. A non-zero whole number of turns stays a full turn.
    """
    istart = round_half_away(start) % FULL_TURN
    iangle = round_half_away(angle)
    if iangle:
        turns = abs(iangle) % FULL_TURN or FULL_TURN
        iangle = turns if iangle > 0 else -turns
    if iangle < 0:
        istart = (istart + iangle + FULL_TURN) % FULL_TURN
        iangle = -iangle
    return istart, iangle


@dataclass
class BoundingBox:
    """Min/max accumulator; starts as a zero-sized box at the origin."""

    xmin: float = 0.0
    xmax: float = 0.0
    ymin: float = 0.0
    ymax: float = 0.0

    def add_x(self, x: float) -> None:
        self.xmin = min(self.xmin, x)
        self.xmax = max(self.xmax, x)

    def add_y(self, y: float) -> None:
        self.ymin = min(self.ymin, y)
        self.ymax = max(self.ymax, y)

    def add(self, x: float, y: float) -> None:
        self.add_x(x)
        self.add_y(y)

    def add_box(self, other: "BoundingBox") -> None:
        self.add(other.xmin, other.ymin)
        self.add(other.xmax, other.ymax)

    def clear(self, x: float = 0.0, y: float = 0.0) -> None:
        self.xmin = self.xmax = x
        self.ymin = self.ymax = y

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def angle(self) -> float:
        """Angle of the diagonal in degrees."""
        return to_degrees(math.atan2(self.height, self.width))

    def __str__(self) -> str:
        return f"x:({self.xmin} ... {self.xmax}) | y:({self.ymin} ... {self.ymax})"

"""Element parts: parsing, ordered serialization, transforms and SVG output.

Every drawable tag of an element's ``description`` maps to one class in
``PRIMITIVES``. A primitive is read from an ``xml.etree`` node, transformed in
memory and written back with a fixed attribute order; attributes it does not
know about are carried along untouched.

Coordinates follow the screen convention of element files: x grows to the
right, y grows downwards, arc angles count counter-clockwise from 3 o'clock.
"""
from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Type

from .formatting import (
    format_bool,
    format_value,
    new_uuid,
    parse_bool,
    parse_int,
    parse_number,
    parse_optional_number,
    round_half_away,
)
from .geometry import (
    FULL_TURN,
    BoundingBox,
    normalize_angles,
    rotate_box90,
    rotate_point90,
    to_degrees,
    to_radians,
)
from .measure import TEXT_MARGIN, TEXT_MEASURER
from .styles import DEFAULT_STYLE, parse_style, style_to_svg

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

DEFAULT_FONT = "Sans Serif,9,-1,5,50,0,0,0,0,0"
DEFAULT_FONT_SIZE = 9.0
DEFAULT_TEXT_COLOR = "#000000"
EMPTY_TEXTS = ("", "_")
TERMINAL_REACH = 5.0
DEFAULT_END_LENGTH = 1.5
EDIT_STAMP = "edited with elementscaler"


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _points_text(points: Sequence[Tuple[float, float]], decimals: int) -> str:
    return " ".join(f"{format_value(x, decimals)},{format_value(y, decimals)}" for x, y in points)


def _fill_lines(elem: ET.Element, text: str) -> None:
    lines = text.split("\n")
    if len(lines) == 1:
        elem.text = text
        return
    for index, line in enumerate(lines):
        tspan = ET.SubElement(elem, _q("tspan"), {"x": "0", "dy": "0" if index == 0 else "1.2em"})
        tspan.text = line


@dataclass
class Primitive:
    """Common contract of every drawable part of an element."""

    TAG: ClassVar[str] = ""
    MANAGED: ClassVar[Tuple[str, ...]] = ()

    extra: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_node(cls, node: ET.Element) -> "Primitive":
        primitive = cls()
        primitive.parse(node)
        return primitive

    @property
    def tag(self) -> str:
        return self.TAG

    def parse(self, node: ET.Element) -> None:
        self.extra = {name: value for name, value in node.attrib.items() if not self._manages(name)}

    def _manages(self, name: str) -> bool:
        return name in self.MANAGED

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        """Managed attributes in their output order."""
        raise NotImplementedError

    def write(self, node: ET.Element, decimals: int) -> None:
        node.tag = self.tag
        node.attrib.clear()
        for name, value in self.attributes(decimals):
            node.set(name, value)
        for name, value in self.extra.items():
            node.set(name, value)

    def validate(self, min_length: float = 0.0) -> Optional[str]:
        """Reason why this primitive cannot be kept, or ``None``."""
        return None

    def flip(self) -> None:
        raise NotImplementedError

    def mirror(self) -> None:
        raise NotImplementedError

    def rotate90(self) -> None:
        raise NotImplementedError

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        raise NotImplementedError

    def extent(self, box: BoundingBox) -> None:
        raise NotImplementedError

    def to_svg(self, decimals: int) -> ET.Element:
        raise NotImplementedError


@dataclass
class _Styled(Primitive):
    style: str = DEFAULT_STYLE
    antialias: str = "false"

    def _parse_style(self, node: ET.Element) -> None:
        self.style = node.get("style") or DEFAULT_STYLE
        self.antialias = node.get("antialias") or "false"

    def _style_attributes(self) -> List[Tuple[str, str]]:
        return [("style", self.style), ("antialias", self.antialias)]

    def _apply_svg_style(self, elem: ET.Element) -> None:
        for name, value in style_to_svg(self.style).items():
            elem.set(name, value)


@dataclass
class _Box(_Styled):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def _parse_box(self, node: ET.Element) -> None:
        self.x = parse_number(node.get("x"))
        self.y = parse_number(node.get("y"))
        self.width = parse_number(node.get("width"))
        self.height = parse_number(node.get("height"))

    def _box_attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return [
            ("x", format_value(self.x, decimals)),
            ("y", format_value(self.y, decimals)),
            ("width", format_value(self.width, decimals)),
            ("height", format_value(self.height, decimals)),
        ]

    def flip(self) -> None:
        self.y = -self.y - self.height

    def mirror(self) -> None:
        self.x = -self.x - self.width

    def rotate90(self) -> None:
        self.x, self.y = rotate_box90(self.x, self.y, self.width, self.height)
        self.width, self.height = self.height, self.width

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        self.x *= fx
        self.y *= fy
        self.width *= fx
        self.height *= fy

    def extent(self, box: BoundingBox) -> None:
        box.add(self.x, self.y)
        box.add(self.x + self.width, self.y + self.height)


@dataclass
class Rect(_Box):
    TAG: ClassVar[str] = "rect"
    MANAGED: ClassVar[Tuple[str, ...]] = (
        "x", "y", "width", "height", "rx", "ry", "style", "antialias",
    )

    rx: float = 0.0
    ry: float = 0.0

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self._parse_style(node)
        self._parse_box(node)
        self.rx = parse_number(node.get("rx"))
        self.ry = parse_number(node.get("ry"))

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return (
            self._box_attributes(decimals)
            + [("rx", format_value(self.rx, decimals)), ("ry", format_value(self.ry, decimals))]
            + self._style_attributes()
        )

    def rotate90(self) -> None:
        super().rotate90()
        self.rx, self.ry = self.ry, self.rx

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        super().scale(fx, fy)
        self.rx *= fx
        self.ry *= fy

    def to_svg(self, decimals: int) -> ET.Element:
        elem = ET.Element(_q("rect"))
        for name, value in self._box_attributes(decimals):
            elem.set(name, value)
        if self.rx > 0:
            elem.set("rx", format_value(self.rx, decimals))
        if self.ry > 0:
            elem.set("ry", format_value(self.ry, decimals))
        self._apply_svg_style(elem)
        return elem


@dataclass
class Ellipse(_Box):
    """``ellipse`` and ``circle``; a circle keeps one diameter for both axes."""

    TAG: ClassVar[str] = "ellipse"
    MANAGED: ClassVar[Tuple[str, ...]] = (
        "x", "y", "width", "height", "diameter", "style", "antialias",
    )

    circle: bool = False

    @property
    def tag(self) -> str:
        return "circle" if self.circle else "ellipse"

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self._parse_style(node)
        self._parse_box(node)
        self.circle = node.tag == "circle"
        if self.circle:
            self.width = self.height = parse_number(node.get("diameter"))

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        if self.circle:
            attrs = [
                ("x", format_value(self.x, decimals)),
                ("y", format_value(self.y, decimals)),
                ("diameter", format_value(self.width, decimals)),
            ]
        else:
            attrs = self._box_attributes(decimals)
        return attrs + self._style_attributes()

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        if not self.circle:
            super().scale(fx, fy)
            return
        self.x *= fx
        self.y *= fy
        self.width = self.height = self.width * min(fx, fy)

    def to_svg(self, decimals: int) -> ET.Element:
        elem = ET.Element(
            _q("ellipse"),
            {
                "cx": format_value(self.x + self.width / 2.0, decimals),
                "cy": format_value(self.y + self.height / 2.0, decimals),
                "rx": format_value(self.width / 2.0, decimals),
                "ry": format_value(self.height / 2.0, decimals),
            },
        )
        self._apply_svg_style(elem)
        return elem


@dataclass
class Arc(_Box):
    """Elliptical arc inside the box ``x, y, width, height``.

    ``start`` and ``angle`` (the sweep) are kept normalized: whole degrees,
    ``0 <= start < 360`` and ``angle >= 0``. The extent is sampled along the
    arc in 1° steps, so it can be off by a fraction of a degree's chord.
    """

    TAG: ClassVar[str] = "arc"
    MANAGED: ClassVar[Tuple[str, ...]] = (
        "x", "y", "width", "height", "start", "angle", "style", "antialias",
    )

    start: float = 0.0
    angle: float = 0.0
    min_x: float = field(default=0.0, init=False, compare=False)
    max_x: float = field(default=0.0, init=False, compare=False)
    min_y: float = field(default=0.0, init=False, compare=False)
    max_y: float = field(default=0.0, init=False, compare=False)

    def __post_init__(self) -> None:
        self.normalize()

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self._parse_style(node)
        self._parse_box(node)
        self.start = parse_number(node.get("start"))
        self.angle = parse_number(node.get("angle"))
        self.normalize()

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return (
            self._box_attributes(decimals)
            + [("start", format_value(self.start, 0)), ("angle", format_value(self.angle, 0))]
            + self._style_attributes()
        )

    def normalize(self) -> None:
        self.start, self.angle = normalize_angles(self.start, self.angle)
        self.determine_min_max()

    def point_at(self, degrees: float) -> Tuple[float, float]:
        t = to_radians(degrees)
        return (
            self.x + (self.width / 2.0) * (1 + math.cos(t)),
            self.y + (self.height / 2.0) * (1 - math.sin(t)),
        )

    def determine_min_max(self) -> None:
        first = round_half_away(self.start)
        last = round_half_away(self.start + self.angle)
        xs: List[float] = []
        ys: List[float] = []
        for degrees in range(first, last + 1):
            px, py = self.point_at(degrees)
            xs.append(px)
            ys.append(py)
        self.min_x, self.max_x = min(xs), max(xs)
        self.min_y, self.max_y = min(ys), max(ys)

    def flip(self) -> None:
        super().flip()
        self.start = -self.start
        self.angle = -self.angle
        self.normalize()

    def mirror(self) -> None:
        super().mirror()
        self.start = 180 - self.start
        self.angle = -self.angle
        self.normalize()

    def rotate90(self) -> None:
        super().rotate90()
        self.start -= 90
        self.normalize()

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        super().scale(fx, fy)
        self.determine_min_max()

    def extent(self, box: BoundingBox) -> None:
        box.add(self.min_x, self.min_y)
        box.add(self.max_x, self.max_y)

    def to_svg(self, decimals: int) -> ET.Element:
        rx = format_value(self.width / 2.0, decimals)
        ry = format_value(self.height / 2.0, decimals)
        sx, sy = self.point_at(self.start)
        start = f"M {format_value(sx, decimals)} {format_value(sy, decimals)}"
        if self.angle >= FULL_TURN:
            mx, my = self.point_at(self.start + 180)
            d = (
                f"{start} A {rx} {ry} 0 0 0 {format_value(mx, decimals)} {format_value(my, decimals)}"
                f" A {rx} {ry} 0 0 0 {format_value(sx, decimals)} {format_value(sy, decimals)}"
            )
        else:
            ex, ey = self.point_at(self.start + self.angle)
            large_arc = "1" if self.angle > 180 else "0"
            d = f"{start} A {rx} {ry} 0 {large_arc} 0 {format_value(ex, decimals)} {format_value(ey, decimals)}"
        elem = ET.Element(_q("path"), {"d": d})
        self._apply_svg_style(elem)
        return elem


@dataclass
class Point:
    """One polygon vertex; ``None`` marks a coordinate missing in the file."""

    index: int
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return self.x is not None and self.y is not None


_POINT_ATTR = re.compile(r"^([xy])(\d+)$")


def _close(a: Point, b: Point, epsilon: float) -> bool:
    return abs(a.x - b.x) <= epsilon and abs(a.y - b.y) <= epsilon


@dataclass
class Polygon(_Styled):
    TAG: ClassVar[str] = "polygon"
    MANAGED: ClassVar[Tuple[str, ...]] = ("closed", "style", "antialias")

    points: List[Point] = field(default_factory=list)
    closed: bool = True

    def _manages(self, name: str) -> bool:
        return name in self.MANAGED or _POINT_ATTR.match(name) is not None

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self._parse_style(node)
        self.closed = parse_bool(node.get("closed"), True)
        by_index: Dict[int, Point] = {}
        for name, value in node.attrib.items():
            match = _POINT_ATTR.match(name)
            if match is None:
                continue
            index = int(match.group(2))
            point = by_index.setdefault(index, Point(index))
            setattr(point, match.group(1), parse_optional_number(value))
        self.points = [by_index[index] for index in sorted(by_index)]

    def add_point(self, x: float, y: float, index: Optional[int] = None) -> None:
        """Append a point, or set/insert the point with the given index."""
        if index is None:
            index = self.points[-1].index + 1 if self.points else 1
        for position, point in enumerate(self.points):
            if point.index == index:
                point.x, point.y = x, y
                return
            if point.index > index:
                self.points.insert(position, Point(index, x, y))
                return
        self.points.append(Point(index, x, y))

    def validate(self, min_length: float = 0.0) -> Optional[str]:
        if len(self.points) < 2:
            return f"needs at least 2 points, has {len(self.points)}"
        for expected, point in enumerate(self.points, 1):
            if point.index != expected:
                return f"point {point.index} found where point {expected} was expected"
            if not point.is_set:
                return f"coordinate missing for point {point.index}"
        return None

    def check_index(self) -> bool:
        return self.validate() is None

    def clean_up(self, epsilon: float) -> None:
        """Merge consecutive points closer than ``epsilon`` and renumber 1..N.

        A last point sitting on the first one is dropped and the polygon is
        marked closed instead.
        """
        points = self.points
        if not all(point.is_set for point in points):
            return
        for position in range(len(points) - 1, 0, -1):
            if _close(points[position], points[position - 1], epsilon):
                del points[position]
        if len(points) > 2 and _close(points[-1], points[0], epsilon):
            points.pop()
            self.closed = True
        for index, point in enumerate(points, 1):
            point.index = index

    def _set_points(self) -> List[Point]:
        return [point for point in self.points if point.is_set]

    def flip(self) -> None:
        for point in self.points:
            if point.y is not None:
                point.y = -point.y

    def mirror(self) -> None:
        for point in self.points:
            if point.x is not None:
                point.x = -point.x

    def rotate90(self) -> None:
        for point in self._set_points():
            point.x, point.y = rotate_point90(point.x, point.y)

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        for point in self.points:
            if point.x is not None:
                point.x *= fx
            if point.y is not None:
                point.y *= fy

    def extent(self, box: BoundingBox) -> None:
        for point in self._set_points():
            box.add(point.x, point.y)

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        attrs: List[Tuple[str, str]] = []
        for point in self.points:
            attrs.append((f"x{point.index}", format_value(point.x, decimals)))
            attrs.append((f"y{point.index}", format_value(point.y, decimals)))
        if not self.closed:
            attrs.append(("closed", "false"))
        return attrs + self._style_attributes()

    def to_svg(self, decimals: int) -> ET.Element:
        elem = ET.Element(
            _q("polygon" if self.closed else "polyline"),
            {"points": _points_text([(p.x, p.y) for p in self.points], decimals)},
        )
        self._apply_svg_style(elem)
        return elem


def _end_inset(kind: str, size: float, stroke_width: float) -> float:
    if kind == "simple":
        return stroke_width / 2.0
    if kind in ("triangle", "circle", "diamond"):
        return size + stroke_width / 2.0
    return 0.0


def _end_shape(kind: str, size: float, decimals: int) -> Optional[ET.Element]:
    # Drawn with the tip at the origin and the body along +x.
    half = size / 2.0
    if kind == "simple":
        return ET.Element(
            _q("polyline"),
            {"points": _points_text([(size, -half), (0, 0), (size, half)], decimals), "fill": "none"},
        )
    if kind == "triangle":
        return ET.Element(
            _q("polygon"), {"points": _points_text([(0, 0), (size, -half), (size, half)], decimals)}
        )
    if kind == "circle":
        return ET.Element(
            _q("circle"),
            {
                "cx": format_value(half, decimals),
                "cy": "0",
                "r": format_value(half, decimals),
            },
        )
    if kind == "diamond":
        return ET.Element(
            _q("polygon"),
            {"points": _points_text([(0, 0), (half, -half), (size, 0), (half, half)], decimals)},
        )
    return None


@dataclass
class Line(Polygon):
    """Two-point polygon with optional decorations at both ends."""

    TAG: ClassVar[str] = "line"
    MANAGED: ClassVar[Tuple[str, ...]] = (
        "x1", "y1", "x2", "y2", "end1", "end2", "length1", "length2", "style", "antialias",
    )

    closed: bool = False
    end1: str = "none"
    end2: str = "none"
    length1: float = DEFAULT_END_LENGTH
    length2: float = DEFAULT_END_LENGTH

    def _manages(self, name: str) -> bool:
        return name in self.MANAGED

    def parse(self, node: ET.Element) -> None:
        super(Polygon, self).parse(node)
        self._parse_style(node)
        self.closed = False
        self.end1 = node.get("end1") or "none"
        self.end2 = node.get("end2") or "none"
        self.length1 = parse_number(node.get("length1"), DEFAULT_END_LENGTH)
        self.length2 = parse_number(node.get("length2"), DEFAULT_END_LENGTH)
        self.points = [
            Point(1, parse_optional_number(node.get("x1")), parse_optional_number(node.get("y1"))),
            Point(2, parse_optional_number(node.get("x2")), parse_optional_number(node.get("y2"))),
        ]

    @property
    def length(self) -> float:
        first, second = self.points
        return math.hypot(second.x - first.x, second.y - first.y)

    @property
    def angle(self) -> float:
        first, second = self.points
        return to_degrees(math.atan2(second.y - first.y, second.x - first.x))

    def validate(self, min_length: float = 0.0) -> Optional[str]:
        problem = super().validate(min_length)
        if problem is not None:
            return problem
        if self.length < min_length:
            return f"length {self.length:g} is below {min_length:g}"
        return None

    def clean_up(self, epsilon: float) -> None:
        # both end points are kept; a too short line fails validation instead
        return None

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        super().scale(fx, fy)
        self.length1 *= min(fx, fy)
        self.length2 *= min(fx, fy)

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        first, second = self.points
        return [
            ("x1", format_value(first.x, decimals)),
            ("y1", format_value(first.y, decimals)),
            ("x2", format_value(second.x, decimals)),
            ("y2", format_value(second.y, decimals)),
            ("end1", self.end1),
            ("length1", format_value(self.length1, decimals)),
            ("end2", self.end2),
            ("length2", format_value(self.length2, decimals)),
        ] + self._style_attributes()

    def to_svg(self, decimals: int) -> ET.Element:
        first = self.points[0]
        length = self.length
        stroke_width = parse_style(self.style).stroke_width
        group = ET.Element(
            _q("g"),
            {
                "transform": (
                    f"translate({format_value(first.x, decimals)}, {format_value(first.y, decimals)})"
                    f" rotate({format_value(self.angle, decimals)})"
                )
            },
        )
        self._apply_svg_style(group)
        ET.SubElement(
            group,
            _q("line"),
            {
                "x1": format_value(_end_inset(self.end1, self.length1, stroke_width), decimals),
                "y1": "0",
                "x2": format_value(length - _end_inset(self.end2, self.length2, stroke_width), decimals),
                "y2": "0",
            },
        )
        shape = _end_shape(self.end1, self.length1, decimals)
        if shape is not None:
            group.append(shape)
        shape = _end_shape(self.end2, self.length2, decimals)
        if shape is not None:
            shape.set("transform", f"translate({format_value(length, decimals)}, 0) rotate(180)")
            group.append(shape)
        return group


@dataclass
class Text(Primitive):
    """Static text anchored at its baseline start."""

    TAG: ClassVar[str] = "text"
    MANAGED: ClassVar[Tuple[str, ...]] = ("x", "y", "size", "rotation", "text", "font", "color")

    x: float = 0.0
    y: float = 0.0
    size: float = DEFAULT_FONT_SIZE
    rotation: float = 0.0
    color: str = DEFAULT_TEXT_COLOR
    text: str = "_"
    font: str = DEFAULT_FONT
    legacy_font: bool = field(default=False, compare=False)

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self._parse_position(node)
        self.text = node.get("text", "_")
        self.color = node.get("color") or DEFAULT_TEXT_COLOR
        self._parse_font(node.get("font"), node.get("size"))

    def _parse_position(self, node: ET.Element) -> None:
        self.x = parse_number(node.get("x"))
        self.y = parse_number(node.get("y"))
        self.rotation = parse_number(node.get("rotation"))

    def _parse_font(self, font: Optional[str], legacy_size: Optional[str]) -> None:
        if font:
            self.font = font
            parts = font.split(",")
            self.size = parse_number(parts[1], DEFAULT_FONT_SIZE) if len(parts) > 1 else DEFAULT_FONT_SIZE
            self.legacy_font = False
            return
        # older files only carry a plain "size" attribute
        self.font = DEFAULT_FONT
        self.size = parse_number(legacy_size, DEFAULT_FONT_SIZE)
        self.legacy_font = True
        self._rebuild_font()
        logger.debug("synthesized font %r for <%s> without font descriptor", self.font, self.TAG)

    def _rebuild_font(self) -> None:
        parts = self.font.split(",")
        if len(parts) > 1:
            parts[1] = str(self.font_size)
        else:
            parts.append(str(self.font_size))
        self.font = ",".join(parts)

    @property
    def font_family(self) -> str:
        return self.font.split(",")[0] or "Sans Serif"

    @property
    def font_size(self) -> int:
        return max(1, round_half_away(self.size))

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return [
            ("x", format_value(self.x, decimals)),
            ("y", format_value(self.y, decimals)),
            ("text", self.text),
            ("font", self.font),
            ("rotation", format_value(self.rotation, 0)),
            ("color", self.color),
        ]

    def flip(self) -> None:
        self.y = -self.y

    def mirror(self) -> None:
        self.x = -self.x

    def rotate90(self) -> None:
        self.x, self.y = rotate_point90(self.x, self.y)
        self.rotation = (self.rotation + 90) % FULL_TURN

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        self.x *= fx
        self.y *= fy
        self.size *= min(fx, fy)
        self.size = float(self.font_size)
        self._rebuild_font()

    def extent(self, box: BoundingBox) -> None:
        # no glyph metrics here: a square of the font size around the anchor
        if self.text in EMPTY_TEXTS:
            return
        reach = self.font_size
        box.add(self.x - reach, self.y - reach)
        box.add(self.x + reach, self.y + reach)

    def to_svg(self, decimals: int) -> ET.Element:
        transform = f"translate({format_value(self.x, decimals)}, {format_value(self.y, decimals)})"
        if self.rotation:
            transform += f" rotate({format_value(self.rotation, 0)})"
        elem = ET.Element(
            _q("text"),
            {
                "transform": transform,
                "font-family": self.font_family,
                "font-size": f"{format_value(self.size, decimals)}pt",
                "fill": self.color,
            },
        )
        _fill_lines(elem, self.text)
        return elem


_TEXT_ANCHORS = {"AlignHCenter": "middle", "AlignRight": "end"}


@dataclass
class DynamicText(Text):
    """Text box whose content may come from element information.

    Also reads the legacy ``input`` tag, which is written back as
    ``dynamic_text``.
    """

    TAG: ClassVar[str] = "dynamic_text"
    MANAGED: ClassVar[Tuple[str, ...]] = (
        "x", "y", "z", "rotation", "uuid", "font", "Halignment", "Valignment", "frame",
        "text_width", "keep_visual_rotation", "text_from",
        "size", "text", "tagg", "rotate", "color",
    )
    CHILDREN: ClassVar[Tuple[str, ...]] = ("text", "info_name", "composite_text", "color")

    z: float = 0.0
    uuid: str = ""
    halignment: str = "AlignLeft"
    valignment: str = "AlignTop"
    frame: bool = False
    text_width: float = -1.0
    keep_visual_rotation: bool = False
    text_from: str = "UserText"
    info_name: str = ""
    composite_text: str = ""
    legacy_input: bool = field(default=False, compare=False)

    def parse(self, node: ET.Element) -> None:
        super(Text, self).parse(node)
        self.legacy_input = node.tag == "input"
        self._parse_position(node)
        self.z = parse_number(node.get("z"))
        self.uuid = node.get("uuid", "")
        self.halignment = node.get("Halignment") or "AlignLeft"
        self.valignment = node.get("Valignment") or "AlignTop"
        self.frame = parse_bool(node.get("frame"))
        self.text_width = parse_number(node.get("text_width"), -1.0)
        self.keep_visual_rotation = parse_bool(node.get("keep_visual_rotation"))
        self.text_from = node.get("text_from") or "UserText"
        self.text = node.get("text", "_")
        self.color = node.get("color") or DEFAULT_TEXT_COLOR

        child = node.find("text")
        if child is not None:
            self.text = child.text or ""
        child = node.find("color")
        if child is not None and child.text:
            self.color = child.text.strip()
        child = node.find("info_name")
        if child is not None:
            self.info_name = child.text or ""
        child = node.find("composite_text")
        if child is not None:
            self.composite_text = child.text or ""

        self._parse_font(node.get("font"), node.get("size"))
        if self.legacy_input:
            if node.get("tagg") == "label":
                self.text_from = "ElementInfo"
                self.info_name = "label"
            logger.info("upgrading legacy <input> at (%s, %s) to <dynamic_text>", self.x, self.y)
        if not self.uuid:
            self.renew_uuid()

    def renew_uuid(self) -> None:
        self.uuid = new_uuid()

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return [
            ("x", format_value(self.x, decimals)),
            ("y", format_value(self.y, decimals)),
            ("z", format_value(self.z, 0)),
            ("rotation", format_value(self.rotation, 0)),
            ("uuid", self.uuid),
            ("font", self.font),
            ("Halignment", self.halignment),
            ("Valignment", self.valignment),
            ("frame", format_bool(self.frame)),
            ("text_width", format_value(self.text_width, decimals)),
            ("keep_visual_rotation", format_bool(self.keep_visual_rotation)),
            ("text_from", self.text_from),
        ]

    def write(self, node: ET.Element, decimals: int) -> None:
        super().write(node, decimals)
        for child in list(node):
            if child.tag in self.CHILDREN:
                node.remove(child)
        ET.SubElement(node, "text").text = self.text
        if self.text_from == "ElementInfo" or self.info_name:
            ET.SubElement(node, "info_name").text = self.info_name
        if self.text_from == "CompositeText" or self.composite_text:
            ET.SubElement(node, "composite_text").text = self.composite_text
        ET.SubElement(node, "color").text = self.color

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        super().scale(fx, fy)
        if self.text_width > 0:
            self.text_width *= fx

    def box_width(self) -> float:
        if self.text_width > 0:
            return self.text_width
        return max(TEXT_MEASURER.measure(line, self.size, self.font_family) for line in self.text.split("\n"))

    def to_svg(self, decimals: int) -> ET.Element:
        # offset of the first baseline inside the text box
        offset_x = self.size / 8.0 + 4.05 - 0.5
        offset_y = 7.0 / 5.0 * self.size + 26.0 / 5.0 - 0.5
        anchor = _TEXT_ANCHORS.get(self.halignment)
        width = self.box_width() if (anchor or self.frame) else 0.0
        if anchor == "middle":
            offset_x += width / 2.0
        elif anchor == "end":
            offset_x += width

        transform = (
            f"translate({format_value(self.x + offset_x, 1)}, {format_value(self.y + offset_y, 1)})"
        )
        if self.rotation:
            transform += (
                f" rotate({format_value(self.rotation, 0)}"
                f" {format_value(-offset_x, 1)} {format_value(-offset_y, 1)})"
            )
        text = ET.Element(
            _q("text"),
            {
                "transform": transform,
                "font-family": self.font_family,
                "font-size": f"{format_value(self.size, decimals)}pt",
                "fill": self.color,
            },
        )
        if anchor:
            text.set("text-anchor", anchor)
        _fill_lines(text, self.text)
        if not self.frame:
            return text

        lines = len(self.text.split("\n"))
        height = lines * TEXT_MEASURER.line_height(self.size, self.font_family)
        group = ET.Element(_q("g"))
        frame = ET.SubElement(
            group,
            _q("rect"),
            {
                "x": format_value(self.x, decimals),
                "y": format_value(self.y, decimals),
                "width": format_value(width + 2 * TEXT_MARGIN, decimals),
                "height": format_value(height + 2 * TEXT_MARGIN, decimals),
                "fill": "none",
                "stroke": self.color,
                "stroke-width": "1",
            },
        )
        if self.rotation:
            frame.set(
                "transform",
                f"rotate({format_value(self.rotation, 0)} {format_value(self.x, decimals)} {format_value(self.y, decimals)})",
            )
        group.append(text)
        return group


ORIENTATIONS = ("n", "e", "s", "w")
_ROTATED = {"n": "e", "e": "s", "s": "w", "w": "n"}
_FLIPPED = {"n": "s", "s": "n"}
_MIRRORED = {"e": "w", "w": "e"}
_SVG_ROTATION = {"n": 0, "e": 90, "s": 180, "w": 270}


@dataclass
class Terminal(Primitive):
    """Connection point; always written on whole-number coordinates."""

    TAG: ClassVar[str] = "terminal"
    MANAGED: ClassVar[Tuple[str, ...]] = ("x", "y", "orientation", "type", "name", "uuid")

    x: float = 0.0
    y: float = 0.0
    orientation: str = "n"
    terminal_type: str = "Generic"
    name: str = ""
    uuid: str = ""

    def parse(self, node: ET.Element) -> None:
        super().parse(node)
        self.x = parse_number(node.get("x"))
        self.y = parse_number(node.get("y"))
        orientation = (node.get("orientation") or "n").strip().lower()
        if orientation not in ORIENTATIONS:
            logger.warning("terminal with unknown orientation %r treated as 'n'", orientation)
            orientation = "n"
        self.orientation = orientation
        self.terminal_type = node.get("type") or "Generic"
        self.name = node.get("name", "")
        self.uuid = node.get("uuid", "")
        if not self.uuid:
            self.renew_uuid()

    def renew_uuid(self) -> None:
        self.uuid = new_uuid()

    def attributes(self, decimals: int) -> List[Tuple[str, str]]:
        return [
            ("x", format_value(self.x, 0)),
            ("y", format_value(self.y, 0)),
            ("orientation", self.orientation),
            ("type", self.terminal_type),
            ("name", self.name),
            ("uuid", self.uuid),
        ]

    def flip(self) -> None:
        self.y = -self.y
        self.orientation = _FLIPPED.get(self.orientation, self.orientation)

    def mirror(self) -> None:
        self.x = -self.x
        self.orientation = _MIRRORED.get(self.orientation, self.orientation)

    def rotate90(self) -> None:
        self.x, self.y = rotate_point90(self.x, self.y)
        self.orientation = _ROTATED[self.orientation]

    def scale(self, fx: float = 1.0, fy: float = 1.0) -> None:
        self.x *= fx
        self.y *= fy

    def extent(self, box: BoundingBox) -> None:
        box.add(self.x - TERMINAL_REACH, self.y - TERMINAL_REACH)
        box.add(self.x + TERMINAL_REACH, self.y + TERMINAL_REACH)

    def to_svg(self, decimals: int) -> ET.Element:
        x = format_value(self.x, 0)
        y = format_value(self.y, 0)
        elem = ET.Element(_q("use"), {f"{{{XLINK_NS}}}href": "#terminal", "x": x, "y": y})
        degrees = _SVG_ROTATION[self.orientation]
        if degrees:
            elem.set("transform", f"rotate({degrees} {x} {y})")
        return elem


PRIMITIVES: Dict[str, Type[Primitive]] = {
    "rect": Rect,
    "ellipse": Ellipse,
    "circle": Ellipse,
    "arc": Arc,
    "polygon": Polygon,
    "line": Line,
    "text": Text,
    "dynamic_text": DynamicText,
    "input": DynamicText,
    "terminal": Terminal,
}


def primitive_for(node: ET.Element) -> Optional[Primitive]:
    """Parse ``node`` into its primitive, ``None`` for tags without geometry."""
    cls = PRIMITIVES.get(node.tag)
    if cls is None:
        return None
    return cls.from_node(node)


@dataclass
class DefinitionHeader:
    """Attributes of the ``definition`` root: size and hotspot of the element."""

    MANAGED: ClassVar[Tuple[str, ...]] = (
        "version", "link_type", "type", "width", "height", "hotspot_x", "hotspot_y",
    )

    version: str = "0.100"
    link_type: str = "thumbnail"
    element_type: str = "element"
    width: int = 10
    height: int = 12
    hotspot_x: int = 5
    hotspot_y: int = 6
    extra: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_node(cls, node: ET.Element) -> "DefinitionHeader":
        header = cls()
        header.parse(node)
        return header

    def parse(self, node: ET.Element) -> None:
        self.version = node.get("version") or self.version
        self.link_type = node.get("link_type") or self.link_type
        self.element_type = node.get("type") or self.element_type
        self.width = parse_int(node.get("width"), self.width)
        self.height = parse_int(node.get("height"), self.height)
        self.hotspot_x = parse_int(node.get("hotspot_x"), self.hotspot_x)
        self.hotspot_y = parse_int(node.get("hotspot_y"), self.hotspot_y)
        self.extra = {k: v for k, v in node.attrib.items() if k not in self.MANAGED}

    def recalc(self, box: BoundingBox) -> None:
        """Size rounded up to the next multiple of 10 plus margin, hotspot from the box."""
        w = round_half_away(box.width)
        h = round_half_away(box.height)
        upwidth = (w // 10) * 10 + 10
        if w % 10 > 6:
            upwidth += 10
        upheight = (h // 10) * 10 + 10
        if h % 10 > 6:
            upheight += 10
        xmargin = upwidth - w
        ymargin = upheight - h
        self.width = upwidth
        self.height = upheight
        self.hotspot_x = -round_half_away(box.xmin - xmargin // 2)
        self.hotspot_y = -round_half_away(box.ymin - ymargin // 2)

    def attributes(self) -> List[Tuple[str, str]]:
        return [
            ("version", self.version),
            ("link_type", self.link_type),
            ("type", self.element_type),
            ("width", str(self.width)),
            ("height", str(self.height)),
            ("hotspot_x", str(self.hotspot_x)),
            ("hotspot_y", str(self.hotspot_y)),
        ]

    def write(self, node: ET.Element) -> None:
        node.attrib.clear()
        for name, value in self.attributes():
            node.set(name, value)
        for name, value in self.extra.items():
            node.set(name, value)


@dataclass
class NamesList:
    """Display names per language code; a repeated language keeps the last name."""

    names: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_node(cls, node: ET.Element) -> "NamesList":
        names = cls()
        for child in node.findall("name"):
            names.set(child.get("lang", ""), child.text or "")
        return names

    def set(self, lang: str, text: str) -> None:
        if lang in self.names:
            logger.debug("name for language %r given twice, keeping the last one", lang)
        self.names[lang] = text

    def write(self, node: ET.Element) -> None:
        for child in node.findall("name"):
            node.remove(child)
        for lang in sorted(self.names):
            ET.SubElement(node, "name", {"lang": lang}).text = self.names[lang]


@dataclass
class InfoEntry:
    name: str
    value: str = ""
    show: bool = True


@dataclass
class ElementInfo:
    entries: List[InfoEntry] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: ET.Element) -> "ElementInfo":
        info = cls()
        for child in node.findall("elementInformation"):
            info.entries.append(
                InfoEntry(child.get("name", ""), child.text or "", parse_bool(child.get("show"), True))
            )
        return info

    def write(self, node: ET.Element) -> None:
        for child in node.findall("elementInformation"):
            node.remove(child)
        for entry in sorted(self.entries, key=lambda item: item.name):
            child = ET.SubElement(
                node, "elementInformation", {"name": entry.name, "show": "1" if entry.show else "0"}
            )
            child.text = entry.value


@dataclass
class AuthorInfo:
    """Free text of the ``informations`` block."""

    text: str = ""

    @classmethod
    def from_node(cls, node: ET.Element) -> "AuthorInfo":
        return cls(node.text or "")

    def stamp(self) -> bool:
        if EDIT_STAMP in self.text:
            return False
        body = self.text.rstrip()
        self.text = f"{body}\n{EDIT_STAMP}" if body else EDIT_STAMP
        return True

    def write(self, node: ET.Element) -> None:
        node.text = self.text

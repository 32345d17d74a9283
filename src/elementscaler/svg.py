"""SVG rendering of a (usually already transformed) element."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List

from .elements import SVG_NS, DefinitionHeader, Primitive, Terminal, primitive_for

logger = logging.getLogger(__name__)


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _terminal_defs(svg: ET.Element) -> None:
    defs = ET.SubElement(svg, _q("defs"))
    marker = ET.SubElement(
        defs, _q("g"), {"id": "terminal", "stroke-width": "1", "stroke-linecap": "square"}
    )
    ET.SubElement(marker, _q("line"), {"x1": "0", "y1": "0", "x2": "0", "y2": "4", "stroke": "#0000FF"})
    ET.SubElement(marker, _q("line"), {"x1": "0", "y1": "1", "x2": "0", "y2": "4", "stroke": "#FF0000"})


def _pretty_xml(element: ET.Element) -> str:
    ET.indent(element, space="  ")
    return ET.tostring(element, encoding="unicode")


def collect_primitives(root: ET.Element, decimals: int = 2) -> List[Primitive]:
    description = root.find("description")
    if description is None:
        return []
    min_length = 10.0 ** -decimals
    primitives: List[Primitive] = []
    for node in description:
        primitive = primitive_for(node)
        if primitive is None:
            logger.debug("no SVG rendering for <%s>", node.tag)
            continue
        problem = primitive.validate(min_length)
        if problem is not None:
            logger.warning("skipping <%s> in SVG output: %s", node.tag, problem)
            continue
        primitives.append(primitive)
    return primitives


def to_svg(root: ET.Element, decimals: int = 2) -> str:
    """Render an element document as a standalone SVG string.

    Size and origin come from the ``definition`` header: the drawing is moved
    by the hotspot so that element coordinates land inside the canvas.
    """
    header = DefinitionHeader.from_node(root)
    primitives = collect_primitives(root, decimals)

    svg = ET.Element(
        _q("svg"),
        {"width": str(header.width), "height": str(header.height), "version": "1.1"},
    )
    if any(isinstance(primitive, Terminal) for primitive in primitives):
        _terminal_defs(svg)
    group = ET.SubElement(
        svg,
        _q("g"),
        {
            "transform": f"translate({header.hotspot_x},{header.hotspot_y})",
            "stroke-linecap": "square",
        },
    )
    for primitive in primitives:
        group.append(primitive.to_svg(decimals))
    return _pretty_xml(svg)

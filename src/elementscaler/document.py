"""Transform pipeline for element (``definition``) and directory documents."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .elements import (
    AuthorInfo,
    DefinitionHeader,
    DynamicText,
    ElementInfo,
    NamesList,
    Polygon,
    Primitive,
    Terminal,
    primitive_for,
)
from .formatting import new_uuid
from .geometry import BoundingBox

logger = logging.getLogger(__name__)

MIN_SCALE = 0.01
ELEMENT_ROOT = "definition"
DIRECTORY_ROOT = "qet-directory"


class ElementFormatError(ValueError):
    """Raised when a document is neither an element nor a directory definition."""


@dataclass(frozen=True)
class TransformConfig:
    """What to do with one document.

    ``flip_horizontal`` negates y (upside down), ``flip_vertical`` negates x
    (left/right), matching the command-line switches of the same name.
    """

    scale_x: float = 1.0
    scale_y: float = 1.0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    rotate90: bool = False
    remove_terminals: bool = False
    decimals: int = 2

    def __post_init__(self) -> None:
        if self.scale_x < MIN_SCALE or self.scale_y < MIN_SCALE:
            raise ValueError(
                f"scale factors must be at least {MIN_SCALE}, got {self.scale_x} and {self.scale_y}"
            )
        if self.decimals < 0:
            raise ValueError(f"decimals must not be negative, got {self.decimals}")

    @property
    def min_line_length(self) -> float:
        return 10.0 ** -self.decimals


@dataclass
class ProcessReport:
    box: BoundingBox = field(default_factory=BoundingBox)
    header: Optional[DefinitionHeader] = None
    dropped: List[str] = field(default_factory=list)
    renewed_terminal_uuids: bool = False
    renewed_dynamic_text_uuids: bool = False


def parse_document(text: str) -> ET.Element:
    return ET.fromstring(text)


def dump_xml(root: ET.Element) -> str:
    ET.indent(root, space="    ")
    return ET.tostring(root, encoding="unicode")


def transform(primitive: Primitive, config: TransformConfig) -> None:
    """Apply flip, mirror, quarter turn and scale, always in that order."""
    if config.flip_horizontal:
        primitive.flip()
    if config.flip_vertical:
        primitive.mirror()
    if config.rotate90:
        primitive.rotate90()
    if config.scale_x != 1.0 or config.scale_y != 1.0:
        primitive.scale(config.scale_x, config.scale_y)


def process_element(root: ET.Element, config: TransformConfig) -> ProcessReport:
    """Transform an element in place and return what happened to it."""
    if root.tag != ELEMENT_ROOT:
        raise ElementFormatError(f"expected <{ELEMENT_ROOT}> root, found <{root.tag}>")
    description = root.find("description")
    if description is None:
        raise ElementFormatError("element has no <description> block")

    report = ProcessReport()
    header = DefinitionHeader.from_node(root)
    _renew_element_uuid(root)

    if config.remove_terminals:
        header.link_type = "thumbnail"
        removed = description.findall("terminal")
        for node in removed:
            description.remove(node)
        logger.info("removed %d terminal(s)", len(removed))

    kept: List[ET.Element] = []
    terminals: List[Tuple[ET.Element, Terminal]] = []
    texts: List[Tuple[ET.Element, DynamicText]] = []
    for node in list(description):
        primitive = primitive_for(node)
        if primitive is None:
            kept.append(node)
            continue
        # index gaps and missing points are judged as read, before clean_up renumbers
        problem = primitive.validate()
        if problem is None:
            transform(primitive, config)
            if isinstance(primitive, Polygon):
                primitive.clean_up(config.min_line_length)
            problem = primitive.validate(config.min_line_length)
        if problem is not None:
            logger.warning("dropping <%s>: %s", node.tag, problem)
            report.dropped.append(node.tag)
            continue
        primitive.write(node, config.decimals)
        primitive.extent(report.box)
        kept.append(node)
        if isinstance(primitive, Terminal):
            terminals.append((node, primitive))
        elif isinstance(primitive, DynamicText):
            texts.append((node, primitive))
    description[:] = kept

    _normalize_metadata(root, description)
    report.renewed_terminal_uuids = _reconcile_uuids(terminals, "terminal")
    report.renewed_dynamic_text_uuids = _reconcile_uuids(texts, "dynamic_text")

    header.recalc(report.box)
    header.write(root)
    report.header = header
    logger.debug("bounding box %s, size %dx%d", report.box, header.width, header.height)
    return report


def process_directory(root: ET.Element) -> Optional[NamesList]:
    """A directory definition only carries names; sort them."""
    node = root.find("names")
    if node is None:
        return None
    names = NamesList.from_node(node)
    names.write(node)
    return names


def process_document(root: ET.Element, config: TransformConfig) -> Optional[ProcessReport]:
    if root.tag == ELEMENT_ROOT:
        return process_element(root, config)
    if root.tag == DIRECTORY_ROOT:
        process_directory(root)
        return None
    raise ElementFormatError(
        f"unsupported document root <{root.tag}>, expected <{ELEMENT_ROOT}> or <{DIRECTORY_ROOT}>"
    )


def _renew_element_uuid(root: ET.Element) -> None:
    node = root.find("uuid")
    if node is None:
        node = ET.Element("uuid")
        root.insert(0, node)
    node.set("uuid", new_uuid())


def _normalize_metadata(root: ET.Element, description: ET.Element) -> None:
    node = root.find("names")
    if node is not None:
        NamesList.from_node(node).write(node)
    node = root.find("elementInformations")
    if node is not None:
        ElementInfo.from_node(node).write(node)
    node = root.find("informations")
    if node is None:
        node = ET.Element("informations")
        root.insert(list(root).index(description), node)
    author = AuthorInfo.from_node(node)
    if author.stamp():
        author.write(node)


def _reconcile_uuids(items: List[Tuple[ET.Element, Primitive]], kind: str) -> bool:
    """Give every item a fresh uuid when any two of them share one."""
    seen = set()
    duplicated = False
    for _node, primitive in items:
        if primitive.uuid in seen:
            duplicated = True
            break
        seen.add(primitive.uuid)
    if not duplicated:
        return False
    logger.warning("duplicate %s uuids found, renewing all %d of them", kind, len(items))
    for node, primitive in items:
        primitive.renew_uuid()
        node.set("uuid", primitive.uuid)
    return True

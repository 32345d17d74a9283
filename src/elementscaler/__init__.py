"""Public API for elementscaler."""
from .document import (
    ElementFormatError,
    ProcessReport,
    TransformConfig,
    dump_xml,
    parse_document,
    process_directory,
    process_document,
    process_element,
)
from .elements import PRIMITIVES, primitive_for
from .formatting import format_value
from .geometry import BoundingBox
from .svg import to_svg

__all__ = [
    "BoundingBox",
    "ElementFormatError",
    "PRIMITIVES",
    "ProcessReport",
    "TransformConfig",
    "dump_xml",
    "format_value",
    "parse_document",
    "primitive_for",
    "process_directory",
    "process_document",
    "process_element",
    "to_svg",
]

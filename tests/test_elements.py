from __future__ import annotations

import sys
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from elementscaler.elements import (
    EDIT_STAMP,
    Arc,
    AuthorInfo,
    DefinitionHeader,
    DynamicText,
    Ellipse,
    ElementInfo,
    Line,
    NamesList,
    Polygon,
    Rect,
    Terminal,
    Text,
    primitive_for,
)
from elementscaler.geometry import BoundingBox

UUID_PATTERN = r"^\{[0-9a-f-]{36}\}$"


def _parse(xml: str):
    return primitive_for(ET.fromstring(xml))


def _written(primitive, tag: str, decimals: int = 2) -> ET.Element:
    node = ET.Element(tag)
    primitive.write(node, decimals)
    return node


class RectTests(unittest.TestCase):
    XML = '<rect x="10" y="10" width="20" height="10" rx="2" ry="1" style="line-style:normal" antialias="false"/>'

    def test_scale_per_axis(self) -> None:
        rect = _parse(self.XML)
        rect.scale(2, 0.5)
        node = _written(rect, "rect")
        self.assertEqual(
            (node.get("x"), node.get("y"), node.get("width"), node.get("height")),
            ("20", "5", "40", "5"),
        )
        self.assertEqual((node.get("rx"), node.get("ry")), ("4", "0.5"))

    def test_attribute_order_and_passthrough(self) -> None:
        rect = _parse('<rect foo="bar" antialias="true" height="4" width="3" y="2" x="1"/>')
        node = _written(rect, "rect")
        self.assertEqual(
            list(node.attrib),
            ["x", "y", "width", "height", "rx", "ry", "style", "antialias", "foo"],
        )
        self.assertEqual(node.get("foo"), "bar")
        self.assertEqual(node.get("antialias"), "true")

    def test_flip_and_mirror(self) -> None:
        rect = _parse(self.XML)
        rect.flip()
        self.assertEqual((rect.x, rect.y), (10, -20))
        rect.mirror()
        self.assertEqual((rect.x, rect.y), (-30, -20))

    def test_flip_twice_restores(self) -> None:
        rect = _parse(self.XML)
        original = _parse(self.XML)
        rect.flip()
        rect.flip()
        rect.mirror()
        rect.mirror()
        self.assertEqual(rect, original)

    def test_rotate90(self) -> None:
        rect = _parse(self.XML)
        rect.rotate90()
        self.assertEqual((rect.x, rect.y, rect.width, rect.height), (-20, 10, 10, 20))
        self.assertEqual((rect.rx, rect.ry), (1, 2))
        for _ in range(3):
            rect.rotate90()
        self.assertEqual(rect, _parse(self.XML))

    def test_extent_and_svg(self) -> None:
        rect = _parse(self.XML)
        box = BoundingBox()
        rect.extent(box)
        self.assertEqual((box.xmin, box.xmax, box.ymin, box.ymax), (0, 30, 0, 20))
        elem = rect.to_svg(2)
        self.assertTrue(elem.tag.endswith("}rect"))
        self.assertEqual(elem.get("rx"), "2")
        self.assertEqual(elem.get("stroke"), "#000000")


class EllipseTests(unittest.TestCase):
    def test_circle_scales_diameter_by_smaller_factor(self) -> None:
        circle = _parse('<circle x="0" y="0" diameter="10" style="" antialias="false"/>')
        self.assertIsInstance(circle, Ellipse)
        circle.scale(2, 3)
        node = _written(circle, "circle")
        self.assertEqual(node.tag, "circle")
        self.assertEqual(node.get("diameter"), "20")
        self.assertNotIn("width", node.attrib)

    def test_ellipse_svg_center(self) -> None:
        ellipse = _parse('<ellipse x="-5" y="-2" width="10" height="4"/>')
        elem = ellipse.to_svg(2)
        self.assertEqual(
            (elem.get("cx"), elem.get("cy"), elem.get("rx"), elem.get("ry")), ("0", "0", "5", "2")
        )


class ArcTests(unittest.TestCase):
    def test_parse_normalizes(self) -> None:
        arc = _parse('<arc x="0" y="0" width="10" height="10" start="-20" angle="330"/>')
        self.assertEqual((arc.start, arc.angle), (340, 330))
        arc = _parse('<arc x="0" y="0" width="10" height="10" start="350" angle="-330"/>')
        self.assertEqual((arc.start, arc.angle), (20, 330))

    def test_parse_reduces_sweep_beyond_a_turn(self) -> None:
        arc = _parse('<arc x="0" y="0" width="10" height="10" start="10" angle="400"/>')
        self.assertEqual((arc.start, arc.angle), (10, 40))
        arc = _parse('<arc x="0" y="0" width="10" height="10" start="10" angle="720"/>')
        self.assertEqual((arc.start, arc.angle), (10, 360))

    def test_flip_twice_restores_angles(self) -> None:
        arc = _parse('<arc x="0" y="0" width="10" height="10" start="-20" angle="330"/>')
        arc.flip()
        self.assertEqual((arc.start, arc.angle), (50, 330))
        arc.flip()
        self.assertEqual((arc.start, arc.angle), (340, 330))

    def test_mirror_and_rotate(self) -> None:
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=90)
        arc.mirror()
        self.assertEqual((arc.start, arc.angle), (90, 90))
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=90)
        arc.rotate90()
        self.assertEqual((arc.start, arc.angle), (270, 90))

    def test_full_circle_extent(self) -> None:
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=360)
        box = BoundingBox()
        arc.extent(box)
        self.assertAlmostEqual(box.xmax, 10)
        self.assertAlmostEqual(box.ymax, 10)
        self.assertAlmostEqual(box.xmin, 0)

    def test_quarter_arc_extent(self) -> None:
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=90)
        self.assertAlmostEqual(arc.min_x, 5)
        self.assertAlmostEqual(arc.max_x, 10)
        self.assertAlmostEqual(arc.min_y, 0)
        self.assertAlmostEqual(arc.max_y, 5)

    def test_write_uses_whole_degrees(self) -> None:
        arc = _parse('<arc x="0.123" y="0" width="10" height="10" start="10.4" angle="89.6"/>')
        node = _written(arc, "arc")
        self.assertEqual(
            list(node.attrib),
            ["x", "y", "width", "height", "start", "angle", "style", "antialias"],
        )
        self.assertEqual((node.get("x"), node.get("start"), node.get("angle")), ("0.12", "10", "90"))

    def test_svg_path(self) -> None:
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=90)
        self.assertEqual(arc.to_svg(2).get("d"), "M 10 5 A 5 5 0 0 0 5 0")
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=270)
        self.assertIn(" 0 1 0 ", arc.to_svg(2).get("d"))
        arc = Arc(x=0, y=0, width=10, height=10, start=0, angle=360)
        self.assertEqual(arc.to_svg(2).get("d").count(" A "), 2)


class PolygonTests(unittest.TestCase):
    def test_clean_up_merges_and_closes(self) -> None:
        polygon = _parse(
            '<polygon x1="0" y1="0" x2="0.001" y2="0" x3="10" y3="0" x4="10" y4="10" x5="0" y5="0"'
            ' closed="false"/>'
        )
        polygon.clean_up(0.01)
        self.assertEqual(len(polygon.points), 3)
        self.assertEqual([p.index for p in polygon.points], [1, 2, 3])
        self.assertTrue(polygon.closed)
        self.assertTrue(polygon.check_index())

    def test_clean_up_merges_near_duplicates(self) -> None:
        polygon = Polygon()
        for x, y in [(0, 0), (5, 5), (5.001, 5.001), (10, 0)]:
            polygon.add_point(x, y)
        polygon.clean_up(0.01)
        self.assertEqual([(p.index, p.x, p.y) for p in polygon.points], [(1, 0, 0), (2, 5, 5), (3, 10, 0)])

    def test_check_index(self) -> None:
        self.assertFalse(_parse('<polygon x1="0" y1="0"/>').check_index())
        self.assertFalse(_parse('<polygon x1="0" y1="0" x3="1" y3="1"/>').check_index())
        self.assertFalse(_parse('<polygon x1="0" y1="0" x2="1"/>').check_index())
        self.assertFalse(_parse('<polygon x1="0" y1="0" x2="1" y2="abc"/>').check_index())
        self.assertTrue(_parse('<polygon x1="0" y1="0" x2="1" y2="1"/>').check_index())

    def test_points_sorted_by_index(self) -> None:
        polygon = _parse('<polygon x10="9" y10="9" x2="1" y2="1" x1="0" y1="0"/>')
        self.assertEqual([p.index for p in polygon.points], [1, 2, 10])
        self.assertFalse(polygon.check_index())

    def test_open_polygon_writes_closed_false(self) -> None:
        polygon = _parse('<polygon x1="0" y1="0" x2="1" y2="1" closed="false" antialias="true"/>')
        node = _written(polygon, "polygon")
        self.assertEqual(list(node.attrib), ["x1", "y1", "x2", "y2", "closed", "style", "antialias"])
        self.assertEqual(polygon.to_svg(2).tag.split("}")[1], "polyline")

    def test_add_point(self) -> None:
        polygon = Polygon()
        polygon.add_point(0, 0)
        polygon.add_point(5, 5)
        polygon.add_point(2, 2, index=2)
        polygon.add_point(1, 1, index=1)
        self.assertEqual([(p.index, p.x, p.y) for p in polygon.points], [(1, 1, 1), (2, 2, 2)])

    def test_rotate_four_times(self) -> None:
        xml = '<polygon x1="0" y1="0" x2="4" y2="1" x3="2" y3="-3"/>'
        polygon = _parse(xml)
        for _ in range(4):
            polygon.rotate90()
        self.assertEqual(polygon, _parse(xml))


class LineTests(unittest.TestCase):
    def test_short_line_is_invalid(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="0.001" y2="0"/>')
        self.assertIsInstance(line, Line)
        self.assertIsNotNone(line.validate(0.01))
        self.assertIsNone(line.validate(0.0001))

    def test_missing_coordinate_is_invalid(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="10"/>')
        self.assertIsNotNone(line.validate(0.01))

    def test_missing_point_reported_before_length(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="5" y2="0"/>')
        line.points.pop()
        self.assertIn("at least 2 points", line.validate(0.01))
        line = _parse('<line x1="0" y1="0" x2="0" y2="0"/>')
        self.assertIsNone(line.validate())
        self.assertIn("length", line.validate(0.01))

    def test_scale_and_write(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="10" y2="5" end1="triangle" length1="2" foo="1"/>')
        line.scale(2, 4)
        node = _written(line, "line")
        self.assertEqual(
            list(node.attrib),
            ["x1", "y1", "x2", "y2", "end1", "length1", "end2", "length2", "style", "antialias", "foo"],
        )
        self.assertEqual((node.get("x2"), node.get("y2")), ("20", "20"))
        self.assertEqual((node.get("length1"), node.get("length2")), ("4", "3"))
        self.assertEqual(node.get("end2"), "none")

    def test_clean_up_keeps_both_points(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="0" y2="0"/>')
        line.clean_up(0.01)
        self.assertEqual(len(line.points), 2)

    def test_svg_with_decorated_end(self) -> None:
        line = _parse('<line x1="0" y1="0" x2="10" y2="0" end1="triangle" length1="2" end2="simple"/>')
        group = line.to_svg(2)
        self.assertEqual(group.get("transform"), "translate(0, 0) rotate(0)")
        children = list(group)
        self.assertEqual([child.tag.split("}")[1] for child in children], ["line", "polygon", "polyline"])
        self.assertEqual(children[0].get("x1"), "2.5")
        self.assertEqual(children[0].get("x2"), "9.5")
        self.assertEqual(children[2].get("transform"), "translate(10, 0) rotate(180)")

    def test_svg_rotation_follows_direction(self) -> None:
        line = _parse('<line x1="1" y1="2" x2="1" y2="12"/>')
        self.assertEqual(line.to_svg(2).get("transform"), "translate(1, 2) rotate(90)")


class TextTests(unittest.TestCase):
    def test_legacy_size_becomes_font(self) -> None:
        text = _parse('<text x="1" y="2" size="7" text="Hi"/>')
        self.assertTrue(text.legacy_font)
        node = _written(text, "text")
        self.assertEqual(node.get("font"), "Sans Serif,7,-1,5,50,0,0,0,0,0")
        self.assertNotIn("size", node.attrib)
        self.assertEqual(list(node.attrib), ["x", "y", "text", "font", "rotation", "color"])

    def test_scale_font_size(self) -> None:
        text = _parse('<text x="1" y="2" text="Hi" font="Liberation Sans,9,-1,5,50,0,0,0,0,0"/>')
        text.scale(2, 3)
        self.assertEqual(text.font, "Liberation Sans,18,-1,5,50,0,0,0,0,0")
        self.assertEqual((text.x, text.y), (2, 6))

    def test_font_size_never_below_one(self) -> None:
        text = _parse('<text x="0" y="0" text="Hi" size="1"/>')
        text.scale(0.1, 0.1)
        self.assertEqual(text.font_size, 1)

    def test_rotate90(self) -> None:
        text = _parse('<text x="1" y="2" text="Hi" rotation="270" size="9"/>')
        text.rotate90()
        self.assertEqual((text.x, text.y, text.rotation), (-2, 1, 0))

    def test_extent(self) -> None:
        text = _parse('<text x="1" y="2" size="7" text="Hi"/>')
        box = BoundingBox()
        text.extent(box)
        self.assertEqual((box.xmin, box.xmax, box.ymin, box.ymax), (-6, 8, -5, 9))

        placeholder = _parse('<text x="100" y="100" size="7" text="_"/>')
        box = BoundingBox()
        placeholder.extent(box)
        self.assertEqual((box.width, box.height), (0, 0))

    def test_missing_text_is_placeholder(self) -> None:
        text = _parse('<text x="100" y="100" size="7"/>')
        self.assertEqual(text.text, "_")
        self.assertEqual(_written(text, "text").get("text"), "_")
        box = BoundingBox()
        text.extent(box)
        self.assertEqual((box.width, box.height), (0, 0))

    def test_multiline_svg(self) -> None:
        text = Text(x=0, y=0, text="a\nb")
        elem = text.to_svg(2)
        self.assertEqual(len(list(elem)), 2)
        self.assertEqual(elem.get("font-size"), "9pt")


class DynamicTextTests(unittest.TestCase):
    def test_legacy_input_is_upgraded(self) -> None:
        text = _parse('<input x="3" y="4" size="9" text="_" tagg="label"/>')
        self.assertIsInstance(text, DynamicText)
        node = _written(text, "input")
        self.assertEqual(node.tag, "dynamic_text")
        self.assertEqual(node.get("text_from"), "ElementInfo")
        self.assertRegex(node.get("uuid"), UUID_PATTERN)
        self.assertNotIn("tagg", node.attrib)
        self.assertEqual([child.tag for child in node], ["text", "info_name", "color"])
        self.assertEqual(node.find("info_name").text, "label")
        self.assertEqual(
            list(node.attrib),
            [
                "x", "y", "z", "rotation", "uuid", "font", "Halignment", "Valignment",
                "frame", "text_width", "keep_visual_rotation", "text_from",
            ],
        )

    def test_untagged_input_is_user_text(self) -> None:
        text = _parse('<input x="0" y="0" size="9" text="Hello"/>')
        self.assertEqual(text.text_from, "UserText")
        self.assertEqual(text.text, "Hello")

    def test_children_are_read_and_rewritten(self) -> None:
        node = ET.fromstring(
            '<dynamic_text x="0" y="0" uuid="{a}" font="Sans Serif,9,-1,5,50,0,0,0,0,0"'
            ' text_from="CompositeText" text_width="40" frame="true">'
            "<text>A</text><composite_text>%{label}</composite_text><color>#FF0000</color>"
            "</dynamic_text>"
        )
        text = primitive_for(node)
        self.assertEqual((text.text, text.composite_text, text.color), ("A", "%{label}", "#FF0000"))
        self.assertTrue(text.frame)
        text.scale(2, 1)
        text.write(node, 2)
        self.assertEqual([child.tag for child in node], ["text", "composite_text", "color"])
        self.assertEqual(node.get("text_width"), "80")
        self.assertEqual(node.get("uuid"), "{a}")
        self.assertEqual(node.get("frame"), "true")

    def test_svg_offsets_and_alignment(self) -> None:
        text = _parse(
            '<dynamic_text x="0" y="0" uuid="{a}" font="Sans Serif,9,-1,5,50,0,0,0,0,0"'
            ' Halignment="AlignHCenter" text_width="40"><text>A</text></dynamic_text>'
        )
        elem = text.to_svg(2)
        self.assertEqual(elem.get("transform"), "translate(24.7, 17.3)")
        self.assertEqual(elem.get("text-anchor"), "middle")

    def test_svg_frame(self) -> None:
        text = _parse(
            '<dynamic_text x="0" y="0" uuid="{a}" font="Sans Serif,9,-1,5,50,0,0,0,0,0"'
            ' frame="true" text_width="40"><text>A</text></dynamic_text>'
        )
        group = text.to_svg(2)
        self.assertTrue(group.tag.endswith("}g"))
        frame = list(group)[0]
        self.assertEqual(frame.get("width"), "48")
        self.assertEqual(frame.get("fill"), "none")


class TerminalTests(unittest.TestCase):
    def test_rotate_north_to_east(self) -> None:
        terminal = _parse('<terminal x="0" y="0" orientation="n"/>')
        terminal.rotate90()
        node = _written(terminal, "terminal")
        self.assertEqual((node.get("x"), node.get("y"), node.get("orientation")), ("0", "0", "e"))
        self.assertEqual(node.get("type"), "Generic")
        self.assertRegex(node.get("uuid"), UUID_PATTERN)

    def test_rotation_cycle(self) -> None:
        terminal = Terminal(x=0, y=-5, orientation="n", uuid="{t}")
        seen = []
        for _ in range(4):
            terminal.rotate90()
            seen.append(terminal.orientation)
        self.assertEqual(seen, ["e", "s", "w", "n"])
        self.assertEqual((terminal.x, terminal.y), (0, -5))

    def test_flip_and_mirror_orientation(self) -> None:
        terminal = Terminal(x=2, y=-5, orientation="n", uuid="{t}")
        terminal.flip()
        self.assertEqual((terminal.y, terminal.orientation), (5, "s"))
        terminal.mirror()
        self.assertEqual((terminal.x, terminal.orientation), (-2, "s"))
        terminal = Terminal(x=2, y=0, orientation="e", uuid="{t}")
        terminal.mirror()
        self.assertEqual(terminal.orientation, "w")

    def test_positions_written_without_decimals(self) -> None:
        terminal = _parse('<terminal x="2.6" y="-1.2" orientation="s" uuid="{t}" name="A1"/>')
        node = _written(terminal, "terminal", decimals=3)
        self.assertEqual(list(node.attrib), ["x", "y", "orientation", "type", "name", "uuid"])
        self.assertEqual((node.get("x"), node.get("y"), node.get("name")), ("3", "-1", "A1"))

    def test_extent_and_svg(self) -> None:
        terminal = _parse('<terminal x="0" y="-10" orientation="w" uuid="{t}"/>')
        box = BoundingBox()
        terminal.extent(box)
        self.assertEqual((box.xmin, box.xmax, box.ymin, box.ymax), (-5, 5, -15, 0))
        elem = terminal.to_svg(2)
        self.assertEqual(elem.get("transform"), "rotate(270 0 -10)")
        self.assertEqual(elem.get("{http://www.w3.org/1999/xlink}href"), "#terminal")


class MetadataTests(unittest.TestCase):
    def test_names_sorted_last_wins(self) -> None:
        node = ET.fromstring(
            '<names><name lang="fr">Lampe</name><name lang="en">Old</name><name lang="en">Lamp</name></names>'
        )
        NamesList.from_node(node).write(node)
        self.assertEqual([(n.get("lang"), n.text) for n in node], [("en", "Lamp"), ("fr", "Lampe")])

    def test_element_information_sorted_with_numeric_show(self) -> None:
        node = ET.fromstring(
            "<elementInformations>"
            '<elementInformation name="manufacturer" show="true">ACME</elementInformation>'
            '<elementInformation name="label" show="false">H1</elementInformation>'
            "</elementInformations>"
        )
        ElementInfo.from_node(node).write(node)
        self.assertEqual(
            [(n.get("name"), n.get("show"), n.text) for n in node],
            [("label", "0", "H1"), ("manufacturer", "1", "ACME")],
        )

    def test_author_stamp_is_idempotent(self) -> None:
        author = AuthorInfo("Author: someone\n")
        self.assertTrue(author.stamp())
        self.assertFalse(author.stamp())
        self.assertEqual(author.text, f"Author: someone\n{EDIT_STAMP}")
        self.assertEqual(AuthorInfo().stamp(), True)


class HeaderTests(unittest.TestCase):
    def test_recalc_rounds_up_with_margin(self) -> None:
        header = DefinitionHeader()
        header.recalc(BoundingBox(-10, 10, -5, 25))
        self.assertEqual((header.width, header.height, header.hotspot_x, header.hotspot_y), (30, 40, 15, 10))

    def test_recalc_adds_extra_step_past_six(self) -> None:
        header = DefinitionHeader()
        header.recalc(BoundingBox(0, 17, 0, 16))
        self.assertEqual((header.width, header.height), (30, 20))

    def test_write_order(self) -> None:
        node = ET.fromstring(
            '<definition hotspot_y="1" hotspot_x="1" height="1" width="1" type="element"'
            ' link_type="simple" version="0.80" custom="x"/>'
        )
        DefinitionHeader.from_node(node).write(node)
        self.assertEqual(
            list(node.attrib),
            ["version", "link_type", "type", "width", "height", "hotspot_x", "hotspot_y", "custom"],
        )
        self.assertEqual(node.get("version"), "0.80")


if __name__ == "__main__":
    unittest.main()

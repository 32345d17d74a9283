"""Translate element style strings into SVG presentation attributes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .formatting import format_value

DEFAULT_STYLE = "line-style:normal;line-weight:normal;filling:none;color:black"
DEFAULT_COLOR = "#696969"

LINE_WEIGHTS: Dict[str, float] = {
    "none": 0.0,
    "thin": 0.25,
    "normal": 1.0,
    "hight": 2.0,
    "eleve": 5.0,
}

# Dash patterns in units of the stroke width.
DASH_PATTERNS: Dict[str, Tuple[int, ...]] = {
    "dashed": (4, 2),
    "dotted": (1, 2),
    "dashdotted": (4, 2, 1, 2),
}

COLORS: Dict[str, str] = {
    "white": "#FFFFFF",
    "black": "#000000",
    "green": "#00FF00",
    "red": "#FF0000",
    "blue": "#0000FF",
    "gray": "#A0A0A4",
    "grey": "#A0A0A4",
    "brun": "#A52A2A",
    "brown": "#A52A2A",
    "yellow": "#FFFF00",
    "cyan": "#00FFFF",
    "magenta": "#FF00FF",
    "lightgray": "#D3D3D3",
    "orange": "#FFA500",
    "purple": "#A020F0",
    "HTMLPinkPink": "#FFC0CB",
    "HTMLPinkLightPink": "#FFB6C1",
    "HTMLPinkHotPink": "#FF69B4",
    "HTMLPinkDeepPink": "#FF1493",
    "HTMLPinkPaleVioletRed": "#DB7093",
    "HTMLPinkMediumVioletRed": "#C71585",
    "HTMLRedLightSalmon": "#FFA07A",
    "HTMLRedSalmon": "#FA8072",
    "HTMLRedDarkSalmon": "#E9967A",
    "HTMLRedLightCoral": "#F08080",
    "HTMLRedIndianRed": "#CD5C5C",
    "HTMLRedCrimson": "#DC143C",
    "HTMLRedFirebrick": "#B22222",
    "HTMLRedDarkRed": "#8B0000",
    "HTMLRedRed": "#FF0000",
    "HTMLOrangeOrangeRed": "#FF4500",
    "HTMLOrangeTomato": "#FF6347",
    "HTMLOrangeCoral": "#FF7F50",
    "HTMLOrangeDarkOrange": "#FF8C00",
    "HTMLOrangeOrange": "#FFA500",
    "HTMLYellowYellow": "#FFFF00",
    "HTMLYellowLightYellow": "#FFFFE0",
    "HTMLYellowLemonChiffon": "#FFFACD",
    "HTMLYellowLightGoldenrodYellow": "#FAFAD2",
    "HTMLYellowPapayaWhip": "#FFEFD5",
    "HTMLYellowMoccasin": "#FFE4B5",
    "HTMLYellowPeachPuff": "#FFDAB9",
    "HTMLYellowPaleGoldenrod": "#EEE8AA",
    "HTMLYellowKhaki": "#F0E68C",
    "HTMLYellowDarkKhaki": "#BDB76B",
    "HTMLYellowGold": "#FFD700",
    "HTMLBrownCornsilk": "#FFF8DC",
    "HTMLBrownBlanchedAlmond": "#FFEBCD",
    "HTMLBrownBisque": "#FFE4C4",
    "HTMLBrownNavajoWhite": "#FFDEAD",
    "HTMLBrownWheat": "#F5DEB3",
    "HTMLBrownBurlywood": "#DEB887",
    "HTMLBrownTan": "#D2B48C",
    "HTMLBrownRosyBrown": "#BC8F8F",
    "HTMLBrownSandyBrown": "#F4A460",
    "HTMLBrownGoldenrod": "#DAA520",
    "HTMLBrownDarkGoldenrod": "#B8860B",
    "HTMLBrownPeru": "#CD853F",
    "HTMLBrownChocolate": "#D2691E",
    "HTMLBrownSaddleBrown": "#8B4513",
    "HTMLBrownSienna": "#A0522D",
    "HTMLBrownBrown": "#A52A2A",
    "HTMLBrownMaroon": "#B03060",
    "HTMLGreenDarkOliveGreen": "#556B2F",
    "HTMLGreenOlive": "#808000",
    "HTMLGreenOliveDrab": "#6B8E23",
    "HTMLGreenYellowGreen": "#9ACD32",
    "HTMLGreenLimeGreen": "#32CD32",
    "HTMLGreenLime": "#C0FF00",
    "HTMLGreenLawnGreen": "#7CFC00",
    "HTMLGreenChartreuse": "#7FFF00",
    "HTMLGreenGreenYellow": "#ADFF2F",
    "HTMLGreenSpringGreen": "#00FF7F",
    "HTMLGreenMediumSpringGreen": "#00FA9A",
    "HTMLGreenLightGreen": "#90EE90",
    "HTMLGreenPaleGreen": "#98FB98",
    "HTMLGreenDarkSeaGreen": "#8FBC8F",
    "HTMLGreenMediumAquamarine": "#66CDAA",
    "HTMLGreenMediumSeaGreen": "#3CB371",
    "HTMLGreenSeaGreen": "#2E8B57",
    "HTMLGreenForestGreen": "#228B22",
    "HTMLGreenGreen": "#00FF00",
    "HTMLGreenDarkGreen": "#006400",
    "HTMLCyanAqua": "#00FFFF",
    "HTMLCyanCyan": "#00FFFF",
    "HTMLCyanLightCyan": "#E0FFFF",
    "HTMLCyanPaleTurquoise": "#AFEEEE",
    "HTMLCyanAquamarine": "#7FFFD4",
    "HTMLCyanTurquoise": "#40E0D0",
    "HTMLCyanMediumTurquoise": "#48D1CC",
    "HTMLCyanDarkTurquoise": "#00CED1",
    "HTMLCyanLightSeaGreen": "#20B2AA",
    "HTMLCyanCadetBlue": "#5F9EA0",
    "HTMLCyanDarkCyan": "#008B8B",
    "HTMLCyanTeal": "#008080",
    "HTMLBlueLightSteelBlue": "#B0C4DE",
    "HTMLBluePowderBlue": "#B0E0E6",
    "HTMLBlueLightBlue": "#ADD8E6",
    "HTMLBlueSkyBlue": "#87CEEB",
    "HTMLBlueLightSkyBlue": "#87CEFA",
    "HTMLBlueDeepSkyBlue": "#00BFFF",
    "HTMLBlueDodgerBlue": "#1E90FF",
    "HTMLBlueCornflowerBlue": "#6495ED",
    "HTMLBlueSteelBlue": "#4682B4",
    "HTMLBlueRoyalBlue": "#4169E1",
    "HTMLBlueBlue": "#0000FF",
    "HTMLBlueMediumBlue": "#0000CD",
    "HTMLBlueDarkBlue": "#00008B",
    "HTMLBlueNavy": "#000080",
    "HTMLBlueMidnightBlue": "#191970",
    "HTMLPurpleLavender": "#E6E6FA",
    "HTMLPurpleThistle": "#D8BFD8",
    "HTMLPurplePlum": "#DDA0DD",
    "HTMLPurpleViolet": "#EE82EE",
    "HTMLPurpleOrchid": "#DA70D6",
    "HTMLPurpleFuchsia": "#FF00FF",
    "HTMLPurpleMagenta": "#FF00FF",
    "HTMLPurpleMediumOrchid": "#BA55D3",
    "HTMLPurpleMediumPurple": "#9370DB",
    "HTMLPurpleBlueViolet": "#8A2BE2",
    "HTMLPurpleDarkViolet": "#9400D3",
    "HTMLPurpleDarkOrchid": "#9932CC",
    "HTMLPurpleDarkMagenta": "#8B008B",
    "HTMLPurplePurple": "#800080",
    "HTMLPurpleIndigo": "#4B0082",
    "HTMLPurpleDarkSlateBlue": "#483D8B",
    "HTMLPurpleSlateBlue": "#6A5ACD",
    "HTMLPurpleMediumSlateBlue": "#7B68EE",
    "HTMLWhiteWhite": "#FFFFFF",
    "HTMLWhiteSnow": "#FFFAFA",
    "HTMLWhiteHoneydew": "#F0FFF0",
    "HTMLWhiteMintCream": "#F5FFFA",
    "HTMLWhiteAzure": "#F0FFFF",
    "HTMLWhiteAliceBlue": "#F0F8FF",
    "HTMLWhiteGhostWhite": "#F8F8FF",
    "HTMLWhiteWhiteSmoke": "#F5F5F5",
    "HTMLWhiteSeashell": "#FFF5EE",
    "HTMLWhiteBeige": "#F5F5DC",
    "HTMLWhiteOldLace": "#FDF5E6",
    "HTMLWhiteFloralWhite": "#FFFAF0",
    "HTMLWhiteIvory": "#FFFFF0",
    "HTMLWhiteAntiqueWhite": "#FAEBD7",
    "HTMLWhiteLinen": "#FAF0E6",
    "HTMLWhiteLavenderBlush": "#FFF0F5",
    "HTMLWhiteMistyRose": "#FFE4E1",
    "HTMLGrayGainsboro": "#DCDCDC",
    "HTMLGrayLightGray": "#D3D3D3",
    "HTMLGraySilver": "#C0C0C0",
    "HTMLGrayDarkGray": "#A9A9A9",
    "HTMLGrayGray": "#808080",
    "HTMLGrayDimGray": "#696969",
    "HTMLGrayLightSlateGray": "#778899",
    "HTMLGraySlateGray": "#708090",
    "HTMLGrayDarkSlateGray": "#2F4F4F",
    "HTMLGrayBlack": "#000000",
}

_COLORS_BY_LOWER = {name.lower(): value for name, value in COLORS.items()}


@dataclass
class LineStyle:
    line_style: str = "normal"
    line_weight: str = "normal"
    filling: str = "none"
    color: str = "black"

    @property
    def stroke_width(self) -> float:
        return LINE_WEIGHTS.get(self.line_weight, LINE_WEIGHTS["normal"])


def parse_style(style: Optional[str]) -> LineStyle:
    """Split ``key:value;key:value`` pairs; unknown keys are ignored."""
    parsed = LineStyle()
    if not style:
        return parsed
    for part in style.split(";"):
        if ":" not in part:
            continue
        key, value = part.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if not value:
            continue
        if key == "line-style":
            parsed.line_style = value
        elif key == "line-weight":
            parsed.line_weight = value
        elif key == "filling":
            parsed.filling = value
        elif key == "color":
            parsed.color = value
    return parsed


def color_to_value(name: str) -> str:
    """Resolve a color name to ``#RRGGBB``; ``none`` passes through."""
    if name == "none":
        return "none"
    value = COLORS.get(name)
    if value is None:
        value = _COLORS_BY_LOWER.get(name.lower(), DEFAULT_COLOR)
    return value


def style_to_svg(style: Optional[str]) -> Dict[str, str]:
    parsed = parse_style(style)
    width = parsed.stroke_width
    attrs: Dict[str, str] = {}
    pattern = DASH_PATTERNS.get(parsed.line_style)
    if pattern:
        unit = width if width > 0 else 1.0
        attrs["stroke-dasharray"] = ",".join(format_value(step * unit, 2) for step in pattern)
    attrs["stroke-width"] = format_value(width, 2)
    attrs["fill"] = color_to_value(parsed.filling)
    attrs["stroke"] = color_to_value(parsed.color)
    return attrs


def svg_attributes_string(style: Optional[str]) -> str:
    return " ".join(f'{key}="{value}"' for key, value in style_to_svg(style).items())

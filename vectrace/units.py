"""Dimensions with optional units, colour codes and angles from the command line.

A dimension such as ``1.5in`` or ``7cm`` is a number followed by an
optional unit. Units are stored as their size in PostScript points
(1/72 inch), and a dimension without a unit has unit 0. The caller
then supplies the default unit.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

__all__ = [
    "DIM_IN",
    "DIM_CM",
    "DIM_MM",
    "DIM_PT",
    "DEFAULT_DIM",
    "DEFAULT_DIM_NAME",
    "DEFAULT_PAPERWIDTH",
    "DEFAULT_PAPERHEIGHT",
    "DEFAULT_PAPERFORMAT",
    "UNDEF",
    "Dimension",
    "parse_dimension",
    "parse_dimensions",
    "parse_color",
    "normalize_angle",
]

DIM_IN = 72
DIM_CM = 72 / 2.54
DIM_MM = 72 / 25.4
DIM_PT = 1

DEFAULT_DIM = DIM_IN
DEFAULT_DIM_NAME = "inches"
DEFAULT_PAPERWIDTH = 612
DEFAULT_PAPERHEIGHT = 792
DEFAULT_PAPERFORMAT = "letter"

UNDEF = 1e30
"""Marker for a value that has not been given."""

_UNITS = {"in": DIM_IN, "cm": DIM_CM, "mm": DIM_MM, "pt": DIM_PT}

_HEX_FLOAT = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
)
_DEC_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SPECIAL_FLOAT = re.compile(r"([+-]?)(infinity|inf|nan)", re.IGNORECASE)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _scan_float(text: str) -> tuple[float, int]:
    """Read a floating-point prefix as strtod does; return (value, end index).

    The end index is 0 when no number could be read.
    """
    start = len(text) - len(text.lstrip(" \t\n\r\f\v"))
    match = _HEX_FLOAT.match(text, start)
    if match:
        body = match.group()
        sign = -1.0 if body.startswith("-") else 1.0
        return sign * float.fromhex(body.lstrip("+-")), match.end()
    match = _DEC_FLOAT.match(text, start)
    if match:
        return float(match.group()), match.end()
    match = _SPECIAL_FLOAT.match(text, start)
    if match:
        word = match.group(2).lower()
        value = math.nan if word == "nan" else math.inf
        if match.group(1) == "-":
            value = -value
        return value, match.end()
    return 0.0, 0


@dataclass(frozen=True)
class Dimension:
    """A number with an optional unit, given in points per unit (0 if none)."""

    value: float = 0.0
    unit: float = 0.0

    def to_points(self, default) -> float:
        """Return the value in points, using ``default`` if no unit was given."""
        return self.value * (self.unit if self.unit else default)


def parse_dimension(text) -> tuple[Dimension, str]:
    """Parse a dimension like ``1.5in`` from the start of ``text``.

    Returns the dimension and the unparsed remainder of the text. If no
    number is present the dimension is zero and the remainder is the
    whole text.
    """
    value, end = _scan_float(text)
    if end == 0:
        return Dimension(0.0, 0.0), text
    unit = _UNITS.get(text[end:end + 2].lower(), 0)
    if unit:
        end += 2
    return Dimension(value, unit), text[end:]


def parse_dimensions(text) -> tuple[Dimension, Dimension, str]:
    """Parse a pair of dimensions like ``8.5x11in`` or ``30mmx4cm``.

    A unit given on only one side applies to both. Returns the two
    dimensions and the unparsed remainder; on failure both dimensions
    are zero and the remainder is the whole text.
    """
    dx, rest = parse_dimension(text)
    if rest is text or len(rest) == len(text) or not rest.startswith("x"):
        return Dimension(), Dimension(), text
    after = rest[1:]
    dy, tail = parse_dimension(after)
    if len(tail) == len(after):
        return Dimension(), Dimension(), text
    if dx.unit and not dy.unit:
        dy = Dimension(dy.value, dx.unit)
    elif dy.unit and not dx.unit:
        dx = Dimension(dx.value, dy.unit)
    return dx, dy, tail


def parse_color(text) -> int:
    """Parse a colour ``#rrggbb`` into the integer 0xrrggbb.

    Raises ValueError for anything else.
    """
    if len(text) != 7 or text[0] != "#" or not set(text[1:]) <= _HEX_DIGITS:
        raise ValueError(f"invalid color -- {text}")
    return int(text[1:], 16)


def normalize_angle(angle) -> float:
    """Bring an angle in degrees into the range (-180, 180]."""
    if angle <= -180 or angle > 180:
        angle -= 360 * math.ceil(angle / 360 - 0.5)
    return angle
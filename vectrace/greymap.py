"""Greymaps: rectangular arrays of signed 16-bit grey samples.

Rows are addressed bottom to top, so ``y == 0`` is the lowest scanline,
and pixels in a row run left to right. A sample of 0 is black and 255 is
white; values outside that range can arise from accumulation and are
folded back into range when writing, according to a :class:`GreyMode`.
"""

from __future__ import annotations

import math
from enum import IntEnum

__all__ = ["GreyMode", "Greymap"]

_ASCII_SHADES = "*#=- "


class GreyMode(IntEnum):
    """How out-of-range samples are mapped into 0..255 on output.

    The names refer to winding numbers: a pixel is made black when its
    winding number is nonzero, odd, positive or negative respectively,
    with winding number 0 corresponding to white (255).
    """

    NONZERO = 1
    ODD = 2
    POSITIVE = 3
    NEGATIVE = 4


def _to_sample(value: int) -> int:
    """Wrap an integer into the signed 16-bit sample range."""
    return ((int(value) + 0x8000) & 0xFFFF) - 0x8000


def _clip(value: int, mode: GreyMode | None) -> int:
    if mode == GreyMode.NONZERO:
        if value > 255:
            value = 510 - value
        return max(value, 0)
    if mode == GreyMode.ODD:
        value %= 510
        return 510 - value if value > 255 else value
    if mode == GreyMode.POSITIVE:
        return min(max(value, 0), 255)
    if mode == GreyMode.NEGATIVE:
        return min(max(510 - value, 0), 255)
    if not 0 <= value <= 255:
        raise ValueError(f"sample {value} out of range with no clipping mode")
    return value


def _gamma_table(gamma: float) -> list[int]:
    if gamma == 1.0:
        return list(range(256))
    return [0] + [
        int(255 * math.exp(math.log(v / 255.0) / gamma) + 0.5) for v in range(1, 256)
    ]


class Greymap:
    """A width x height grid of signed 16-bit samples, initialised to 0."""

    def __init__(self, width, height):
        if width < 0 or height < 0:
            raise ValueError("greymap dimensions must be non-negative")
        self.width = int(width)
        self.height = int(height)
        self._rows = [[0] * self.width for _ in range(self.height)]
        self._flipped = False

    def __repr__(self) -> str:
        return f"Greymap(width={self.width}, height={self.height})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Greymap):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self._rows == other._rows
        )

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def copy(self) -> "Greymap":
        """Return an independent greymap with the same pixels."""
        dup = Greymap(self.width, self.height)
        dup._rows = [list(row) for row in self._rows]
        return dup

    def clear(self, value) -> None:
        """Set every pixel to ``value``."""
        sample = _to_sample(value)
        self._rows = [[sample] * self.width for _ in range(self.height)]

    def get(self, x, y) -> int:
        """Return the pixel at (x, y), or 0 outside the map."""
        return self._rows[y][x] if self._inside(x, y) else 0

    def get_clamped(self, x, y) -> int:
        """Return the pixel nearest to (x, y); 0 for an empty map."""
        if self.width == 0 or self.height == 0:
            return 0
        cx = min(max(x, 0), self.width - 1)
        cy = min(max(y, 0), self.height - 1)
        return self._rows[cy][cx]

    def put(self, x, y, value) -> None:
        """Set the pixel at (x, y); coordinates outside the map are ignored."""
        if self._inside(x, y):
            self._rows[y][x] = _to_sample(value)

    def increment(self, x, y, amount) -> None:
        """Add ``amount`` to the pixel at (x, y), wrapping as a 16-bit sample."""
        if self._inside(x, y):
            self._rows[y][x] = _to_sample(self._rows[y][x] + _to_sample(amount))

    def invert_pixel(self, x, y) -> None:
        """Replace the pixel at (x, y) by 255 minus its value."""
        if self._inside(x, y):
            self._rows[y][x] = _to_sample(255 - self._rows[y][x])

    def flip(self) -> None:
        """Turn the greymap upside down."""
        if self.height <= 1:
            return
        self._rows.reverse()
        self._flipped = not self._flipped

    def truncate(self, height) -> None:
        """Change the height, keeping the bottom rows, or the top rows if flipped.

        Rows added when growing are filled with 0.
        """
        if height < 0:
            raise ValueError("greymap height must be non-negative")
        old = self._rows
        if self._flipped:
            if height <= len(old):
                rows = old[len(old) - height:]
            else:
                rows = [[0] * self.width for _ in range(height - len(old))] + old
        else:
            rows = old[:height] + [
                [0] * self.width for _ in range(height - len(old))
            ]
        self._rows = rows
        self.height = height
        if height <= 1:
            self._flipped = False

    def write_pgm(self, stream, comment=None, raw=False, mode=GreyMode.NONZERO, gamma=1.0):
        """Write the greymap to a binary stream as PGM (P5 if raw, else P2).

        ``mode`` folds out-of-range samples into 0..255; ``gamma`` applies
        a gamma correction (1.0 for none).
        """
        table = _gamma_table(gamma)
        out = bytearray(b"P5\n" if raw else b"P2\n")
        if comment:
            out += f"# {comment}\n".encode()
        out += f"{self.width} {self.height} 255\n".encode()
        for row in reversed(self._rows):
            values = [table[_clip(v, mode)] for v in row]
            if raw:
                out += bytes(values)
            elif values:
                out += (" ".join(map(str, values)) + "\n").encode()
        stream.write(bytes(out))

    def render_ascii(self) -> str:
        """Return a coarse character-art picture of the greymap, for debugging."""
        w, h = self.width, self.height
        sw = min(w, 79)
        sh = h if w < 79 else h * sw * 44 // (79 * w)
        lines = []
        for yy in range(sh - 1, -1, -1):
            chars = []
            for xx in range(sw):
                xs = range(xx * w // sw, (xx + 1) * w // sw)
                ys = range(yy * h // sh, (yy + 1) * h // sh)
                total = sum(self.get(x, y) for x in xs for y in ys)
                count = 256 * len(xs) * len(ys)
                index = int(5 * total / count) if count else 0
                chars.append(_ASCII_SHADES[min(max(index, 0), 4)])
            lines.append("".join(chars) + "\n")
        return "".join(lines)
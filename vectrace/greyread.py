"""Reading greymaps from PNM (P1 to P6) and BMP streams.

Every input is converted to 8-bit grey: bitmaps become 0 (black) and
255 (white), colour pixels become the average of their channels, and
samples are rescaled from the file's maximum value to 255.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field

from vectrace.greymap import Greymap

__all__ = [
    "GreymapReadError",
    "GreymapFormatError",
    "EmptyFileError",
    "UnknownFormatError",
    "ReadResult",
    "read_greymap",
    "read_pnm_body",
    "read_bmp_body",
]

_EOF = -1
_WHITESPACE = frozenset(b" \t\r\n\f")
_BMP_INVALID = "invalid bmp file"
_INTBITS = 32


class GreymapReadError(Exception):
    """Base class for errors raised while reading a greymap."""


class GreymapFormatError(GreymapReadError):
    """The stream is corrupt or uses an unsupported variant of its format."""


class EmptyFileError(GreymapReadError):
    """The stream holds nothing but whitespace and comments."""


class UnknownFormatError(GreymapReadError):
    """The stream does not start with a recognised magic number."""


@dataclass(frozen=True)
class ReadResult:
    """A greymap read from a stream.

    ``complete`` is False when the data ended early; the greymap then
    holds only the scanlines that were at least partly read.
    """

    greymap: Greymap
    complete: bool = field(default=True)


class _Truncated(Exception):
    """Raised internally when pixel data runs out."""


class _ByteSource:
    """Byte-at-a-time reader over a binary stream with one byte of pushback."""

    def __init__(self, stream):
        self._stream = stream
        self._pending: int | None = None

    def getc(self) -> int:
        if self._pending is not None:
            c, self._pending = self._pending, None
            return c
        data = self._stream.read(1)
        return data[0] if data else _EOF

    def ungetc(self, c: int) -> None:
        if c != _EOF:
            self._pending = c

    def release(self) -> None:
        """Hand a pushed-back byte back to the stream, where it can take it."""
        if self._pending is None:
            return
        self._pending = None
        seekable = getattr(self._stream, "seekable", None)
        if seekable is not None and seekable():
            self._stream.seek(-1, io.SEEK_CUR)


def _getc_ws(src: _ByteSource) -> int:
    """Return the next byte that is not whitespace or inside a comment."""
    while True:
        c = src.getc()
        if c == ord("#"):
            while c not in (ord("\n"), _EOF):
                c = src.getc()
        if c not in _WHITESPACE:
            return c


def _readnum(src: _ByteSource) -> int:
    """Read a non-negative decimal number, skipping junk; -1 on EOF or overflow."""
    while True:
        c = _getc_ws(src)
        if c == _EOF:
            return -1
        if ord("0") <= c <= ord("9"):
            break
    acc = c - ord("0")
    while True:
        c = src.getc()
        if c == _EOF:
            break
        if not ord("0") <= c <= ord("9"):
            src.ungetc(c)
            break
        acc = acc * 10 + c - ord("0")
        if acc > 0x7FFFFFFF:
            return -1
    return acc


def _readbit(src: _ByteSource) -> int:
    """Read a single 0 or 1 digit, skipping junk; -1 on EOF."""
    while True:
        c = _getc_ws(src)
        if c == _EOF:
            return -1
        if c in (ord("0"), ord("1")):
            return c - ord("0")


def _need(src: _ByteSource) -> int:
    c = src.getc()
    if c == _EOF:
        raise _Truncated
    return c


def _fill(gm: Greymap, rows) -> bool:
    """Run a row decoder; on early end, cut the map to the rows reached."""
    realheight = 0
    try:
        for realheight in rows:
            pass
    except _Truncated:
        gm.truncate(realheight)
        return False
    return True


# ---------------------------------------------------------------------------
# PNM


def _normalize_magic(magic) -> str:
    if isinstance(magic, (bytes, bytearray)):
        return magic.decode("latin-1")
    if isinstance(magic, int):
        return str(magic) if 0 <= magic <= 9 else chr(magic)
    return str(magic)


def _pnm_rows(src: _ByteSource, gm: Greymap, magic: str, error: GreymapFormatError):
    w, h = gm.width, gm.height

    def read_max() -> int:
        maxval = _readnum(src)
        if maxval < 1:
            raise error
        return maxval

    def raw_sample(maxval: int) -> int:
        b = _need(src)
        if maxval >= 256:
            b = (b << 8) | _need(src)
        return b

    def ascii_sample() -> int:
        b = _readnum(src)
        if b < 0:
            raise _Truncated
        return b

    if magic == "1":
        for y in range(h):
            yield y + 1
            for x in range(w):
                b = _readbit(src)
                if b < 0:
                    raise _Truncated
                gm.put(x, y, 0 if b else 255)
    elif magic == "2":
        maxval = read_max()
        for y in range(h):
            yield y + 1
            for x in range(w):
                gm.put(x, y, ascii_sample() * 255 // maxval)
    elif magic == "3":
        maxval = read_max()
        for y in range(h):
            yield y + 1
            for x in range(w):
                total = sum(ascii_sample() for _ in range(3))
                gm.put(x, y, total * (255 // 3) // maxval)
    elif magic == "4":
        if src.getc() == _EOF:
            raise error
        for y in range(h):
            yield y + 1
            for i in range((w + 7) // 8):
                b = _need(src)
                for j in range(8):
                    gm.put(i * 8 + j, y, 0 if b & (0x80 >> j) else 255)
    elif magic == "5":
        maxval = read_max()
        if src.getc() == _EOF:
            raise error
        for y in range(h):
            yield y + 1
            for x in range(w):
                gm.put(x, y, raw_sample(maxval) * 255 // maxval)
    elif magic == "6":
        maxval = read_max()
        if src.getc() == _EOF:
            raise error
        for y in range(h):
            yield y + 1
            for x in range(w):
                total = sum(raw_sample(maxval) for _ in range(3))
                gm.put(x, y, total * (255 // 3) // maxval)
    else:
        raise error


def _read_pnm(src: _ByteSource, magic) -> ReadResult:
    magic = _normalize_magic(magic)
    kind = {"1": "pbm", "4": "pbm", "2": "pgm", "5": "pgm"}.get(magic, "ppm")
    error = GreymapFormatError(f"invalid {kind} file")

    width = _readnum(src)
    if width < 0:
        raise error
    height = _readnum(src)
    if height < 0:
        raise error

    gm = Greymap(width, height)
    complete = _fill(gm, _pnm_rows(src, gm, magic, error))
    gm.flip()
    return ReadResult(gm, complete)


# ---------------------------------------------------------------------------
# BMP


@dataclass
class _BmpInfo:
    file_size: int = 0
    data_offset: int = 0
    info_size: int = 0
    width: int = 0
    height: int = 0
    planes: int = 0
    bits: int = 0
    comp: int = 0
    ncolors: int = 0
    red_mask: int = 0
    green_mask: int = 0
    blue_mask: int = 0
    ctbits: int = 0
    topdown: bool = False


class _BmpStream:
    """Little-endian reader that tracks the file position and row padding."""

    def __init__(self, src: _ByteSource):
        self.src = src
        self.pos = 2  # the magic number has already been read
        self.count = 0

    def readint(self, n: int) -> int:
        total = 0
        for i in range(n):
            total |= _need(self.src) << (8 * i)
        self.count += n
        self.pos += n
        return total

    def pad_reset(self) -> None:
        self.count = 0

    def pad(self) -> None:
        """Skip padding to a 4-byte boundary; running out here is a format error."""
        c = (-self.count) & 3
        for _ in range(c):
            if self.src.getc() == _EOF:
                raise GreymapFormatError(_BMP_INVALID)
        self.pos += c
        self.count = 0

    def forward(self, pos: int) -> None:
        while self.pos < pos:
            _need(self.src)
            self.pos += 1
            self.count += 1


def _lowest_bit(x: int) -> int:
    if x == 0:
        return _INTBITS
    return (x & -x).bit_length() - 1


def _grey_of(c: int) -> int:
    return (((c >> 16) & 0xFF) + ((c >> 8) & 0xFF) + (c & 0xFF)) // 3


def _read_bmp_header(bmp: _BmpStream) -> _BmpInfo:
    info = _BmpInfo()
    info.file_size = bmp.readint(4)
    bmp.readint(4)  # reserved
    info.data_offset = bmp.readint(4)
    info.info_size = bmp.readint(4)

    if info.info_size in (40, 64, 108, 124):
        info.ctbits = 32
        info.width = bmp.readint(4)
        info.height = bmp.readint(4)
        info.planes = bmp.readint(2)
        info.bits = bmp.readint(2)
        info.comp = bmp.readint(4)
        bmp.readint(4)  # image size
        bmp.readint(4)  # x pixels per metre
        bmp.readint(4)  # y pixels per metre
        info.ncolors = bmp.readint(4)
        bmp.readint(4)  # important colours
        if info.info_size >= 108:
            info.red_mask = bmp.readint(4)
            info.green_mask = bmp.readint(4)
            info.blue_mask = bmp.readint(4)
            bmp.readint(4)  # alpha mask
        if info.width > 0x7FFFFFFF:
            raise GreymapFormatError(_BMP_INVALID)
        if info.height > 0x7FFFFFFF:
            info.height = (-info.height) & 0xFFFFFFFF
            info.topdown = True
        if info.height > 0x7FFFFFFF:
            raise GreymapFormatError(_BMP_INVALID)
    elif info.info_size == 12:
        info.ctbits = 24
        info.width = bmp.readint(2)
        info.height = bmp.readint(2)
        info.planes = bmp.readint(2)
        info.bits = bmp.readint(2)
    else:
        raise GreymapFormatError(_BMP_INVALID)

    if info.comp == 3 and info.info_size < 108:
        raise GreymapFormatError(_BMP_INVALID)
    if info.comp > 3 or info.bits > 32:
        raise GreymapFormatError(_BMP_INVALID)

    bmp.forward(14 + info.info_size)

    if info.planes != 1:
        raise GreymapFormatError("cannot handle bmp planes")

    if info.ncolors == 0 and info.bits <= 8:
        info.ncolors = 1 << info.bits
    return info


def _bmp_rows(bmp: _BmpStream, info: _BmpInfo, coltable: list[int], gm: Greymap):
    w, h, bits = info.width, info.height, info.bits
    key = bits + 0x100 * info.comp

    def color(i: int) -> int:
        return coltable[i] if i < len(coltable) else 0

    if key == 0x001:
        for y in range(h):
            yield y + 1
            bmp.pad_reset()
            for i in range((w + 7) // 8):
                b = bmp.readint(1)
                for j in range(8):
                    gm.put(i * 8 + j, y, color(1) if b & (0x80 >> j) else color(0))
            bmp.pad()
    elif 0x002 <= key <= 0x008:
        mask = (1 << bits) - 1
        for y in range(h):
            yield y + 1
            bmp.pad_reset()
            buf = 0
            n = 0
            for x in range(w):
                if n < bits:
                    buf = (buf << 8) | bmp.readint(1)
                    n += 8
                n -= bits
                gm.put(x, y, color((buf >> n) & mask))
                buf &= (1 << n) - 1
            bmp.pad()
    elif key == 0x010:
        raise GreymapFormatError("cannot handle bmp 16-bit coding")
    elif key in (0x018, 0x020):
        for y in range(h):
            yield y + 1
            bmp.pad_reset()
            for x in range(w):
                gm.put(x, y, _grey_of(bmp.readint(bits // 8)))
            bmp.pad()
    elif key == 0x320:
        channels = [
            (m, _lowest_bit(m))
            for m in (info.red_mask, info.green_mask, info.blue_mask)
        ]
        for y in range(h):
            yield y + 1
            bmp.pad_reset()
            for x in range(w):
                c = bmp.readint(bits // 8)
                total = sum((c & m) >> shift for m, shift in channels)
                gm.put(x, y, total // 3)
            bmp.pad()
    elif key == 0x204:
        x = y = 0
        while True:
            b = bmp.readint(1)
            c = bmp.readint(1)
            if b > 0:
                cols = (color((c >> 4) & 0xF), color(c & 0xF))
                for i in range(b):
                    if x >= w or y >= h:
                        break
                    yield y + 1
                    gm.put(x, y, cols[i & 1])
                    x += 1
            elif c == 0:
                y += 1
                x = 0
            elif c == 1:
                break
            elif c == 2:
                dx = bmp.readint(1)
                dy = bmp.readint(1)
                x += dx
                y += dy
            else:
                byte = 0
                for i in range(c):
                    if i & 1 == 0:
                        byte = bmp.readint(1)
                    if x >= w:
                        x = 0
                        y += 1
                    if x >= w or y >= h:
                        break
                    yield y + 1
                    gm.put(x, y, color((byte >> (4 - 4 * (i & 1))) & 0xF))
                    x += 1
                if (c + 1) & 2:
                    bmp.readint(1)
    elif key == 0x108:
        x = y = 0
        while True:
            b = bmp.readint(1)
            c = bmp.readint(1)
            if b > 0:
                for _ in range(b):
                    if x >= w:
                        x = 0
                        y += 1
                    if x >= w or y >= h:
                        break
                    yield y + 1
                    gm.put(x, y, color(c))
                    x += 1
            elif c == 0:
                y += 1
                x = 0
            elif c == 1:
                break
            elif c == 2:
                dx = bmp.readint(1)
                dy = bmp.readint(1)
                x += dx
                y += dy
            else:
                for _ in range(c):
                    byte = bmp.readint(1)
                    if x >= w:
                        x = 0
                        y += 1
                    if x >= w or y >= h:
                        break
                    yield y + 1
                    gm.put(x, y, color(byte))
                    x += 1
                if c & 1:
                    bmp.readint(1)
    else:
        raise GreymapFormatError(_BMP_INVALID)


def _read_bmp(src: _ByteSource) -> ReadResult:
    bmp = _BmpStream(src)
    try:
        info = _read_bmp_header(bmp)
        coltable: list[int] = []
        if info.bits <= 8:
            coltable = [
                _grey_of(bmp.readint(info.ctbits // 8)) for _ in range(info.ncolors)
            ]
        if info.info_size != 12:
            bmp.forward(info.data_offset)
    except _Truncated:
        raise GreymapFormatError(_BMP_INVALID) from None

    gm = Greymap(info.width, info.height)
    complete = _fill(gm, _bmp_rows(bmp, info, coltable, gm))
    if complete:
        try:
            bmp.forward(info.file_size)
        except _Truncated:
            pass
    if info.topdown:
        gm.flip()
    return ReadResult(gm, complete)


# ---------------------------------------------------------------------------
# public entry points


def read_greymap(stream) -> ReadResult:
    """Read one PNM or BMP image from a binary stream.

    Whitespace and comments before a PNM magic number are skipped, so
    several images concatenated in one stream can be read in turn.
    Raises :class:`EmptyFileError` when nothing but whitespace is left,
    :class:`UnknownFormatError` for an unknown magic number and
    :class:`GreymapFormatError` for corrupt data.
    """
    src = _ByteSource(stream)
    try:
        first = _getc_ws(src)
        if first == _EOF:
            raise EmptyFileError("empty file")
        second = src.getc()
        if first == ord("P") and ord("1") <= second <= ord("6"):
            return _read_pnm(src, chr(second))
        if first == ord("B") and second == ord("M"):
            return _read_bmp(src)
        raise UnknownFormatError("file format not recognized")
    finally:
        src.release()


def read_pnm_body(stream, magic) -> ReadResult:
    """Read a PNM image whose magic number, format digit ``magic`` ('1'-'6'), is already consumed."""
    src = _ByteSource(stream)
    try:
        return _read_pnm(src, magic)
    finally:
        src.release()


def read_bmp_body(stream) -> ReadResult:
    """Read a BMP image whose two-byte ``BM`` magic is already consumed."""
    src = _ByteSource(stream)
    try:
        return _read_bmp(src)
    finally:
        src.release()
import io
import struct

import pytest

from vectrace.greymap import Greymap
from vectrace.greyread import (
    EmptyFileError,
    GreymapFormatError,
    GreymapReadError,
    UnknownFormatError,
    read_bmp_body,
    read_greymap,
    read_pnm_body,
)


def _read(data: bytes):
    return read_greymap(io.BytesIO(data))


def _pixels(gm):
    return [[gm.get(x, y) for x in range(gm.width)] for y in range(gm.height)]


def _bmp(width, height, bits, data, palette=(), comp=0, planes=1, masks=None):
    info_size = 108 if masks else 40
    table = b"".join(bytes((v, v, v, 0)) for v in palette)
    offset = 14 + info_size + len(table)
    info = struct.pack(
        "<IiiHHIIiiII",
        info_size, width, height, planes, bits, comp, len(data), 0, 0, len(palette), 0,
    )
    if masks:
        info += struct.pack("<IIII", *masks, 0) + bytes(108 - 56)
    head = b"BM" + struct.pack("<III", offset + len(data), 0, offset)
    return head + info + table + data


# --- PNM -------------------------------------------------------------------


def test_p1_ascii_bitmap():
    result = _read(b"P1\n2 2\n1 0\n0 1\n")
    assert result.complete
    gm = result.greymap
    assert (gm.width, gm.height) == (2, 2)
    # first file row is the top row, y == 1
    assert _pixels(gm) == [[255, 0], [0, 255]]


def test_p2_identity_with_max_255():
    gm = _read(b"P2\n3 1\n255\n7 128 250\n").greymap
    assert _pixels(gm) == [[7, 128, 250]]


def test_p2_max_one_scales_to_full_range():
    gm = _read(b"P2 2 1 1 0 1").greymap
    assert _pixels(gm) == [[0, 255]]


def test_p3_grey_pixels_keep_value():
    gm = _read(b"P3\n2 1\n255\n90 90 90 200 200 200\n").greymap
    assert _pixels(gm) == [[90, 200]]


def test_p4_raw_bitmap():
    gm = _read(b"P4\n3 1\n" + bytes([0b10100000])).greymap
    assert _pixels(gm) == [[0, 255, 0]]


def test_p5_raw_8bit():
    gm = _read(b"P5\n2 1\n255\n" + bytes([12, 240])).greymap
    assert _pixels(gm) == [[12, 240]]


def test_p5_raw_16bit():
    gm = _read(b"P5\n2 1\n65535\n" + b"\xff\xff\x00\x00").greymap
    assert _pixels(gm) == [[255, 0]]


def test_p6_raw_grey_pixel():
    gm = _read(b"P6\n1 1\n255\n" + bytes([90, 90, 90])).greymap
    assert gm.get(0, 0) == 90


def test_comments_in_header_are_skipped():
    gm = _read(b"# leading\nP2\n# a comment\n1 1\n# another\n255\n7\n").greymap
    assert gm.get(0, 0) == 7


@pytest.mark.parametrize("raw", [False, True])
def test_pgm_round_trip(raw):
    gm = Greymap(3, 2)
    for (x, y), v in {(0, 0): 0, (1, 0): 17, (2, 0): 255, (0, 1): 99, (2, 1): 200}.items():
        gm.put(x, y, v)
    buf = io.BytesIO()
    gm.write_pgm(buf, raw=raw)
    buf.seek(0)
    result = read_greymap(buf)
    assert result.complete
    assert result.greymap == gm


def test_concatenated_images_then_empty():
    stream = io.BytesIO(b"P2 1 1 255 9\nP5 1 1 255\n" + bytes([3]))
    assert read_greymap(stream).greymap.get(0, 0) == 9
    assert read_greymap(stream).greymap.get(0, 0) == 3
    with pytest.raises(EmptyFileError):
        read_greymap(stream)


def test_truncated_pnm_keeps_rows_started():
    result = _read(b"P5 2 3 255\n" + bytes([1, 2, 3]))
    assert not result.complete
    gm = result.greymap
    assert (gm.width, gm.height) == (2, 2)
    assert gm.get(0, 1) == 1
    assert gm.get(1, 1) == 2
    assert gm.get(0, 0) == 3
    assert gm.get(1, 0) == 0


@pytest.mark.parametrize("data", [b"", b"  \n\t", b"# only a comment\n"])
def test_empty_input(data):
    with pytest.raises(EmptyFileError):
        _read(data)


@pytest.mark.parametrize("data", [b"P7 1 1", b"GIF89a", b"X"])
def test_unknown_magic(data):
    with pytest.raises(UnknownFormatError):
        _read(data)


@pytest.mark.parametrize(
    "data, message",
    [
        (b"P2", "invalid pgm file"),
        (b"P1 x", "invalid pbm file"),
        (b"P4 1 1", "invalid pbm file"),
        (b"P3 1 1 0 ", "invalid ppm file"),
        (b"P6 1 1 255", "invalid ppm file"),
    ],
)
def test_pnm_format_errors(data, message):
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(data)
    assert str(excinfo.value) == message


def test_errors_share_a_base_class():
    with pytest.raises(GreymapReadError):
        _read(b"P2")


def test_read_pnm_body_directly():
    result = read_pnm_body(io.BytesIO(b"1 1 255 42"), "2")
    assert result.greymap.get(0, 0) == 42


# --- BMP -------------------------------------------------------------------


def test_bmp_24bit_bottom_up():
    data = bytes([10, 10, 10, 20, 20, 20, 0, 0, 30, 30, 30, 40, 40, 40, 0, 0])
    result = _read(_bmp(2, 2, 24, data))
    assert result.complete
    assert _pixels(result.greymap) == [[10, 20], [30, 40]]


def test_bmp_32bit():
    data = bytes([55, 55, 55, 0, 66, 66, 66, 0])
    gm = _read(_bmp(2, 1, 32, data)).greymap
    assert _pixels(gm) == [[55, 66]]


def test_bmp_1bit_palette():
    gm = _read(_bmp(3, 1, 1, bytes([0b10100000, 0, 0, 0]), palette=[0, 255])).greymap
    assert _pixels(gm) == [[255, 0, 255]]


def test_bmp_4bit_palette():
    palette = [i * 17 for i in range(16)]
    gm = _read(_bmp(3, 1, 4, bytes([0x12, 0x30, 0, 0]), palette=palette)).greymap
    assert _pixels(gm) == [[palette[1], palette[2], palette[3]]]


def test_bmp_8bit_palette():
    palette = [5, 6, 7]
    gm = _read(_bmp(2, 1, 8, bytes([2, 0, 0, 0]), palette=palette)).greymap
    assert _pixels(gm) == [[7, 5]]


def test_bmp_index_beyond_palette_is_black():
    gm = _read(_bmp(1, 1, 8, bytes([9, 0, 0, 0]), palette=[100, 200])).greymap
    assert gm.get(0, 0) == 0


def test_bmp_topdown():
    data = bytes([1, 0, 0, 0, 2, 0, 0, 0])
    gm = _read(_bmp(1, -2, 8, data, palette=[0, 50, 60])).greymap
    assert gm.height == 2
    assert gm.get(0, 1) == 50
    assert gm.get(0, 0) == 60


def test_bmp_rle8_repeat_and_end_of_line():
    palette = [0, 100, 200]
    data = bytes([4, 1, 0, 0, 2, 2, 0, 1])
    result = _read(_bmp(4, 2, 8, data, palette=palette, comp=1))
    assert result.complete
    assert _pixels(result.greymap) == [[100, 100, 100, 100], [200, 200, 0, 0]]


def test_bmp_rle8_verbatim_with_padding():
    palette = [0, 100, 200]
    data = bytes([0, 3, 2, 1, 0, 0, 0, 1])
    gm = _read(_bmp(3, 1, 8, data, palette=palette, comp=1)).greymap
    assert _pixels(gm) == [[200, 100, 0]]


def test_bmp_rle4_repeat_alternates():
    palette = [0, 100, 200]
    data = bytes([4, 0x12, 0, 1])
    gm = _read(_bmp(4, 1, 4, data, palette=palette, comp=2)).greymap
    assert _pixels(gm) == [[100, 200, 100, 200]]


def test_bmp_rle4_verbatim():
    palette = [0, 100, 200]
    data = bytes([0, 3, 0x21, 0x00, 0, 1])
    gm = _read(_bmp(3, 1, 4, data, palette=palette, comp=2)).greymap
    assert _pixels(gm) == [[200, 100, 0]]


def test_bmp_bitfields():
    masks = (0x00FF0000, 0x0000FF00, 0x000000FF)
    data = struct.pack("<I", 0x00404040)
    gm = _read(_bmp(1, 1, 32, data, comp=3, masks=masks)).greymap
    assert gm.get(0, 0) == 0x40


def test_bmp_old_os2_header():
    body = struct.pack("<I", 12) + struct.pack("<HHHH", 2, 1, 1, 1)
    table = bytes([0, 0, 0, 255, 255, 255])
    data = bytes([0b01000000, 0, 0, 0])
    offset = 14 + 12 + len(table)
    head = b"BM" + struct.pack("<III", offset + len(data), 0, offset)
    gm = _read(head + body + table + data).greymap
    assert _pixels(gm) == [[0, 255]]


def test_bmp_truncated_raster():
    data = bytes([10, 10, 10, 0])
    result = _read(_bmp(1, 3, 24, data))
    assert not result.complete
    assert result.greymap.height == 2
    assert result.greymap.get(0, 0) == 10


def test_bmp_16bit_rejected():
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(_bmp(1, 1, 16, bytes(4)))
    assert str(excinfo.value) == "cannot handle bmp 16-bit coding"


def test_bmp_planes_rejected():
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(_bmp(1, 1, 24, bytes(4), planes=2))
    assert str(excinfo.value) == "cannot handle bmp planes"


def test_bmp_bitfields_need_v4_header():
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(_bmp(1, 1, 32, bytes(4), comp=3))
    assert str(excinfo.value) == "invalid bmp file"


def test_bmp_bad_info_size():
    data = b"BM" + struct.pack("<IIII", 100, 0, 54, 77) + bytes(40)
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(data)
    assert str(excinfo.value) == "invalid bmp file"


def test_bmp_truncated_header():
    with pytest.raises(GreymapFormatError) as excinfo:
        _read(b"BM\x00\x00")
    assert str(excinfo.value) == "invalid bmp file"


def test_bmp_missing_row_padding_is_format_error():
    with pytest.raises(GreymapFormatError):
        _read(_bmp(1, 1, 24, bytes([10, 10, 10])))


def test_read_bmp_body_directly():
    full = _bmp(2, 1, 32, bytes([55, 55, 55, 0, 66, 66, 66, 0]))
    result = read_bmp_body(io.BytesIO(full[2:]))
    assert _pixels(result.greymap) == [[55, 66]]
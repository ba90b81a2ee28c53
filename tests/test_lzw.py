import random

import pytest

from vectrace.lzw import CLEAR_CODE, EOD_CODE, LZWEncoder, lzw_compress


def _decode(stream: bytes) -> bytes:
    """Decode an LZW stream, checking code widths along the way."""
    bitstring = "".join(f"{b:08b}" for b in stream)
    pos = 0
    table: list[bytes] = [bytes([i]) for i in range(256)] + [b"", b""]
    count = 0
    prev: bytes | None = None
    out = bytearray()
    while True:
        width = (258 + count).bit_length()
        assert 9 <= width <= 12
        assert pos + width <= len(bitstring), "stream ended without EOD"
        code = int(bitstring[pos:pos + width], 2)
        pos += width
        if code == CLEAR_CODE:
            del table[258:]
            count = 0
            prev = None
            continue
        if code == EOD_CODE:
            break
        if prev is None:
            entry = table[code]
        else:
            if code < len(table):
                entry = table[code]
            else:
                assert code == len(table)
                entry = prev + prev[:1]
            table.append(prev + entry[:1])
        out += entry
        prev = entry
        count += 1
    # only zero padding may follow, less than a byte
    assert len(bitstring) - pos < 8
    assert set(bitstring[pos:]) <= {"0"}
    return bytes(out)


def test_empty_input_stream():
    assert lzw_compress(b"") == b"\x80\x40\x40"


def test_single_byte_stream():
    assert lzw_compress(b"A") == b"\x80\x10\x60\x20"


def test_stream_starts_with_clear_code():
    assert lzw_compress(b"hello world")[0] == 0x80


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"A",
        b"AAAAAAAAAAAAAAAAAAAA",
        b"TOBEORNOTTOBEORTOBEORNOT",
        bytes(range(256)),
        b"abcabcabcabcabcabcabcabc" * 50,
    ],
)
def test_round_trip_small(data):
    assert _decode(lzw_compress(data)) == data


def test_round_trip_random_fills_dictionary():
    rng = random.Random(1234)
    data = bytes(rng.randrange(256) for _ in range(30000))
    assert _decode(lzw_compress(data)) == data


def test_round_trip_low_entropy_long():
    rng = random.Random(99)
    data = bytes(rng.choice(b"ab") for _ in range(60000))
    assert _decode(lzw_compress(data)) == data


def test_repetitive_data_compresses():
    data = b"x" * 10000
    assert len(lzw_compress(data)) < len(data) // 10


def test_chunked_equals_one_shot():
    rng = random.Random(7)
    data = bytes(rng.randrange(16) for _ in range(9000))
    encoder = LZWEncoder()
    pieces = []
    start = 0
    while start < len(data):
        size = rng.randrange(1, 200)
        pieces.append(encoder.compress(data[start:start + size]))
        start += size
    pieces.append(encoder.finish())
    assert b"".join(pieces) == lzw_compress(data)


def test_accepts_bytearray_and_memoryview():
    data = b"the quick brown fox"
    expected = lzw_compress(data)
    assert lzw_compress(bytearray(data)) == expected
    assert lzw_compress(memoryview(data)) == expected


def test_compress_after_finish_raises():
    encoder = LZWEncoder()
    encoder.compress(b"abc")
    encoder.finish()
    with pytest.raises(ValueError):
        encoder.compress(b"more")


def test_finish_twice_yields_nothing_more():
    encoder = LZWEncoder()
    first = encoder.compress(b"abc") + encoder.finish()
    assert encoder.finish() == b""
    assert first == lzw_compress(b"abc")


def test_str_input_rejected():
    with pytest.raises(TypeError):
        lzw_compress("text")
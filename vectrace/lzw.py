"""Adaptive LZW compression as used by the PostScript LZWDecode filter.

The encoder emits a clear code (256) before the first symbol and whenever
the dictionary fills up, uses variable code widths of 9 to 12 bits, and
terminates the stream with an end-of-data code (257).
"""

from __future__ import annotations

CLEAR_CODE = 256
EOD_CODE = 257
FIRST_FREE_CODE = 258
_DICT_FULL = 4094  # once reached, the next new string would need 13 bits

__all__ = ["LZWEncoder", "lzw_compress", "CLEAR_CODE", "EOD_CODE"]


class LZWEncoder:
    """Incremental LZW encoder.

    Feed data with :meth:`compress`, which returns whatever complete output
    bytes are ready, then call :meth:`finish` once to obtain the tail of the
    stream, including the end-of-data code and final padding.
    """

    def __init__(self):
        self._table: dict[tuple[int, int], int] = {}
        self._next_code = FIRST_FREE_CODE
        self._current: int | None = None
        self._bits = 0
        self._nbits = 0
        self._finished = False

    def _reset_table(self) -> None:
        self._table.clear()
        self._next_code = FIRST_FREE_CODE
        self._current = None

    def _emit(self, code: int) -> None:
        width = self._next_code.bit_length()
        self._bits = (self._bits << width) | (code & ((1 << width) - 1))
        self._nbits += width

    def _drain(self, out: bytearray) -> None:
        while self._nbits >= 8:
            self._nbits -= 8
            out.append((self._bits >> self._nbits) & 0xFF)
        self._bits &= (1 << self._nbits) - 1

    def _encode_byte(self, c: int) -> None:
        if self._current is None:
            self._emit(CLEAR_CODE)
            self._current = c
            return

        key = (self._current, c)
        code = self._table.get(key)
        if code is not None:
            self._current = code
            return

        self._emit(self._current)
        if self._next_code >= _DICT_FULL:
            self._next_code += 1
            self._emit(CLEAR_CODE)
            self._reset_table()
        else:
            self._table[key] = self._next_code
            self._next_code += 1
        self._current = c

    def _encode_eod(self) -> None:
        if self._current is None:
            self._emit(CLEAR_CODE)
            self._next_code = FIRST_FREE_CODE
            self._emit(EOD_CODE)
            return
        self._emit(self._current)
        self._next_code += 1
        self._emit(EOD_CODE)

    def compress(self, data) -> bytes:
        """Encode a chunk of bytes and return the output bytes completed so far."""
        if self._finished:
            raise ValueError("encoder already finished")
        out = bytearray()
        for c in bytes(data):
            self._encode_byte(c)
            self._drain(out)
        return bytes(out)

    def finish(self) -> bytes:
        """End the stream and return the remaining output, zero padded."""
        if self._finished:
            return b""
        self._finished = True
        self._encode_eod()
        out = bytearray()
        self._drain(out)
        if self._nbits:
            out.append((self._bits << (8 - self._nbits)) & 0xFF)
            self._bits = 0
            self._nbits = 0
        return bytes(out)


def lzw_compress(data) -> bytes:
    """Compress a complete byte string into a full LZW stream."""
    encoder = LZWEncoder()
    return encoder.compress(data) + encoder.finish()
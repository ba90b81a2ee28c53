# vectrace

Building blocks for a tool that turns bitmaps into vector graphics: image
input, greymaps, LZW compression and the command-line option parser. The
package is pure Python and has no third-party dependencies.

## Modules

- `vectrace.lzw`: adaptive LZW compression in the form read by the
  PostScript `LZWDecode` filter. Codes are 9 to 12 bits wide, a clear code
  (256) starts the stream and is emitted again whenever the dictionary
  fills, and an end-of-data code (257) ends it. Use `lzw_compress(data)`
  for a whole byte string, or `LZWEncoder` with `compress()` and a final
  `finish()` to feed data in pieces.
- `vectrace.greymap`: `Greymap`, a grid of signed 16-bit samples with the
  origin in the lower left corner (0 is black, 255 is white). It offers
  bounds-checked `get`, `put`, `increment` and `invert_pixel`, clamped
  access with `get_clamped`, `clear`, `copy`, `flip`, `truncate`,
  `write_pgm` (P2 or raw P5, with gamma correction) and a character-art
  `render_ascii` for debugging. `GreyMode` (`NONZERO`, `ODD`, `POSITIVE`,
  `NEGATIVE`) chooses how out-of-range samples are folded into 0..255 on
  output.
- `vectrace.greyread`: `read_greymap(stream)` reads one PNM (P1 to P6) or
  BMP (1 to 8, 24 and 32 bit, RLE4, RLE8 and 32-bit bitfield encodings)
  image from a binary stream and returns a `ReadResult` holding the
  `greymap` and a `complete` flag, which is False when the data ended early.
  Errors are `GreymapFormatError` (corrupt or unsupported data),
  `EmptyFileError` (only whitespace and comments) and `UnknownFormatError`
  (unknown magic number), all subclasses of `GreymapReadError`.
  `read_pnm_body` and `read_bmp_body` read an image whose magic number has
  already been consumed.
- `vectrace.units`: `parse_dimension` and `parse_dimensions` for values such
  as `1.5in`, `7cm` or `8.5x11in` (returning `Dimension` objects and the
  unparsed rest), `parse_color` for `#rrggbb`, and `normalize_angle`, which
  brings an angle into (-180, 180].
- `vectrace.catalog`: the tables of output backends (`Backend`), page
  formats (`PageFormat`) and turn policies (`TurnPolicy`), with
  case-insensitive lookup by exact name or unique prefix
  (`lookup_backend`, `lookup_page_format`, `lookup_turn_policy`), which
  raise `NameLookupError` otherwise; `make_output_filename` derives an
  output file name from an input file name.
- `vectrace.options`: `parse_options(argv)` parses a GNU-style command line
  (clustered short options, abbreviated long options, `--`) into an
  `Options` object, raising `OptionError` for invalid input; `usage_text()`
  returns the help text.

## Examples

Compress a byte string with LZW:

```python
from vectrace.lzw import LZWEncoder, lzw_compress

packed = lzw_compress(b"TOBEORNOTTOBEORTOBEORNOT")

encoder = LZWEncoder()
out = encoder.compress(b"first chunk, ")
out += encoder.compress(b"second chunk")
out += encoder.finish()
```

Build a small greymap and write it as a PGM file:

```python
from vectrace.greymap import Greymap, GreyMode

gm = Greymap(4, 2)
gm.clear(255)
gm.put(1, 0, 0)
with open("small.pgm", "wb") as stream:
    gm.write_pgm(stream, comment="example", raw=True, mode=GreyMode.POSITIVE, gamma=1.0)
```

Read an image from a binary stream:

```python
from vectrace.greyread import read_greymap, GreymapReadError

with open("picture.pgm", "rb") as stream:
    try:
        result = read_greymap(stream)
    except GreymapReadError as exc:
        print("cannot read image:", exc)
    else:
        print(result.greymap.width, result.greymap.height, result.complete)
```

Parse dimensions, colours and angles:

```python
from vectrace.units import parse_dimensions, parse_color, normalize_angle

width, height, rest = parse_dimensions("8.5x11in")
print(width.to_points(72), height.to_points(72))  # 612.0 792.0
print(parse_color("#ff8000"))                     # 16744448
print(normalize_angle(270.0))                     # -90.0
```

Look up names and parse a command line:

```python
from vectrace.catalog import lookup_backend
from vectrace.options import parse_options, usage_text

print(lookup_backend("sv").name)  # svg
opts = parse_options(["-b", "pdf", "-W", "3in", "image.pbm"])
print(opts.backend.name, opts.width, opts.infiles)
print(usage_text())
```

## What this package does not do

It does not trace bitmaps into paths and has no output backends: the
backend table in `vectrace.catalog` only describes backends by name,
extension and characteristics. There is no command to run; `parse_options`
and `usage_text` supply the option handling and help text for a front end
but nothing here reads input files, traces them and writes vector output.

## Testing

The test suite uses pytest, declared in the `test` extra:

```
pip install -e .[test]
pytest
```
"""Named choices offered on the command line: backends, page sizes, turn policies.

Names are matched case-insensitively. An exact match always wins;
otherwise a unique prefix is accepted and several prefix matches make
the name ambiguous.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from vectrace.units import DEFAULT_DIM, parse_dimensions

__all__ = [
    "TurnPolicy",
    "Backend",
    "PageFormat",
    "NameLookupError",
    "BACKENDS",
    "PAGE_FORMATS",
    "DEFAULT_BACKEND",
    "lookup_backend",
    "backend_names",
    "format_name_list",
    "lookup_page_format",
    "lookup_turn_policy",
    "make_output_filename",
]


class TurnPolicy(Enum):
    """How to resolve ambiguities in path decomposition."""

    BLACK = 0
    WHITE = 1
    LEFT = 2
    RIGHT = 3
    MINORITY = 4
    MAJORITY = 5
    RANDOM = 6

    @property
    def label(self) -> str:
        """The name used on the command line."""
        return self.name.lower()


@dataclass(frozen=True)
class Backend:
    """An output backend and its characteristics."""

    name: str
    ext: str
    fixed: bool = False
    pixel: bool = False
    multi: bool = False
    opticurve: bool = True


@dataclass(frozen=True)
class PageFormat:
    """A page size in PostScript points."""

    name: str
    width: int
    height: int


BACKENDS: tuple[Backend, ...] = (
    Backend("svg", ".svg"),
    Backend("pdf", ".pdf", multi=True),
    Backend("pdfpage", ".pdf", fixed=True, multi=True),
    Backend("eps", ".eps"),
    Backend("postscript", ".ps", fixed=True, multi=True),
    Backend("ps", ".ps", fixed=True, multi=True),
    Backend("dxf", ".dxf", pixel=True),
    Backend("geojson", ".json", pixel=True),
    Backend("pgm", ".pgm", pixel=True, multi=True),
    Backend("gimppath", ".svg", pixel=True),
    Backend("xfig", ".fig", fixed=True, opticurve=False),
)

DEFAULT_BACKEND = "eps"

PAGE_FORMATS: tuple[PageFormat, ...] = (
    PageFormat("a4", 595, 842),
    PageFormat("a3", 842, 1191),
    PageFormat("a5", 421, 595),
    PageFormat("b5", 516, 729),
    PageFormat("letter", 612, 792),
    PageFormat("legal", 612, 1008),
    PageFormat("tabloid", 792, 1224),
    PageFormat("statement", 396, 612),
    PageFormat("executive", 540, 720),
    PageFormat("folio", 612, 936),
    PageFormat("quarto", 610, 780),
    PageFormat("10x14", 720, 1008),
)

_CHOICES_PREFIX = "Use one of: "


class NameLookupError(ValueError):
    """A name matched none, or more than one, of the available choices.

    ``hint`` lists the valid choices, ready to show to a user.
    """

    def __init__(self, kind: str, name: str, ambiguous: bool, hint: str):
        self.kind = kind
        self.name = name
        self.ambiguous = ambiguous
        self.hint = hint
        word = "ambiguous" if ambiguous else "unrecognized"
        super().__init__(f"{word} {kind} -- {name}")


def format_name_list(names, start_column, line_length) -> str:
    """Join names with ", ", breaking the line before a name that would pass ``line_length``.

    ``start_column`` is the column the text begins in.
    """
    names = list(names)
    parts = []
    column = start_column
    for position, name in enumerate(names):
        if column + len(name) > line_length:
            parts.append("\n")
            column = 0
        parts.append(name)
        column += len(name)
        if position < len(names) - 1:
            parts.append(", ")
            column += 2
    return "".join(parts)


def _choices_hint(names, line_length: int, tail: str) -> str:
    listing = format_name_list(names, len(_CHOICES_PREFIX), line_length)
    return f"{_CHOICES_PREFIX}{listing}{tail}"


def _match(name: str, candidates, allow_prefix=lambda text: True):
    """Return (exact, prefix_matches) for a case-insensitive name lookup."""
    wanted = name.lower()
    prefixed = []
    for label, item in candidates:
        if label.lower() == wanted:
            return item, []
        if label.lower().startswith(wanted) and allow_prefix(name):
            prefixed.append(item)
    return None, prefixed


def backend_names() -> tuple[str, ...]:
    """Names of all backends, in order."""
    return tuple(b.name for b in BACKENDS)


def lookup_backend(name) -> Backend:
    """Find a backend by name or unique prefix; raise NameLookupError otherwise."""
    exact, prefixed = _match(name, ((b.name, b) for b in BACKENDS))
    if exact is not None:
        return exact
    if len(prefixed) == 1:
        return prefixed[0]
    raise NameLookupError(
        "backend", name, bool(prefixed), _choices_hint(backend_names(), 70, ".")
    )


def lookup_turn_policy(name) -> TurnPolicy:
    """Find a turn policy by name or unique prefix; raise NameLookupError otherwise."""
    exact, prefixed = _match(name, ((p.label, p) for p in TurnPolicy))
    if exact is not None:
        return exact
    if len(prefixed) == 1:
        return prefixed[0]
    raise NameLookupError(
        "turnpolicy",
        name,
        bool(prefixed),
        _choices_hint([p.label for p in TurnPolicy], 75, "."),
    )


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def lookup_page_format(name) -> PageFormat:
    """Resolve a page format name, unique prefix, or ``<dim>x<dim>`` size.

    A prefix of "10x14" is not accepted as a name. Dimensions without a
    unit are taken in the default unit. Raises NameLookupError if nothing
    fits.
    """
    exact, prefixed = _match(
        name,
        ((p.name, p) for p in PAGE_FORMATS),
        allow_prefix=lambda text: not text.startswith("1"),
    )
    if exact is not None:
        return exact
    if len(prefixed) == 1:
        return prefixed[0]
    dx, dy, rest = parse_dimensions(name)
    if not rest:
        return PageFormat(
            name,
            _round_half_away(dx.to_points(DEFAULT_DIM)),
            _round_half_away(dy.to_points(DEFAULT_DIM)),
        )
    raise NameLookupError(
        "page format",
        name,
        bool(prefixed),
        _choices_hint(
            [p.name for p in PAGE_FORMATS], 75, ", or specify <dim>x<dim>."
        ),
    )


def make_output_filename(infile, ext) -> str:
    """Derive an output filename by replacing the input's extension with ``ext``.

    Standard input ("-") maps to standard output ("-"). If the result
    would equal the input name, "-out" is appended to the input name instead.
    """
    if infile == "-":
        return "-"
    stem, dot, _ = infile.rpartition(".")
    outfile = (stem if dot else infile) + ext
    if outfile == infile:
        return infile + "-out"
    return outfile
"""Command-line option parsing for the tracer.

Options follow GNU conventions: short options may be clustered
(``-in``), a short option's argument may be attached (``-W3in``) or
given as the next word, long options may be abbreviated to any
unique prefix and take their argument after ``=`` or as the next
word. Options and file names may be mixed freely, and ``--`` ends
option processing. When the POSIXLY_CORRECT environment variable is
set, the first file name ends option processing instead.
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from enum import Enum

from vectrace.catalog import (
    DEFAULT_BACKEND,
    Backend,
    NameLookupError,
    TurnPolicy,
    backend_names,
    format_name_list,
    lookup_backend,
    lookup_page_format,
    lookup_turn_policy,
)
from vectrace.units import (
    DEFAULT_DIM_NAME,
    DEFAULT_PAPERFORMAT,
    DEFAULT_PAPERHEIGHT,
    DEFAULT_PAPERWIDTH,
    Dimension,
    normalize_angle,
    parse_color,
    parse_dimension,
    parse_dimensions,
)

__all__ = ["Action", "OptionError", "Options", "parse_options", "usage_text", "PROGRAM"]

PROGRAM = "vectrace"

_TRY_HELP = "Try --help for more info"

_SHORT_SPEC = "hvVlW:H:r:x:S:M:L:R:T:B:A:P:t:u:c23epsgb:d:C:z:G:nqa:O:o:k:i"

# long name -> (takes an argument, key used when applying the option)
_LONG: dict[str, tuple[bool, str]] = {
    "help": (False, "h"),
    "version": (False, "v"),
    "show-defaults": (False, "V"),
    "license": (False, "l"),
    "width": (True, "W"),
    "height": (True, "H"),
    "resolution": (True, "r"),
    "scale": (True, "x"),
    "stretch": (True, "S"),
    "margin": (True, "M"),
    "leftmargin": (True, "L"),
    "rightmargin": (True, "R"),
    "topmargin": (True, "T"),
    "bottommargin": (True, "B"),
    "tight": (False, "tight"),
    "rotate": (True, "A"),
    "pagesize": (True, "P"),
    "turdsize": (True, "t"),
    "unit": (True, "u"),
    "cleartext": (False, "c"),
    "level2": (False, "2"),
    "level3": (False, "3"),
    "eps": (False, "e"),
    "postscript": (False, "p"),
    "svg": (False, "s"),
    "pgm": (False, "g"),
    "backend": (True, "b"),
    "debug": (True, "d"),
    "color": (True, "C"),
    "fillcolor": (True, "fillcolor"),
    "turnpolicy": (True, "z"),
    "gamma": (True, "G"),
    "longcurve": (False, "n"),
    "longcoding": (False, "q"),
    "alphamax": (True, "a"),
    "opttolerance": (True, "O"),
    "output": (True, "o"),
    "blacklevel": (True, "k"),
    "invert": (False, "i"),
    "opaque": (False, "opaque"),
    "group": (False, "group"),
    "flat": (False, "flat"),
    "progress": (False, "progress"),
    "tty": (True, "tty"),
}


def _parse_short_spec(spec: str) -> dict[str, bool]:
    table: dict[str, bool] = {}
    chars = iter(enumerate(spec))
    for pos, ch in chars:
        takes = spec[pos + 1:pos + 2] == ":"
        table[ch] = takes
        if takes:
            next(chars, None)
    return table


_SHORT = _parse_short_spec(_SHORT_SPEC)

_ATOI = re.compile(r"\s*([+-]?\d+)")


class Action(Enum):
    """What the program should do after parsing its options."""

    RUN = "run"
    HELP = "help"
    VERSION = "version"
    LICENSE = "license"


class OptionError(ValueError):
    """An invalid command line. ``hint`` is advice to show the user."""

    def __init__(self, message: str, hint: str = _TRY_HELP):
        super().__init__(message)
        self.hint = hint


@dataclass
class Options:
    """Settings gathered from the command line.

    Dimensions, resolutions and scaling factors that were not given
    are None. ``grouping`` is 0 for a flat image, 1 for connected
    components and 2 for hierarchical grouping.
    """

    action: Action = Action.RUN
    backend: Backend = field(default_factory=lambda: lookup_backend(DEFAULT_BACKEND))
    debug: int = 0
    width: Dimension | None = None
    height: Dimension | None = None
    rx: float | None = None
    ry: float | None = None
    sx: float | None = None
    sy: float | None = None
    stretch: float = 1.0
    left_margin: Dimension | None = None
    right_margin: Dimension | None = None
    top_margin: Dimension | None = None
    bottom_margin: Dimension | None = None
    angle: float = 0.0
    paper_width: int = DEFAULT_PAPERWIDTH
    paper_height: int = DEFAULT_PAPERHEIGHT
    tight: bool = False
    unit: float = 10.0
    compress: bool = True
    ps_level: int = 2
    color: int = 0x000000
    fill_color: int = 0xFFFFFF
    gamma: float = 2.2
    turd_size: int = 2
    turn_policy: TurnPolicy = TurnPolicy.MINORITY
    alpha_max: float = 1.0
    opticurve: bool = True
    opt_tolerance: float = 0.2
    long_coding: bool = False
    outfile: str | None = None
    infiles: list[str] = field(default_factory=list)
    some_infiles: bool = False
    blacklevel: float = 0.5
    invert: bool = False
    opaque: bool = False
    grouping: int = 1
    progress: bool = False
    progress_bar: str = "vt100"


class _OptionScanner:
    """Iterate over (key, argument) pairs; operands are collected on the side."""

    def __init__(self, args: list[str], posixly_correct: bool):
        self._args = args
        self._posix = posixly_correct
        self.operands: list[str] = []
        self.saw_terminator = False

    def __iter__(self):
        args = self._args
        i = 0
        while i < len(args):
            arg = args[i]
            i += 1
            if arg == "--":
                self.saw_terminator = True
                self.operands.extend(args[i:])
                return
            if not arg.startswith("-") or arg == "-":
                if self._posix:
                    self.operands.extend(args[i - 1:])
                    return
                self.operands.append(arg)
                continue
            if arg.startswith("--"):
                key, value, i = self._long(arg, i)
                yield key, value
                continue
            j = 1
            while j < len(arg):
                c = arg[j]
                j += 1
                takes = _SHORT.get(c)
                if takes is None:
                    word = "illegal" if self._posix else "invalid"
                    raise OptionError(f"{word} option -- {c}")
                if not takes:
                    yield c, None
                    continue
                if j < len(arg):
                    value = arg[j:]
                elif i < len(args):
                    value = args[i]
                    i += 1
                else:
                    raise OptionError(f"option requires an argument -- {c}")
                yield c, value
                break

    def _long(self, arg: str, i: int) -> tuple[str, str | None, int]:
        body = arg[2:]
        name, eq, value = body.partition("=")
        if name in _LONG:
            found = name
        else:
            matches = [long_name for long_name in _LONG if long_name.startswith(name)]
            if len(matches) > 1:
                raise OptionError(f"option '{arg}' is ambiguous")
            if not matches:
                raise OptionError(f"unrecognized option '{arg}'")
            found = matches[0]
        takes, key = _LONG[found]
        if eq:
            if not takes:
                raise OptionError(f"option '--{found}' doesn't allow an argument")
            return key, value, i
        if takes:
            if i >= len(self._args):
                raise OptionError(f"option '{arg}' requires an argument")
            return key, self._args[i], i + 1
        return key, None, i


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    return parse_dimension(text)[0].value


def _number(text: str, what: str) -> float:
    dim, rest = parse_dimension(text)
    if rest or dim.unit:
        raise OptionError(f"invalid {what} -- {text}")
    return dim.value


def _dimension(text: str) -> Dimension:
    dim, rest = parse_dimension(text)
    if rest:
        raise OptionError(f"invalid dimension -- {text}")
    return dim


def _factor_pair(text: str, what: str, nonzero: bool) -> tuple[float, float]:
    dx, dy, rest = parse_dimensions(text)
    if not rest and not dx.unit and not dy.unit:
        if not nonzero or (dx.value != 0.0 and dy.value != 0.0):
            return dx.value, dy.value
    dim, rest = parse_dimension(text)
    if not rest and not dim.unit and (not nonzero or dim.value != 0.0):
        return dim.value, dim.value
    raise OptionError(f"invalid {what} -- {text}")


def _lookup(lookup, text: str):
    try:
        return lookup(text)
    except NameLookupError as exc:
        raise OptionError(str(exc), hint=exc.hint) from None


def _color(text: str) -> int:
    try:
        return parse_color(text)
    except ValueError:
        raise OptionError(f"invalid color -- {text}") from None


def _apply(opts: Options, key: str, value: str | None) -> Action:
    match key:
        case "h":
            return Action.HELP
        case "v" | "V":
            return Action.VERSION
        case "l":
            return Action.LICENSE
        case "W":
            opts.width = _dimension(value)
        case "H":
            opts.height = _dimension(value)
        case "r":
            opts.rx, opts.ry = _factor_pair(value, "resolution", nonzero=True)
        case "x":
            opts.sx, opts.sy = _factor_pair(value, "scaling factor", nonzero=False)
        case "S":
            opts.stretch = _atof(value)
        case "M":
            margin = _dimension(value)
            opts.left_margin = opts.right_margin = margin
            opts.top_margin = opts.bottom_margin = margin
        case "L":
            opts.left_margin = _dimension(value)
        case "R":
            opts.right_margin = _dimension(value)
        case "T":
            opts.top_margin = _dimension(value)
        case "B":
            opts.bottom_margin = _dimension(value)
        case "tight":
            opts.tight = True
        case "A":
            opts.angle = normalize_angle(_number(value, "angle"))
        case "P":
            page = _lookup(lookup_page_format, value)
            opts.paper_width, opts.paper_height = page.width, page.height
        case "t":
            opts.turd_size = _atoi(value)
        case "u":
            opts.unit = _number(value, "unit")
        case "c":
            opts.ps_level, opts.compress = 2, False
        case "2":
            opts.ps_level, opts.compress = 2, True
        case "3":
            opts.ps_level, opts.compress = 3, True
        case "e":
            opts.backend = lookup_backend("eps")
        case "p":
            opts.backend = lookup_backend("postscript")
        case "s":
            opts.backend = lookup_backend("svg")
        case "g":
            opts.backend = lookup_backend("pgm")
        case "b":
            opts.backend = _lookup(lookup_backend, value)
        case "d":
            opts.debug = _atoi(value)
        case "C":
            opts.color = _color(value)
        case "fillcolor":
            opts.fill_color = _color(value)
            opts.opaque = True
        case "z":
            opts.turn_policy = _lookup(lookup_turn_policy, value)
        case "G":
            opts.gamma = _atof(value)
        case "n":
            opts.opticurve = False
        case "q":
            opts.long_coding = True
        case "a":
            opts.alpha_max = _number(value, "alphamax")
        case "O":
            opts.opt_tolerance = _number(value, "opttolerance")
        case "o":
            opts.outfile = value
        case "k":
            opts.blacklevel = _number(value, "blacklevel")
        case "i":
            opts.invert = True
        case "opaque":
            opts.opaque = True
        case "group":
            opts.grouping = 2
        case "flat":
            opts.grouping = 0
        case "progress":
            opts.progress = True
        case "tty":
            if value not in ("dumb", "vt100"):
                raise OptionError(f"invalid tty mode -- {value}")
            opts.progress_bar = value
        case _:
            raise OptionError(f"Unimplemented option -- {key}")
    return Action.RUN


def parse_options(argv=None) -> Options:
    """Parse command-line arguments (without the program name).

    Processing stops at the first help, version or license request,
    which is reported in ``Options.action``. Raises OptionError for an
    invalid command line.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    opts = Options()
    scanner = _OptionScanner(args, "POSIXLY_CORRECT" in os.environ)
    for key, value in scanner:
        action = _apply(opts, key, value)
        if action is not Action.RUN:
            opts.action = action
            return opts
    opts.infiles = list(scanner.operands)
    opts.some_infiles = bool(opts.infiles) or scanner.saw_terminator
    return opts


def usage_text() -> str:
    """Return the help text describing all options."""
    p = PROGRAM
    lines = [
        f"Usage: {p} [options] [filename...]",
        "General options:",
        " -h, --help                 - print this help message and exit",
        " -v, --version              - print version info and exit",
        " -l, --license              - print license info and exit",
        "File selection:",
        " <filename>                 - an input file",
        " -o, --output <filename>    - write all output to this file",
        " --                         - end of options; 0 or more input filenames follow",
        "Backend selection:",
        " -b, --backend <name>       - select backend by name",
        " -b svg, -s, --svg          - SVG backend (scalable vector graphics)",
        " -b pdf                     - PDF backend (portable document format)",
        " -b pdfpage                 - fixed page-size PDF backend",
        " -b eps, -e, --eps          - EPS backend (encapsulated PostScript) (default)",
        " -b ps, -p, --postscript    - PostScript backend",
        " -b pgm, -g, --pgm          - PGM backend (portable greymap)",
        " -b dxf                     - DXF backend (drawing interchange format)",
        " -b geojson                 - GeoJSON backend",
        " -b gimppath                - Gimppath backend (GNU Gimp)",
        " -b xfig                    - XFig backend",
        "Algorithm options:",
        " -z, --turnpolicy <policy>  - how to resolve ambiguities in path decomposition",
        " -t, --turdsize <n>         - suppress speckles of up to this size (default 2)",
        " -a, --alphamax <n>         - corner threshold parameter (default 1)",
        " -n, --longcurve            - turn off curve optimization",
        " -O, --opttolerance <n>     - curve optimization tolerance (default 0.2)",
        " -u, --unit <n>             - quantize output to 1/unit pixels (default 10)",
        " -d, --debug <n>            - produce debugging output of type n (n=1,2,3)",
        "Scaling and placement options:",
        f" -P, --pagesize <format>    - page size (default is {DEFAULT_PAPERFORMAT})",
        " -W, --width <dim>          - width of output image",
        " -H, --height <dim>         - height of output image",
        " -r, --resolution <n>[x<n>] - resolution (in dpi) (dimension-based backends)",
        " -x, --scale <n>[x<n>]      - scaling factor (pixel-based backends)",
        " -S, --stretch <n>          - yresolution/xresolution",
        " -A, --rotate <angle>       - rotate counterclockwise by angle",
        " -M, --margin <dim>         - margin",
        " -L, --leftmargin <dim>     - left margin",
        " -R, --rightmargin <dim>    - right margin",
        " -T, --topmargin <dim>      - top margin",
        " -B, --bottommargin <dim>   - bottom margin",
        " --tight                    - remove whitespace around the input image",
        "Color options, supported by some backends:",
        " -C, --color #rrggbb        - set foreground color (default black)",
        " --fillcolor #rrggbb        - set fill color (default transparent)",
        " --opaque                   - make white shapes opaque",
        "SVG options:",
        " --group                    - group related paths together",
        " --flat                     - whole image as a single path",
        "Postscript/EPS/PDF options:",
        " -c, --cleartext            - do not compress the output",
        " -2, --level2               - use postscript level 2 compression (default)",
        " -3, --level3               - use postscript level 3 compression",
        " -q, --longcoding           - do not optimize for file size",
        "PGM options:",
        " -G, --gamma <n>            - gamma value for anti-aliasing (default 2.2)",
        "Frontend options:",
        " -k, --blacklevel <n>       - black/white cutoff in input file (default 0.5)",
        " -i, --invert               - invert bitmap",
        "Progress bar options:",
        " --progress                 - show progress bar",
        " --tty <mode>               - progress bar rendering: vt100 or dumb",
        "",
        "Dimensions can have optional units, e.g. 6.5in, 15cm, 100pt.",
        f"Default is {DEFAULT_DIM_NAME} (or pixels for pgm, dxf, and gimppath backends).",
        "Possible input file formats are: pnm (pbm, pgm, ppm), bmp.",
    ]
    prefix = "Backends are: "
    backends = format_name_list(backend_names(), len(prefix), 78)
    return "\n".join(lines) + f"\n{prefix}{backends}.\n"
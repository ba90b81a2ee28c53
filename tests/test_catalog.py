import pytest

from vectrace.catalog import (
    BACKENDS,
    PAGE_FORMATS,
    NameLookupError,
    TurnPolicy,
    backend_names,
    format_name_list,
    lookup_backend,
    lookup_page_format,
    lookup_turn_policy,
    make_output_filename,
)


def test_backend_exact_lookup():
    backend = lookup_backend("svg")
    assert backend.name == "svg"
    assert backend.ext == ".svg"


def test_backend_lookup_is_case_insensitive():
    assert lookup_backend("PDF").name == "pdf"


def test_backend_unique_prefix():
    assert lookup_backend("pdfp").name == "pdfpage"
    assert lookup_backend("x").name == "xfig"


def test_backend_exact_beats_prefix():
    assert lookup_backend("ps").name == "ps"
    assert lookup_backend("pdf").name == "pdf"


def test_backend_ambiguous_prefix():
    with pytest.raises(NameLookupError) as info:
        lookup_backend("p")
    assert info.value.ambiguous is True
    assert str(info.value) == "ambiguous backend -- p"


def test_backend_unknown():
    with pytest.raises(NameLookupError) as info:
        lookup_backend("zzz")
    assert info.value.ambiguous is False
    assert str(info.value) == "unrecognized backend -- zzz"
    assert info.value.hint.startswith("Use one of: svg, pdf")
    assert info.value.hint.endswith("xfig.")


def test_backend_flags():
    assert lookup_backend("xfig").opticurve is False
    assert lookup_backend("pgm").pixel is True
    assert lookup_backend("postscript").fixed is True
    assert lookup_backend("eps").multi is False


def test_backend_names_order():
    names = backend_names()
    assert names[0] == "svg"
    assert names[-1] == "xfig"
    assert len(names) == len(BACKENDS)


def test_format_name_list_short():
    assert format_name_list(["a", "b"], 0, 78) == "a, b"


def test_format_name_list_wraps_but_keeps_content():
    names = backend_names()
    text = format_name_list(names, 14, 30)
    assert "\n" in text
    assert text.replace("\n", "") == ", ".join(names)
    for line in text.split("\n")[1:]:
        assert len(line.rstrip()) <= 30


def test_page_format_exact():
    fmt = lookup_page_format("a4")
    assert (fmt.width, fmt.height) == (595, 842)


def test_page_format_prefix():
    assert lookup_page_format("let").name == "letter"
    assert lookup_page_format("LEGAL").name == "legal"


def test_page_format_10x14_exact():
    fmt = lookup_page_format("10x14")
    assert (fmt.width, fmt.height) == (720, 1008)


def test_page_format_dimensions_in_inches():
    fmt = lookup_page_format("8.5x11in")
    assert (fmt.width, fmt.height) == (612, 792)


def test_page_format_metric_matches_a4():
    a4 = lookup_page_format("a4")
    fmt = lookup_page_format("210mmx297mm")
    assert (fmt.width, fmt.height) == (a4.width, a4.height)


def test_page_format_ambiguous():
    with pytest.raises(NameLookupError) as info:
        lookup_page_format("a")
    assert info.value.ambiguous is True
    assert info.value.hint.endswith("or specify <dim>x<dim>.")


def test_page_format_unknown():
    with pytest.raises(NameLookupError) as info:
        lookup_page_format("huge")
    assert str(info.value) == "unrecognized page format -- huge"
    for fmt in PAGE_FORMATS:
        assert fmt.name in info.value.hint


def test_turn_policy_ambiguous():
    with pytest.raises(NameLookupError) as info:
        lookup_turn_policy("m")
    assert info.value.ambiguous is True
    assert "minority" in info.value.hint


def test_turn_policy_unknown():
    with pytest.raises(NameLookupError) as info:
        lookup_turn_policy("purple")
    assert info.value.ambiguous is False


def test_output_filename_replaces_extension():
    assert make_output_filename("image.pbm", ".svg") == "image.svg"


def test_output_filename_without_extension():
    assert make_output_filename("image", ".eps") == "image.eps"


def test_output_filename_stdin():
    assert make_output_filename("-", ".svg") == "-"


def test_output_filename_same_as_input():
    assert make_output_filename("x.svg", ".svg") == "x.svg-out"


def test_output_filename_uses_last_dot():
    assert make_output_filename("a.b.pgm", ".pdf") == "a.b.pdf"
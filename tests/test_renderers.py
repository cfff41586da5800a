"""Unit tests for the SVG and HTML layout renderers."""

import xml.etree.ElementTree as ET

from scorelayout.glyphs import GlyphOutline, GlyphSource
from scorelayout.layout import compute_layout
from scorelayout.layout_models import LayoutResult
from scorelayout.renderers import HtmlRenderer, SvgRenderer
from scorelayout.score_models import MeasureInput, NoteInput, ScoreInput, VoiceInput

SVG_NS = "{http://www.w3.org/2000/svg}"


class _NoGlyphs(GlyphSource):
    def glyph_outline(self, name: str) -> GlyphOutline | None:
        return None


def _sample_layout() -> LayoutResult:
    score = ScoreInput(
        measures=(
            MeasureInput(
                clef="treble",
                time_signature="4/4",
                voices=(
                    VoiceInput(
                        notes=(
                            NoteInput(keys=("C#/5",), duration="8"),
                            NoteInput(keys=("D/5",), duration="8"),
                            NoteInput(keys=("A/5",), duration="q"),
                            NoteInput(keys=("B/4/r",), duration="h"),
                        )
                    ),
                ),
                end_barline="end",
            ),
        )
    )
    return compute_layout(score)


def _parse(svg: str) -> ET.Element:
    return ET.fromstring(svg)


def _text_glyphs(root: ET.Element) -> list[str]:
    return [element.text or "" for element in root.iter(f"{SVG_NS}text")]


def test_svg_renderer_default_extension() -> None:
    assert SvgRenderer().default_extension == ".svg"


def test_html_renderer_default_extension() -> None:
    assert HtmlRenderer().default_extension == ".html"


def test_svg_renderer_document_size() -> None:
    svg = SvgRenderer().render(_sample_layout())
    assert svg.startswith("<svg")
    assert svg.endswith("</svg>")
    root = _parse(svg)
    assert root.get("width") == "600"
    assert root.get("height") == "160"
    assert root.get("viewBox") == "0 0 600 160"


def test_svg_renderer_draws_staff_lines_and_stems() -> None:
    root = _parse(SvgRenderer().render(_sample_layout()))
    lines = list(root.iter(f"{SVG_NS}line"))
    stems = [line for line in lines if line.get("stroke-width") == "1.5"]
    staff = [line for line in lines if line.get("x1") == "0" and line.get("x2") == "600"]
    assert len(stems) == 3
    assert [line.get("y1") for line in staff] == ["40", "50", "60", "70", "80"]


def test_svg_renderer_uses_bravura_code_points() -> None:
    root = _parse(SvgRenderer().render(_sample_layout()))
    assert {element.get("font-family") for element in root.iter(f"{SVG_NS}text")} == {"Bravura"}
    glyphs = _text_glyphs(root)
    assert "\ue050" in glyphs  # gClef
    assert "\ue0a4" in glyphs  # noteheadBlack
    assert "\ue262" in glyphs  # accidentalSharp
    assert "\ue4e4" in glyphs  # restHalf


def test_svg_renderer_draws_beam_polygon_instead_of_flags() -> None:
    root = _parse(SvgRenderer().render(_sample_layout()))
    assert len(list(root.iter(f"{SVG_NS}polygon"))) == 1
    glyphs = _text_glyphs(root)
    assert "\ue240" not in glyphs
    assert "\ue241" not in glyphs


def test_svg_renderer_draws_barline_rects() -> None:
    root = _parse(SvgRenderer().render(_sample_layout()))
    rects = list(root.iter(f"{SVG_NS}rect"))
    assert len(rects) == 3
    assert {rect.get("fill") for rect in rects} == {"#000"}


def test_svg_renderer_title_is_escaped() -> None:
    svg = SvgRenderer().render(_sample_layout(), title="<Cool> & Co")
    assert "<title>&lt;Cool&gt; &amp; Co</title>" in svg
    assert _parse(svg).find(f"{SVG_NS}title").text == "<Cool> & Co"


def test_svg_renderer_without_title_has_no_title_element() -> None:
    assert _parse(SvgRenderer().render(_sample_layout())).find(f"{SVG_NS}title") is None


def test_svg_renderer_skips_unknown_glyphs() -> None:
    root = _parse(SvgRenderer(glyphs=_NoGlyphs()).render(_sample_layout()))
    assert list(root.iter(f"{SVG_NS}text")) == []
    assert list(root.iter(f"{SVG_NS}line")) != []


def test_html_renderer_wraps_svg() -> None:
    html = HtmlRenderer().render(_sample_layout(), title="My Song")
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>My Song</title>" in html
    assert "<h1>My Song</h1>" in html
    assert '<div class="score"><svg' in html
    assert "</html>" in html


def test_html_renderer_empty_title_no_h1() -> None:
    html = HtmlRenderer().render(_sample_layout())
    assert "<h1>" not in html


def test_build_html_escapes_ampersand() -> None:
    html = HtmlRenderer().build_html("Fur & Feathers", "<svg></svg>")
    assert "Fur &amp; Feathers" in html
    assert "Fur & Feathers" not in html.replace("&amp;", "ESCAPED")


def test_build_html_print_media_query_present() -> None:
    html = HtmlRenderer().build_html("", "<svg></svg>")
    assert "@media print" in html

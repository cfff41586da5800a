"""Renderer implementations that paint a LayoutResult without further layout."""

from __future__ import annotations

from abc import ABC, abstractmethod

import svgwrite

from scorelayout.constants import FONT_RESOLUTION, STEM_WIDTH
from scorelayout.glyphs import BravuraGlyphSource, GlyphSource
from scorelayout.layout_models import (
    LayoutBeamSegment,
    LayoutGlyph,
    LayoutLine,
    LayoutNote,
    LayoutRect,
    LayoutResult,
)


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _num(value: float) -> float | int:
    rounded = round(value, 2)
    return int(rounded) if rounded == int(rounded) else rounded


class LayoutRenderer(ABC):
    """Abstract renderer for computed layouts."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, layout: LayoutResult, *, title: str = "") -> str:
        """Render a layout into a file content string."""


class SvgRenderer(LayoutRenderer):
    """
    Draw a layout as a standalone SVG document using svgwrite.

    Glyphs are emitted as SMuFL code points in the Bravura font, so the
    viewer needs that font installed for noteheads and clefs to show.
    """

    FONT_FAMILY = "Bravura"

    def __init__(self, glyphs: GlyphSource | None = None) -> None:
        self.glyphs = glyphs if glyphs is not None else BravuraGlyphSource()

    @property
    def default_extension(self) -> str:
        return ".svg"

    def render(self, layout: LayoutResult, *, title: str = "") -> str:
        return self.render_svg(layout, title=title)

    def render_svg(self, layout: LayoutResult, *, title: str = "") -> str:
        width, height = _num(layout.width), _num(layout.height)
        dwg = svgwrite.Drawing(size=(width, height), viewBox=f"0 0 {width} {height}", debug=False)
        if title:
            dwg.set_desc(title=title)

        for line in layout.staff_lines:
            self._line(dwg, line)
        for measure in layout.measures:
            if measure.clef is not None:
                self._glyph(dwg, measure.clef)
            if measure.time_signature is not None:
                for glyph in (*measure.time_signature.top, *measure.time_signature.bottom):
                    self._glyph(dwg, glyph)
            for note in measure.notes:
                self._note(dwg, note)
            for beam in measure.beams:
                for segment in beam.segments:
                    self._beam_segment(dwg, segment)
            for tuplet in measure.tuplets:
                for line in tuplet.bracket_lines:
                    self._line(dwg, line)
                for glyph in tuplet.number_glyphs:
                    self._glyph(dwg, glyph)
        for barline in layout.barlines:
            for rect in barline.strokes:
                self._rect(dwg, rect)

        return dwg.tostring()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _glyph(self, dwg: svgwrite.Drawing, glyph: LayoutGlyph) -> None:
        outline = self.glyphs.glyph_outline(glyph.glyph_name)
        if outline is None:
            return
        dwg.add(
            dwg.text(
                chr(outline.codepoint),
                insert=(_num(glyph.x), _num(glyph.y)),
                font_family=self.FONT_FAMILY,
                font_size=_num(glyph.scale * FONT_RESOLUTION),
            )
        )

    def _line(self, dwg: svgwrite.Drawing, line: LayoutLine, stroke_width: float = 1.0) -> None:
        dwg.add(
            dwg.line(
                start=(_num(line.x1), _num(line.y1)),
                end=(_num(line.x2), _num(line.y2)),
                stroke="#000",
                stroke_width=_num(stroke_width),
            )
        )

    def _rect(self, dwg: svgwrite.Drawing, rect: LayoutRect) -> None:
        dwg.add(
            dwg.rect(
                insert=(_num(rect.x), _num(rect.y)),
                size=(_num(rect.width), _num(rect.height)),
                fill="#000",
            )
        )

    def _beam_segment(self, dwg: svgwrite.Drawing, segment: LayoutBeamSegment) -> None:
        corners = [
            (segment.x1, segment.y1),
            (segment.x2, segment.y2),
            (segment.x2, segment.y2 + segment.thickness),
            (segment.x1, segment.y1 + segment.thickness),
        ]
        dwg.add(dwg.polygon(points=[(_num(x), _num(y)) for x, y in corners], fill="#000"))

    def _note(self, dwg: svgwrite.Drawing, note: LayoutNote) -> None:
        for ledger in note.ledger_lines:
            self._line(dwg, ledger)
        if note.accidental is not None:
            self._glyph(dwg, note.accidental)
        self._glyph(dwg, LayoutGlyph(glyph_name=note.glyph_name, x=note.x, y=note.y))
        if note.stem is not None:
            stem = LayoutLine(x1=note.stem.x, y1=note.stem.y1, x2=note.stem.x, y2=note.stem.y2)
            self._line(dwg, stem, STEM_WIDTH)
        if note.flag is not None:
            self._glyph(dwg, note.flag)


class HtmlRenderer(SvgRenderer):
    """Wrap the SVG rendering in a self-contained HTML page."""

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, layout: LayoutResult, *, title: str = "") -> str:
        return self.build_html(title, self.render_svg(layout))

    def build_html(self, title: str, svg: str) -> str:
        """
        Wrap an SVG string in an HTML document.

        The stylesheet centres the staff on a white card and drops the
        shadow when printing.
        """
        title_safe = _escape_html(title)
        heading = f"  <h1>{title_safe}</h1>\n" if title else ""

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    body {{
      font-family: Georgia, serif;
      background: #f0f0f0;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.6rem;
      color: #222;
    }}
    .score {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15);
      margin: 0 auto;
      width: fit-content;
      padding: 1rem;
    }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
      }}
      .score {{
        box-shadow: none;
      }}
    }}
  </style>
</head>
<body>
{heading}  <div class="score">{svg}</div>
</body>
</html>"""

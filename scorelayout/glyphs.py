"""Glyph metrics: the font service contract and a bundled Bravura table."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from scorelayout.constants import FONT_UNITS_PER_SPACE, GLYPH_SCALE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlyphOutline:
    """
    Outline descriptor for one glyph.

    Coordinates are font units with Y pointing up (em = 1000).

    Attributes:
        name:      SMuFL glyph name, e.g. ``"noteheadBlack"``.
        codepoint: SMuFL code point, used by renderers that draw with the font.
        x_min, y_min, x_max, y_max: Bounding box.
    """

    name: str
    codepoint: int
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @property
    def advance(self) -> float:
        return self.x_max - self.x_min


class GlyphSource(ABC):
    """Abstract font service consulted by the layout engine."""

    @abstractmethod
    def glyph_outline(self, name: str) -> GlyphOutline | None:
        """Outline for ``name``, or ``None`` when the font has no such glyph."""

    def glyph_width(self, name: str, scale: float = GLYPH_SCALE) -> float | None:
        """Advance width of ``name`` in pixels at ``scale`` px per font unit."""
        outline = self.glyph_outline(name)
        if outline is None:
            return None
        return outline.advance * scale


# Bravura bounding boxes in staff spaces: (code point, sw_x, sw_y, ne_x, ne_y).
_BRAVURA_BBOXES: Final[dict[str, tuple[int, float, float, float, float]]] = {
    "noteheadBlack": (0xE0A4, 0.0, -0.5, 1.18, 0.5),
    "noteheadHalf": (0xE0A3, 0.0, -0.5, 1.18, 0.5),
    "noteheadWhole": (0xE0A2, 0.0, -0.5, 1.688, 0.5),
    "gClef": (0xE050, 0.0, -2.632, 2.684, 4.392),
    "fClef": (0xE062, -0.02, -2.54, 2.736, 1.048),
    "timeSig0": (0xE080, 0.08, -1.004, 1.8, 1.004),
    "timeSig1": (0xE081, 0.08, -1.0, 1.256, 1.0),
    "timeSig2": (0xE082, 0.08, -1.004, 1.704, 1.016),
    "timeSig3": (0xE083, 0.084, -1.004, 1.664, 1.004),
    "timeSig4": (0xE084, 0.08, -1.0, 1.824, 1.0),
    "timeSig5": (0xE085, 0.08, -1.0, 1.6, 1.0),
    "timeSig6": (0xE086, 0.08, -1.004, 1.7, 1.004),
    "timeSig7": (0xE087, 0.08, -1.0, 1.66, 1.0),
    "timeSig8": (0xE088, 0.08, -1.004, 1.76, 1.004),
    "timeSig9": (0xE089, 0.08, -1.004, 1.7, 1.004),
    "accidentalFlat": (0xE260, 0.0, -0.7, 0.904, 1.756),
    "accidentalNatural": (0xE261, 0.0, -1.34, 0.672, 1.364),
    "accidentalSharp": (0xE262, 0.0, -1.4, 0.996, 1.392),
    "accidentalDoubleSharp": (0xE263, 0.0, -0.5, 0.988, 0.508),
    "accidentalDoubleFlat": (0xE264, 0.0, -0.7, 1.644, 1.748),
    "restWhole": (0xE4E3, 0.0, -0.54, 1.128, 0.036),
    "restHalf": (0xE4E4, 0.0, -0.008, 1.128, 0.568),
    "restQuarter": (0xE4E5, 0.004, -1.5, 1.08, 1.492),
    "rest8th": (0xE4E6, 0.0, -1.004, 0.988, 0.696),
    "rest16th": (0xE4E7, 0.0, -2.0, 1.28, 0.716),
    "flag8thUp": (0xE240, 0.0, -3.24, 1.056, 0.032),
    "flag8thDown": (0xE241, 0.0, -0.036, 1.224, 3.236),
    "flag16thUp": (0xE242, 0.0, -3.252, 1.116, 0.036),
    "flag16thDown": (0xE243, 0.0, -0.036, 1.164, 3.248),
}

BRAVURA_GLYPHS: Final[Mapping[str, GlyphOutline]] = MappingProxyType(
    {
        name: GlyphOutline(
            name=name,
            codepoint=codepoint,
            x_min=sw_x * FONT_UNITS_PER_SPACE,
            y_min=sw_y * FONT_UNITS_PER_SPACE,
            x_max=ne_x * FONT_UNITS_PER_SPACE,
            y_max=ne_y * FONT_UNITS_PER_SPACE,
        )
        for name, (codepoint, sw_x, sw_y, ne_x, ne_y) in _BRAVURA_BBOXES.items()
    }
)


class BravuraGlyphSource(GlyphSource):
    """Glyph source backed by the bundled Bravura bounding-box table."""

    def __init__(self, glyphs: Mapping[str, GlyphOutline] = BRAVURA_GLYPHS) -> None:
        self._glyphs = glyphs

    def glyph_outline(self, name: str) -> GlyphOutline | None:
        return self._glyphs.get(name)


class GlyphMetrics:
    """
    Caching adapter that turns a GlyphSource into pixel widths.

    The cache lives on the instance, so one adapter per layout call keeps
    calls independent of each other.
    """

    def __init__(self, source: GlyphSource | None = None) -> None:
        self.source = source if source is not None else BravuraGlyphSource()
        self._widths: dict[tuple[str, float], float | None] = {}

    def width(self, name: str, scale: float = GLYPH_SCALE) -> float | None:
        """Pixel width of ``name``, or ``None`` if the glyph is unmapped."""
        cache_key = (name, scale)
        if cache_key not in self._widths:
            width = self.source.glyph_width(name, scale)
            if width is None:
                logger.debug("Glyph '%s' is not available; omitting it.", name)
            self._widths[cache_key] = width
        return self._widths[cache_key]

    def width_or_zero(self, name: str, scale: float = GLYPH_SCALE) -> float:
        width = self.width(name, scale)
        return width if width is not None else 0.0

    def has(self, name: str) -> bool:
        return self.width(name) is not None

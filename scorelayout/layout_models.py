"""Layout output models: final geometry handed to a rendering layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from scorelayout.constants import GLYPH_SCALE


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camel_dict(items: list[tuple[str, Any]]) -> dict[str, Any]:
    return {_camel_case(key): value for key, value in items}


@dataclass(frozen=True)
class LayoutLine:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class LayoutRect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class LayoutGlyph:
    """A glyph whose origin sits at (x, y), drawn at ``scale`` px per font unit."""

    glyph_name: str
    x: float
    y: float
    scale: float = GLYPH_SCALE


@dataclass(frozen=True)
class LayoutStem:
    """Vertical stem at ``x`` from the notehead (y1) to the tip (y2)."""

    x: float
    y1: float
    y2: float


@dataclass(frozen=True)
class LayoutNote:
    """
    One notehead or rest.

    ``note_event_index`` is the ordinal of the originating NoteInput across
    the whole score; every head of a chord shares it. Only the stem-bearing
    head of a chord carries ``stem`` and ``flag``.
    """

    note_event_index: int
    x: float
    y: float
    glyph_name: str
    ledger_lines: tuple[LayoutLine, ...] = ()
    accidental: LayoutGlyph | None = None
    stem: LayoutStem | None = None
    flag: LayoutGlyph | None = None


@dataclass(frozen=True)
class LayoutTimeSignature:
    top: tuple[LayoutGlyph, ...]
    bottom: tuple[LayoutGlyph, ...]


@dataclass(frozen=True)
class LayoutBeamSegment:
    """A beam stroke from (x1, y1) to (x2, y2), extended by a signed ``thickness``."""

    x1: float
    y1: float
    x2: float
    y2: float
    thickness: float


@dataclass(frozen=True)
class LayoutBeam:
    note_event_indices: tuple[int, ...]
    segments: tuple[LayoutBeamSegment, ...]


@dataclass(frozen=True)
class LayoutTuplet:
    """
    Tuplet number and optional bracket.

    ``location`` is 1 for a bracket above the notes and -1 for below.
    """

    x1: float
    x2: float
    y: float
    location: int
    number_glyphs: tuple[LayoutGlyph, ...]
    bracketed: bool
    bracket_lines: tuple[LayoutLine, ...] = ()


@dataclass(frozen=True)
class LayoutBarline:
    x: float
    y: float
    height: float
    type: str
    strokes: tuple[LayoutRect, ...] = ()


@dataclass(frozen=True)
class LayoutMeasure:
    x: float
    width: float
    clef: LayoutGlyph | None = None
    time_signature: LayoutTimeSignature | None = None
    notes: tuple[LayoutNote, ...] = ()
    beams: tuple[LayoutBeam, ...] = ()
    tuplets: tuple[LayoutTuplet, ...] = ()


@dataclass(frozen=True)
class LayoutResult:
    width: float
    height: float
    staff_lines: tuple[LayoutLine, ...]
    measures: tuple[LayoutMeasure, ...] = field(default_factory=tuple)
    barlines: tuple[LayoutBarline, ...] = field(default_factory=tuple)

    def notes_for_event(self, note_event_index: int) -> list[LayoutNote]:
        """Every head laid out for one NoteInput."""
        return [
            note
            for measure in self.measures
            for note in measure.notes
            if note.note_event_index == note_event_index
        ]

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable view of the layout, keyed in camelCase like ScoreInput."""
        return asdict(self, dict_factory=_camel_dict)

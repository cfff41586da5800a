"""Editing helpers: pointer/keyboard math and copy-on-write score edits.

A host UI calls these to turn a click or key press into a new ScoreInput
without repeating any layout arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from scorelayout.barlines import STAFF_HEIGHT
from scorelayout.constants import LEDGER_LINE_EXTENSION
from scorelayout.glyphs import GlyphMetrics
from scorelayout.layout_models import LayoutLine, LayoutResult
from scorelayout.pitch import (
    get_y_for_line,
    get_y_for_note,
    ledger_lines_for,
    line_to_key,
    set_accidental,
    y_to_line,
)
from scorelayout.score_models import NoteInput, ScoreInput

CURSOR_Y_OFFSET = 15.0  # gap between the lowest point of a note and the cursor tip


@dataclass(frozen=True)
class NotePosition:
    """Where a note event lives inside a ScoreInput."""

    measure_index: int
    voice_index: int
    note_index: int


@dataclass(frozen=True)
class GhostNote:
    """Preview of the pitch a click would set."""

    line: float
    x: float
    y: float
    glyph_name: str
    ledger_lines: tuple[LayoutLine, ...]


def count_note_events(score: ScoreInput) -> int:
    return sum(len(voice.notes) for measure in score.measures for voice in measure.voices)


def find_note_position(score: ScoreInput, note_event_index: int) -> NotePosition | None:
    """Map a flattened note event index back to measure/voice/note indices."""
    index = 0
    for mi, measure in enumerate(score.measures):
        for vi, voice in enumerate(measure.voices):
            if note_event_index < index + len(voice.notes):
                if note_event_index < index:
                    return None
                return NotePosition(mi, vi, note_event_index - index)
            index += len(voice.notes)
    return None


def clef_for_event(score: ScoreInput, note_event_index: int) -> str:
    """Clef the event's pitches are read in (its measure's clef, else treble)."""
    position = find_note_position(score, note_event_index)
    if position is None:
        return "treble"
    return score.measures[position.measure_index].clef or "treble"


def _locate(score: ScoreInput, note_event_index: int) -> tuple[NotePosition, NoteInput]:
    position = find_note_position(score, note_event_index)
    if position is None:
        raise IndexError(f"No note event at index {note_event_index}.")
    measure = score.measures[position.measure_index]
    return position, measure.voices[position.voice_index].notes[position.note_index]


def _with_note(score: ScoreInput, position: NotePosition, note: NoteInput) -> ScoreInput:
    measure = score.measures[position.measure_index]
    voice = measure.voices[position.voice_index]

    notes = list(voice.notes)
    notes[position.note_index] = note
    voices = list(measure.voices)
    voices[position.voice_index] = replace(voice, notes=tuple(notes))
    measures = list(score.measures)
    measures[position.measure_index] = replace(measure, voices=tuple(voices))
    return replace(score, measures=tuple(measures))


def replace_note_key(score: ScoreInput, note_event_index: int, key: str) -> ScoreInput:
    """
    New score in which the note at ``note_event_index`` has the single key ``key``.

    Raises:
        IndexError: If there is no such note event.
    """
    position, note = _locate(score, note_event_index)
    return _with_note(score, position, replace(note, keys=(key,)))


def set_note_accidental(score: ScoreInput, note_event_index: int, accidental: str | None) -> ScoreInput:
    """New score with ``accidental`` applied to every key of the note."""
    position, note = _locate(score, note_event_index)
    keys = tuple(set_accidental(key, accidental) for key in note.keys)
    return _with_note(score, position, replace(note, keys=keys))


def key_at_y(y: float, clef: str | None = "treble") -> str:
    """Key a click at pixel ``y`` would produce."""
    return line_to_key(y_to_line(y), clef)


def cursor_anchor(
    layout: LayoutResult,
    note_event_index: int,
    metrics: GlyphMetrics | None = None,
) -> tuple[float, float] | None:
    """Tip of the selection cursor drawn under a note event."""
    notes = layout.notes_for_event(note_event_index)
    if not notes:
        return None
    metrics = metrics or GlyphMetrics()
    x = notes[0].x + metrics.width_or_zero("noteheadBlack") / 2

    lowest = max(
        max(note.y, note.stem.y1, note.stem.y2) if note.stem is not None else note.y
        for note in notes
    )
    bottom_staff_y = get_y_for_line(0) + STAFF_HEIGHT
    return x, max(bottom_staff_y, lowest) + CURSOR_Y_OFFSET


def ghost_note(
    layout: LayoutResult,
    note_event_index: int,
    hover_y: float,
    metrics: GlyphMetrics | None = None,
) -> GhostNote | None:
    """
    Preview notehead for the line under the pointer.

    Rests preview as a black notehead. Returns ``None`` when the pointer is
    on the note's own line, or when the event has no geometry.
    """
    notes = layout.notes_for_event(note_event_index)
    if not notes:
        return None
    selected = notes[0]
    is_rest = selected.glyph_name.startswith("rest")
    line = y_to_line(hover_y)

    if not is_rest and line == y_to_line(selected.y):
        return None

    metrics = metrics or GlyphMetrics()
    glyph_name = "noteheadBlack" if is_rest else selected.glyph_name
    head_width = metrics.width_or_zero(glyph_name)
    ledgers = tuple(
        LayoutLine(
            x1=selected.x - LEDGER_LINE_EXTENSION,
            y1=get_y_for_note(ledger),
            x2=selected.x + head_width + LEDGER_LINE_EXTENSION,
            y2=get_y_for_note(ledger),
        )
        for ledger in ledger_lines_for(line)
    )
    return GhostNote(
        line=line,
        x=selected.x,
        y=get_y_for_note(line),
        glyph_name=glyph_name,
        ledger_lines=ledgers,
    )

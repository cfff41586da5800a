"""scorelayout: single-staff music notation layout engine."""

from scorelayout.editing import (
    GhostNote,
    NotePosition,
    count_note_events,
    cursor_anchor,
    find_note_position,
    ghost_note,
    key_at_y,
    replace_note_key,
    set_note_accidental,
)
from scorelayout.layout import compute_layout
from scorelayout.layout_models import LayoutResult
from scorelayout.pitch import InvalidKeyError, line_to_key, pitch_to_line, y_to_line
from scorelayout.score_models import (
    MeasureInput,
    NoteInput,
    ScoreInput,
    ScoreInputError,
    TupletInput,
    VoiceInput,
)

__version__ = "0.1.0"

__all__ = [
    "GhostNote",
    "InvalidKeyError",
    "LayoutResult",
    "MeasureInput",
    "NoteInput",
    "NotePosition",
    "ScoreInput",
    "ScoreInputError",
    "TupletInput",
    "VoiceInput",
    "compute_layout",
    "count_note_events",
    "cursor_anchor",
    "find_note_position",
    "ghost_note",
    "key_at_y",
    "line_to_key",
    "pitch_to_line",
    "replace_note_key",
    "set_note_accidental",
    "y_to_line",
]

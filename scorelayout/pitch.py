"""Pitch & duration model: key strings, staff coordinates and duration tables.

Vertical placement everywhere in the package goes through ``get_y_for_note``
and ``get_y_for_line``. The "line" coordinate is a continuous half-integer
value in which each diatonic step is 0.5. Note-line 1 is the bottom staff
line, 3 the middle line and 5 the top line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from fractions import Fraction
from types import MappingProxyType
from typing import TYPE_CHECKING, Final, Mapping

from scorelayout.constants import SPACE_ABOVE_STAFF, STAVE_LINE_DISTANCE

if TYPE_CHECKING:
    from scorelayout.score_models import TupletInput

NOTE_NAMES: Final[str] = "CDEFGAB"
NOTE_INDEX: Final[Mapping[str, int]] = MappingProxyType({name: i for i, name in enumerate(NOTE_NAMES)})

REST_MARKER: Final[str] = "r"
MIDDLE_LINE: Final[float] = 3.0

# Lowest and highest note-lines that sit on the staff itself.
STAFF_BOTTOM_LINE: Final[int] = 1
STAFF_TOP_LINE: Final[int] = 5

DURATIONS: Final[tuple[str, ...]] = ("w", "h", "q", "8", "16")

DURATION_BEATS: Final[Mapping[str, Fraction]] = MappingProxyType(
    {
        "w": Fraction(4),
        "h": Fraction(2),
        "q": Fraction(1),
        "8": Fraction(1, 2),
        "16": Fraction(1, 4),
    }
)

_NOTEHEADS: Final[Mapping[str, str]] = MappingProxyType({"w": "noteheadWhole", "h": "noteheadHalf"})

_REST_GLYPHS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "w": "restWhole",
        "h": "restHalf",
        "q": "restQuarter",
        "8": "rest8th",
        "16": "rest16th",
    }
)

_BEAM_COUNTS: Final[Mapping[str, int]] = MappingProxyType({"8": 1, "16": 2})

_FLAG_PREFIXES: Final[Mapping[str, str]] = MappingProxyType({"8": "flag8th", "16": "flag16th"})

_ACCIDENTAL_GLYPHS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "#": "accidentalSharp",
        "b": "accidentalFlat",
        "##": "accidentalDoubleSharp",
        "bb": "accidentalDoubleFlat",
        "n": "accidentalNatural",
    }
)


class InvalidKeyError(ValueError):
    """Raised when a key string does not follow ``<letter><accidental?>/<octave>[/r]``."""


@dataclass(frozen=True)
class ParsedKey:
    """Components of a key string such as ``"C#/5"`` or ``"B/4/r"``."""

    note_name: str
    accidental: str | None
    octave: int
    is_rest: bool = False


@dataclass(frozen=True)
class ClefConfig:
    """
    Clef glyph placement and pitch mapping.

    Attributes:
        glyph_name: Glyph drawn at the start of the measure.
        line_index: Staff line (0 = top, 4 = bottom) the glyph origin sits on.
        line_shift: Offset added to treble-relative note-lines.
    """

    glyph_name: str
    line_index: int
    line_shift: float


CLEF_CONFIG: Final[Mapping[str, ClefConfig]] = MappingProxyType(
    {
        "treble": ClefConfig(glyph_name="gClef", line_index=3, line_shift=0.0),
        "bass": ClefConfig(glyph_name="fClef", line_index=1, line_shift=-6.0),
    }
)


def _clef_shift(clef: str | None) -> float:
    config = CLEF_CONFIG.get(clef or "treble")
    return config.line_shift if config is not None else 0.0


def _snap_half(value: float) -> float:
    """Snap to the nearest 0.5, rounding ties upward."""
    return math.floor(value * 2 + 0.5) / 2


# ── Key strings ───────────────────────────────────────────────────────────────

def parse_key(key: str) -> ParsedKey:
    """
    Split a key string into letter, accidental, octave and rest flag.

    Raises:
        InvalidKeyError: If the letter or octave cannot be read.
    """
    parts = key.split("/")
    pitch = parts[0].strip()
    if len(parts) < 2 or not pitch:
        raise InvalidKeyError(f"Key '{key}' must look like '<letter><accidental?>/<octave>'.")

    note_name = pitch[0].upper()
    if note_name not in NOTE_INDEX:
        raise InvalidKeyError(f"Key '{key}' has an unknown note letter '{pitch[0]}'.")

    try:
        octave = int(parts[1])
    except ValueError:
        raise InvalidKeyError(f"Key '{key}' has a non-numeric octave '{parts[1]}'.") from None

    accidental = pitch[1:] or None
    is_rest = len(parts) > 2 and parts[2] == REST_MARKER
    return ParsedKey(note_name=note_name, accidental=accidental, octave=octave, is_rest=is_rest)


def format_key(parsed: ParsedKey) -> str:
    """Inverse of :func:`parse_key`."""
    key = f"{parsed.note_name}{parsed.accidental or ''}/{parsed.octave}"
    if parsed.is_rest:
        key += f"/{REST_MARKER}"
    return key


def set_accidental(key: str, accidental: str | None) -> str:
    """Rewrite the accidental token of ``key``; ``None`` or ``""`` removes it."""
    parsed = parse_key(key)
    return format_key(
        ParsedKey(
            note_name=parsed.note_name,
            accidental=accidental or None,
            octave=parsed.octave,
            is_rest=parsed.is_rest,
        )
    )


def toggle_accidental(key: str, accidental: str) -> str:
    """Remove ``accidental`` if the key already carries it, otherwise set it."""
    if parse_key(key).accidental == accidental:
        return set_accidental(key, None)
    return set_accidental(key, accidental)


# ── Staff coordinates ─────────────────────────────────────────────────────────

def pitch_to_line(key: str, clef: str | None = "treble") -> float:
    """
    Convert a key to its note-line.

    In treble clef C4 = 0, D4 = 0.5, E4 = 1 ... B4 = 3, C5 = 3.5.
    Bass clef shifts everything down by six lines.
    """
    parsed = parse_key(key)
    base_index = parsed.octave * 7 - 28
    return (base_index + NOTE_INDEX[parsed.note_name]) / 2 + _clef_shift(clef)


def line_to_key(line: float, clef: str | None = "treble") -> str:
    """Return the canonical natural key sitting on ``line`` (snapped to 0.5)."""
    steps = int(_snap_half(line - _clef_shift(clef)) * 2)
    octave, letter_index = divmod(steps + 28, 7)
    return f"{NOTE_NAMES[letter_index]}/{octave}"


def get_y_for_note(line: float, stave_y: float = 0.0) -> float:
    """Pixel Y of a note-line; higher lines have smaller Y."""
    headroom = SPACE_ABOVE_STAFF * STAVE_LINE_DISTANCE
    return stave_y + headroom + 5 * STAVE_LINE_DISTANCE - line * STAVE_LINE_DISTANCE


def get_y_for_line(line_index: float, stave_y: float = 0.0) -> float:
    """Pixel Y of a staff line index (0 = top line, 4 = bottom line)."""
    headroom = SPACE_ABOVE_STAFF * STAVE_LINE_DISTANCE
    return stave_y + headroom + line_index * STAVE_LINE_DISTANCE


def y_to_line(y: float, stave_y: float = 0.0) -> float:
    """Inverse of :func:`get_y_for_note`, snapped to the nearest half line."""
    headroom = SPACE_ABOVE_STAFF * STAVE_LINE_DISTANCE
    raw = (stave_y + headroom + 5 * STAVE_LINE_DISTANCE - y) / STAVE_LINE_DISTANCE
    return _snap_half(raw)


def ledger_lines_for(line: float) -> list[int]:
    """Note-lines that need a ledger line for a note sitting on ``line``."""
    if line < STAFF_BOTTOM_LINE:
        return list(range(STAFF_BOTTOM_LINE - 1, math.ceil(line) - 1, -1))
    if line > STAFF_TOP_LINE:
        return list(range(STAFF_TOP_LINE + 1, math.floor(line) + 1))
    return []


# ── Duration tables ───────────────────────────────────────────────────────────

def duration_to_beats(duration: str) -> Fraction:
    """Quarter-note beats of a written duration (w=4 ... 16=1/4)."""
    return DURATION_BEATS[duration]


def dotted_beats(duration: str, dots: int = 0) -> Fraction:
    """Beat length including augmentation dots: ``beats * (2 - 2**-dots)``."""
    return duration_to_beats(duration) * (2 - Fraction(1, 2**dots))


def effective_beats(duration: str, tuplet: TupletInput | None = None) -> Fraction:
    """Written beats compressed by a tuplet's ``notes_occupied / count`` ratio."""
    beats = duration_to_beats(duration)
    if tuplet is None:
        return beats
    return beats * tuplet.notes_occupied / tuplet.count


def notehead_for_duration(duration: str) -> str:
    return _NOTEHEADS.get(duration, "noteheadBlack")


def rest_glyph_for_duration(duration: str) -> str:
    return _REST_GLYPHS[duration]


def rest_line(duration: str) -> float:
    """Default note-line for a rest; whole rests hang from the fourth line."""
    return 4.0 if duration == "w" else MIDDLE_LINE


def beam_count(duration: str) -> int:
    return _BEAM_COUNTS.get(duration, 0)


def is_beamable(duration: str) -> bool:
    return beam_count(duration) > 0


def flag_glyph_name(duration: str, stem_dir: str) -> str | None:
    prefix = _FLAG_PREFIXES.get(duration)
    if prefix is None:
        return None
    return f"{prefix}{'Up' if stem_dir == 'up' else 'Down'}"


def accidental_glyph_name(accidental: str | None) -> str | None:
    if accidental is None:
        return None
    return _ACCIDENTAL_GLYPHS.get(accidental)

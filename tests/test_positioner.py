"""Unit tests for single note, chord and rest placement."""

from fractions import Fraction

import pytest

from scorelayout.glyphs import GlyphMetrics
from scorelayout.pitch import get_y_for_note
from scorelayout.positioner import ChordPlacement, position_note, position_voice, resolve_stem_dir
from scorelayout.score_models import NoteInput, VoiceInput

HEAD_WIDTH = 11.8  # noteheadBlack at the default scale


def _place(*keys: str, duration: str = "q", stem: str = "auto", group_dir: str | None = None) -> ChordPlacement | None:
    return position_note(
        NoteInput(keys=keys, duration=duration),
        event_index=7,
        voice_index=0,
        note_index=0,
        onset=Fraction(0),
        beats=Fraction(1),
        x=100.0,
        clef="treble",
        stem_preference=stem,
        group_dir=group_dir,
        tuplet_index=None,
        metrics=GlyphMetrics(),
    )


def test_resolve_stem_dir_priority() -> None:
    assert resolve_stem_dir("up", "down", 5.0) == "up"
    assert resolve_stem_dir("auto", "down", 0.0) == "down"
    assert resolve_stem_dir("auto", None, 3.0) == "down"
    assert resolve_stem_dir("auto", None, 2.5) == "up"


def test_middle_line_note_stems_down_from_left_edge() -> None:
    placement = _place("B/4")
    assert placement is not None
    assert placement.stem_dir == "down"
    assert placement.stem is not None
    assert placement.stem.x == 100.0
    assert placement.stem.y1 == 60.0
    assert placement.stem.y2 == 95.0


def test_low_note_stems_up_from_right_edge() -> None:
    placement = _place("A/4")
    assert placement is not None
    assert placement.stem_dir == "up"
    assert placement.stem is not None
    assert placement.stem.x == pytest.approx(100.0 + HEAD_WIDTH)
    assert placement.stem.y1 == 65.0
    assert placement.stem.y2 == 30.0


def test_explicit_preference_wins() -> None:
    placement = _place("A/5", stem="up")
    assert placement is not None
    assert placement.stem_dir == "up"


def test_chord_shares_one_stem_on_lowest_head() -> None:
    placement = _place("C/4", "E/4", "G/4")
    assert placement is not None
    notes = placement.layout_notes()
    assert [note.y for note in notes] == [90.0, 80.0, 70.0]
    assert [note.stem is not None for note in notes] == [True, False, False]
    stem = notes[0].stem
    assert stem is not None
    assert (stem.y1, stem.y2) == (90.0, 35.0)
    assert all(note.note_event_index == 7 for note in notes)


def test_chord_stem_down_starts_at_highest_head() -> None:
    placement = _place("C/5", "E/5")
    assert placement is not None
    assert placement.stem_dir == "down"
    assert placement.stem_head_index == 1
    assert placement.stem is not None
    assert (placement.stem.y1, placement.stem.y2) == (45.0, 90.0)


def test_whole_note_has_no_stem() -> None:
    placement = _place("C/5", duration="w")
    assert placement is not None
    assert placement.stem is None
    assert placement.heads[0].glyph_name == "noteheadWhole"


def test_eighth_gets_flag_at_stem_tip() -> None:
    placement = _place("E/4", duration="8")
    assert placement is not None
    assert placement.flag is not None
    assert placement.flag.glyph_name == "flag8thUp"
    assert placement.stem is not None
    assert (placement.flag.x, placement.flag.y) == (placement.stem.x, placement.stem.y2)


def test_quarter_has_no_flag() -> None:
    placement = _place("E/4")
    assert placement is not None
    assert placement.flag is None


def test_whole_rest_hangs_from_fourth_line() -> None:
    placement = _place("C/5/r", duration="w")
    assert placement is not None
    assert placement.is_rest
    (rest,) = placement.layout_notes()
    assert rest.glyph_name == "restWhole"
    assert rest.y == get_y_for_note(4)
    assert rest.ledger_lines == ()
    assert rest.stem is None
    assert rest.flag is None
    assert rest.accidental is None


def test_other_rests_sit_on_middle_line() -> None:
    placement = _place("A/6/r", duration="8")
    assert placement is not None
    assert placement.heads[0].glyph_name == "rest8th"
    assert placement.heads[0].y == get_y_for_note(3)


def test_accidental_sits_left_of_notehead() -> None:
    placement = _place("F#/4")
    assert placement is not None
    accidental = placement.heads[0].accidental
    assert accidental is not None
    assert accidental.glyph_name == "accidentalSharp"
    assert accidental.x == pytest.approx(100.0 - 9.96 - 2.0)
    assert accidental.y == placement.heads[0].y


def test_ledger_line_above_staff() -> None:
    placement = _place("A/5")
    assert placement is not None
    (ledger,) = placement.heads[0].ledger_lines
    assert ledger.y1 == ledger.y2 == 30.0
    assert ledger.x1 == 96.0
    assert ledger.x2 == pytest.approx(100.0 + HEAD_WIDTH + 4.0)


def test_ledger_lines_below_staff() -> None:
    placement = _place("A/3")
    assert placement is not None
    assert [ledger.y1 for ledger in placement.heads[0].ledger_lines] == [90.0, 100.0]


def test_unparseable_first_key_produces_nothing() -> None:
    assert _place("H/4") is None


def test_unparseable_secondary_key_is_dropped() -> None:
    placement = _place("C/4", "nonsense")
    assert placement is not None
    assert len(placement.heads) == 1


def test_position_voice_skips_bad_events_but_keeps_indices_and_beats() -> None:
    voice = VoiceInput(
        notes=(
            NoteInput(keys=("Z/4",), duration="q"),
            NoteInput(keys=("C/5",), duration="q"),
        )
    )
    beat_x = {Fraction(0): 10.0, Fraction(1): 50.0}
    placements = position_voice(
        voice,
        voice_index=0,
        first_event_index=4,
        clef="treble",
        beat_x=beat_x,
        metrics=GlyphMetrics(),
    )
    assert len(placements) == 1
    assert placements[0].event_index == 5
    assert placements[0].onset == 1
    assert placements[0].x == 50.0

"""Unit tests for key parsing, staff coordinates and duration tables."""

from fractions import Fraction

import pytest

from scorelayout.pitch import (
    InvalidKeyError,
    ParsedKey,
    accidental_glyph_name,
    beam_count,
    dotted_beats,
    duration_to_beats,
    effective_beats,
    flag_glyph_name,
    format_key,
    get_y_for_line,
    get_y_for_note,
    is_beamable,
    ledger_lines_for,
    line_to_key,
    notehead_for_duration,
    parse_key,
    pitch_to_line,
    rest_glyph_for_duration,
    rest_line,
    set_accidental,
    toggle_accidental,
    y_to_line,
)
from scorelayout.score_models import TupletInput


def test_parse_key_with_accidental() -> None:
    assert parse_key("C#/5") == ParsedKey(note_name="C", accidental="#", octave=5, is_rest=False)


def test_parse_key_uppercases_letter_and_reads_rest_marker() -> None:
    parsed = parse_key("b/4/r")
    assert parsed.note_name == "B"
    assert parsed.accidental is None
    assert parsed.is_rest


@pytest.mark.parametrize("key", ["", "C", "X/4", "C/x", "/4"])
def test_parse_key_rejects_malformed_keys(key: str) -> None:
    with pytest.raises(InvalidKeyError):
        parse_key(key)


def test_invalid_key_error_is_value_error() -> None:
    assert issubclass(InvalidKeyError, ValueError)


def test_format_key_is_inverse_of_parse_key() -> None:
    for key in ("C#/5", "Bb/3", "E/4", "B/4/r"):
        assert format_key(parse_key(key)) == key


def test_set_accidental_replaces_token() -> None:
    assert set_accidental("C#/5", "b") == "Cb/5"


def test_set_accidental_none_removes_token() -> None:
    assert set_accidental("Cb/5", None) == "C/5"


def test_set_accidental_keeps_rest_marker() -> None:
    assert set_accidental("B/4/r", "#") == "B#/4/r"


def test_toggle_accidental_adds_then_removes() -> None:
    assert toggle_accidental("C/5", "#") == "C#/5"
    assert toggle_accidental("C#/5", "#") == "C/5"
    assert toggle_accidental("Cb/5", "#") == "C#/5"


@pytest.mark.parametrize(
    ("key", "line"),
    [("C/4", 0.0), ("D/4", 0.5), ("E/4", 1.0), ("B/4", 3.0), ("C#/5", 3.5), ("F/5", 5.0), ("A/5", 6.0)],
)
def test_pitch_to_line_treble(key: str, line: float) -> None:
    assert pitch_to_line(key) == line


def test_pitch_to_line_ignores_accidental() -> None:
    assert pitch_to_line("Cb/5") == pitch_to_line("C##/5") == 3.5


def test_pitch_to_line_bass_shift() -> None:
    assert pitch_to_line("C/4", "bass") == -6.0


def test_pitch_to_line_unknown_clef_uses_no_shift() -> None:
    assert pitch_to_line("C/5", "alto") == 3.5


def test_line_to_key_snaps_to_half_lines() -> None:
    assert line_to_key(3.0) == "B/4"
    assert line_to_key(3.2) == "B/4"
    assert line_to_key(3.25) == "C/5"


def test_line_to_key_below_middle_c() -> None:
    assert line_to_key(-0.5) == "B/3"


@pytest.mark.parametrize("clef", ["treble", "bass"])
def test_line_to_key_round_trips_through_pitch_to_line(clef: str) -> None:
    for step in range(-8, 20):
        line = step / 2
        assert pitch_to_line(line_to_key(line, clef), clef) == line


def test_get_y_for_note_staff_lines() -> None:
    assert get_y_for_note(1) == 80.0
    assert get_y_for_note(3) == 60.0
    assert get_y_for_note(5) == 40.0


def test_get_y_for_line_matches_note_lines() -> None:
    assert get_y_for_line(0) == get_y_for_note(5)
    assert get_y_for_line(4) == get_y_for_note(1)


def test_get_y_for_note_honours_stave_y() -> None:
    assert get_y_for_note(3, stave_y=100) == 160.0


def test_y_to_line_inverts_and_snaps() -> None:
    assert y_to_line(80) == 1.0
    assert y_to_line(57) == 3.5
    assert y_to_line(52.5) == 4.0


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        (3.0, []),
        (0.0, [0]),
        (-0.5, [0]),
        (-1.0, [0, -1]),
        (-1.5, [0, -1]),
        (5.5, []),
        (6.0, [6]),
        (6.5, [6]),
        (7.0, [6, 7]),
    ],
)
def test_ledger_lines_for(line: float, expected: list[int]) -> None:
    assert ledger_lines_for(line) == expected


def test_duration_to_beats_values() -> None:
    assert [duration_to_beats(d) for d in ("w", "h", "q", "8", "16")] == [4, 2, 1, Fraction(1, 2), Fraction(1, 4)]


def test_dotted_beats() -> None:
    assert dotted_beats("q") == 1
    assert dotted_beats("q", 1) == Fraction(3, 2)
    assert dotted_beats("h", 2) == Fraction(7, 2)


def test_effective_beats_triplet_eighth_is_exact_third() -> None:
    triplet = TupletInput(start_index=0, count=3, notes_occupied=2)
    assert effective_beats("8", triplet) == Fraction(1, 3)
    assert effective_beats("8", triplet) * 3 == 1


def test_notehead_and_rest_glyphs() -> None:
    assert notehead_for_duration("w") == "noteheadWhole"
    assert notehead_for_duration("h") == "noteheadHalf"
    assert notehead_for_duration("16") == "noteheadBlack"
    assert rest_glyph_for_duration("8") == "rest8th"


def test_rest_line() -> None:
    assert rest_line("w") == 4.0
    assert rest_line("q") == 3.0


def test_beam_tables() -> None:
    assert beam_count("8") == 1
    assert beam_count("16") == 2
    assert beam_count("q") == 0
    assert is_beamable("16")
    assert not is_beamable("h")


def test_flag_glyph_name() -> None:
    assert flag_glyph_name("8", "up") == "flag8thUp"
    assert flag_glyph_name("16", "down") == "flag16thDown"
    assert flag_glyph_name("q", "up") is None


def test_accidental_glyph_name() -> None:
    assert accidental_glyph_name("#") == "accidentalSharp"
    assert accidental_glyph_name("n") == "accidentalNatural"
    assert accidental_glyph_name("x") is None
    assert accidental_glyph_name(None) is None

"""Engraving constants shared by every layout stage (pixels unless noted)."""

from typing import Final

# ── Staff ─────────────────────────────────────────────────────────────────────
STAVE_LINE_DISTANCE: Final[float] = 10.0  # pixels between adjacent staff lines
SPACE_ABOVE_STAFF: Final[int] = 4         # staff spaces of headroom above the top line
NUM_STAFF_LINES: Final[int] = 5

# ── Glyphs ────────────────────────────────────────────────────────────────────
# SMuFL fonts use an em of 1000 units spanning four staff spaces.
FONT_RESOLUTION: Final[int] = 1000
FONT_UNITS_PER_SPACE: Final[float] = FONT_RESOLUTION / 4
GLYPH_SCALE: Final[float] = STAVE_LINE_DISTANCE / FONT_UNITS_PER_SPACE  # px per font unit

# ── Notes ─────────────────────────────────────────────────────────────────────
STEM_HEIGHT: Final[float] = 35.0
STEM_WIDTH: Final[float] = 1.5
LEDGER_LINE_EXTENSION: Final[float] = 4.0  # overshoot on each side of the notehead
ACCIDENTAL_PADDING: Final[float] = 2.0     # gap between accidental and notehead

# ── Horizontal padding ────────────────────────────────────────────────────────
STAVE_LEFT_PADDING: Final[float] = 10.0
CLEF_TIME_SIG_PADDING: Final[float] = 8.0
TIME_SIG_NOTE_PADDING: Final[float] = 15.0
STAVE_RIGHT_PADDING: Final[float] = 10.0

# Fraction of a measure's note area used for onsets, and the margin on each side.
NOTE_AREA_SPAN: Final[float] = 0.85
NOTE_AREA_MARGIN: Final[float] = 0.05

# ── Beams ─────────────────────────────────────────────────────────────────────
BEAM_WIDTH: Final[float] = 5.0
BEAM_MAX_SLOPE: Final[float] = 0.25
BEAM_LEVEL_STRIDE: Final[float] = BEAM_WIDTH * 1.5
PARTIAL_BEAM_LENGTH: Final[float] = 10.0

# ── Barlines ──────────────────────────────────────────────────────────────────
BARLINE_THIN_WIDTH: Final[float] = 1.0
BARLINE_THICK_WIDTH: Final[float] = 3.0
BARLINE_GAP: Final[float] = 2.0

# ── Tuplets ───────────────────────────────────────────────────────────────────
TUPLET_OFFSET: Final[float] = 8.0          # gap between stem tips and the bracket
TUPLET_NUMBER_SCALE: Final[float] = GLYPH_SCALE * 0.6
TUPLET_RATIO_GAP: Final[float] = 4.0       # room for the colon in "3:2"
TUPLET_BRACKET_HEIGHT: Final[float] = 5.0
TUPLET_NUMBER_PADDING: Final[float] = 3.0

# ── Page ──────────────────────────────────────────────────────────────────────
DEFAULT_PAGE_WIDTH: Final[float] = 600.0
DEFAULT_PAGE_HEIGHT: Final[float] = 160.0

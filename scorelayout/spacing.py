"""Horizontal allocator: measure widths and the beat → x map."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Sequence

import numpy as np

from scorelayout.constants import (
    BARLINE_GAP,
    BARLINE_THICK_WIDTH,
    BARLINE_THIN_WIDTH,
    CLEF_TIME_SIG_PADDING,
    NOTE_AREA_MARGIN,
    NOTE_AREA_SPAN,
    STAVE_LEFT_PADDING,
    STAVE_RIGHT_PADDING,
    TIME_SIG_NOTE_PADDING,
)
from scorelayout.glyphs import GlyphMetrics
from scorelayout.pitch import CLEF_CONFIG, effective_beats
from scorelayout.score_models import MeasureInput, VoiceInput

logger = logging.getLogger(__name__)

_TIME_SIGNATURE_RE = re.compile(r"^(\d+)/(\d+)$")


@dataclass(frozen=True)
class SpacingConfig:
    """
    Breathing room inside each measure's note area.

    Onsets are spread across ``span`` of the available width, offset by
    ``margin`` of it from the left edge.
    """

    span: float = NOTE_AREA_SPAN
    margin: float = NOTE_AREA_MARGIN


def barline_width(barline_type: str) -> float:
    """Horizontal room taken by a barline of the given type."""
    if barline_type == "single":
        return BARLINE_THIN_WIDTH
    if barline_type == "double":
        return BARLINE_THIN_WIDTH + BARLINE_GAP + BARLINE_THIN_WIDTH
    if barline_type == "end":
        return BARLINE_THIN_WIDTH + BARLINE_GAP + BARLINE_THICK_WIDTH
    return 0.0


def parse_time_signature(text: str | None) -> tuple[str, str] | None:
    """Split ``"N/D"`` into its digit strings; ``None`` if absent or malformed."""
    if not text:
        return None
    match = _TIME_SIGNATURE_RE.match(text.strip())
    if not match:
        logger.debug("Ignoring malformed time signature '%s'.", text)
        return None
    return match.group(1), match.group(2)


def time_signature_glyphs(digits: str) -> list[str]:
    return [f"timeSig{digit}" for digit in digits]


def time_signature_width(text: str | None, metrics: GlyphMetrics) -> float | None:
    """Width of the wider digit row, or ``None`` if it cannot be drawn."""
    parsed = parse_time_signature(text)
    if parsed is None:
        return None
    widths = []
    for digits in parsed:
        row = [metrics.width(name) for name in time_signature_glyphs(digits)]
        if any(width is None for width in row):
            return None
        widths.append(sum(width for width in row if width is not None))
    return max(widths)


def clef_width(clef: str | None, metrics: GlyphMetrics) -> float | None:
    if clef is None:
        return None
    config = CLEF_CONFIG.get(clef)
    if config is None:
        logger.debug("Unknown clef '%s'; no clef glyph drawn.", clef)
        return None
    return metrics.width(config.glyph_name)


def measure_overhead(measure: MeasureInput, metrics: GlyphMetrics) -> float:
    """Fixed width of a measure: paddings plus clef and time signature."""
    overhead = STAVE_LEFT_PADDING

    clef_w = clef_width(measure.clef, metrics)
    if clef_w is not None:
        overhead += clef_w + CLEF_TIME_SIG_PADDING

    time_sig_w = time_signature_width(measure.time_signature, metrics)
    if time_sig_w is not None:
        overhead += time_sig_w + TIME_SIG_NOTE_PADDING

    return overhead + STAVE_RIGHT_PADDING


def voice_onsets(voice: VoiceInput) -> list[Fraction]:
    """Onset beat of every note in the voice, plus the end beat as last item."""
    beat = Fraction(0)
    onsets = [beat]
    for note_index, note in enumerate(voice.notes):
        beat += effective_beats(note.duration, voice.tuplet_for(note_index))
        onsets.append(beat)
    return onsets


def measure_beat_total(measure: MeasureInput) -> Fraction:
    """Longest voice in tuplet-adjusted beats, never less than one beat."""
    longest = max((voice_onsets(voice)[-1] for voice in measure.voices), default=Fraction(0))
    return max(longest, Fraction(1))


def beat_positions(measure: MeasureInput) -> list[Fraction]:
    """Sorted distinct onsets across every voice of the measure."""
    positions: set[Fraction] = set()
    for voice in measure.voices:
        positions.update(voice_onsets(voice)[:-1])
    return sorted(positions)


def allocate_measure_widths(
    overheads: Sequence[float],
    beat_totals: Sequence[Fraction],
    barline_widths: Sequence[float],
    page_width: float,
) -> list[float]:
    """
    Share the page width out between measures.

    Every measure keeps its overhead; the remainder is split in proportion
    to beat totals.
    """
    if not overheads:
        return []
    overhead_arr = np.asarray(overheads, dtype=float)
    beats_arr = np.asarray([float(b) for b in beat_totals], dtype=float)
    available = max(0.0, page_width - float(overhead_arr.sum()) - float(sum(barline_widths)))
    note_widths = beats_arr / beats_arr.sum() * available
    return [float(w) for w in overhead_arr + note_widths]


def beat_to_x(
    positions: Sequence[Fraction],
    start_x: float,
    available: float,
    config: SpacingConfig | None = None,
) -> dict[Fraction, float]:
    """Linear map from sorted onsets to x inside a measure's note area."""
    config = config or SpacingConfig()
    count = len(positions)
    if count == 0:
        return {}
    fractions = np.arange(count, dtype=float) / max(count - 1, 1)
    xs = start_x + fractions * available * config.span + available * config.margin
    return {beat: float(x) for beat, x in zip(positions, xs)}

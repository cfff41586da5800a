"""compute_layout: turn a ScoreInput into final LayoutResult geometry.

Passes, per measure:

1. Header (clef, time signature) and the shared beat → x map.
2. Note positioning, with beam-group stem directions chosen up front.
3. Beaming on the positioned chords, producing beams and stem patches.
4. Patches merged into the placements, then tuplets laid out on the result.

Barlines are placed between measures as the cursor advances.
"""

from __future__ import annotations

from scorelayout.barlines import barline_at, staff_lines
from scorelayout.beaming import StemPatch, beam_groups, layout_beam_group
from scorelayout.constants import (
    BARLINE_THIN_WIDTH,
    CLEF_TIME_SIG_PADDING,
    DEFAULT_PAGE_HEIGHT,
    DEFAULT_PAGE_WIDTH,
    STAVE_LEFT_PADDING,
    STAVE_RIGHT_PADDING,
    TIME_SIG_NOTE_PADDING,
)
from scorelayout.glyphs import GlyphMetrics, GlyphSource
from scorelayout.layout_models import (
    LayoutBeam,
    LayoutGlyph,
    LayoutMeasure,
    LayoutNote,
    LayoutResult,
    LayoutTimeSignature,
    LayoutTuplet,
)
from scorelayout.pitch import CLEF_CONFIG, get_y_for_line
from scorelayout.positioner import position_voice
from scorelayout.score_models import MeasureInput, ScoreInput
from scorelayout.spacing import (
    SpacingConfig,
    allocate_measure_widths,
    barline_width,
    beat_positions,
    beat_to_x,
    clef_width,
    measure_beat_total,
    measure_overhead,
    parse_time_signature,
    time_signature_glyphs,
    time_signature_width,
)
from scorelayout.tuplets import layout_voice_tuplets


def _digit_row(digits: str, x: float, y: float, metrics: GlyphMetrics) -> tuple[LayoutGlyph, ...]:
    glyphs = []
    for name in time_signature_glyphs(digits):
        glyphs.append(LayoutGlyph(glyph_name=name, x=x, y=y))
        x += metrics.width_or_zero(name)
    return tuple(glyphs)


def _layout_header(
    measure: MeasureInput,
    x: float,
    metrics: GlyphMetrics,
) -> tuple[LayoutGlyph | None, LayoutTimeSignature | None, float]:
    """Clef and time signature glyphs; returns them and the x where notes may start."""
    cursor_x = x + STAVE_LEFT_PADDING

    clef: LayoutGlyph | None = None
    clef_w = clef_width(measure.clef, metrics)
    if measure.clef is not None and clef_w is not None:
        config = CLEF_CONFIG[measure.clef]
        clef = LayoutGlyph(glyph_name=config.glyph_name, x=cursor_x, y=get_y_for_line(config.line_index))
        cursor_x += clef_w + CLEF_TIME_SIG_PADDING

    time_signature: LayoutTimeSignature | None = None
    time_sig_w = time_signature_width(measure.time_signature, metrics)
    parsed = parse_time_signature(measure.time_signature)
    if parsed is not None and time_sig_w is not None:
        top, bottom = parsed
        time_signature = LayoutTimeSignature(
            top=_digit_row(top, cursor_x, get_y_for_line(1), metrics),
            bottom=_digit_row(bottom, cursor_x, get_y_for_line(3), metrics),
        )
        cursor_x += time_sig_w + TIME_SIG_NOTE_PADDING

    return clef, time_signature, cursor_x


def layout_measure(
    measure: MeasureInput,
    measure_x: float,
    measure_width: float,
    *,
    first_event_index: int,
    metrics: GlyphMetrics,
    spacing: SpacingConfig,
) -> LayoutMeasure:
    """Lay out one measure whose left edge is ``measure_x``."""
    clef, time_signature, notes_start_x = _layout_header(measure, measure_x, metrics)
    notes_end_x = measure_x + measure_width - STAVE_RIGHT_PADDING
    beat_x = beat_to_x(beat_positions(measure), notes_start_x, notes_end_x - notes_start_x, spacing)
    notehead_width = metrics.width_or_zero("noteheadBlack")

    notes: list[LayoutNote] = []
    beams: list[LayoutBeam] = []
    tuplets: list[LayoutTuplet] = []
    event_index = first_event_index

    for voice_index, voice in enumerate(measure.voices):
        placements = position_voice(
            voice,
            voice_index=voice_index,
            first_event_index=event_index,
            clef=measure.clef,
            beat_x=beat_x,
            metrics=metrics,
        )
        event_index += len(voice.notes)

        patches: dict[int, StemPatch] = {}
        for group in beam_groups(placements):
            beam, group_patches = layout_beam_group(group)
            beams.append(beam)
            patches.update(group_patches)

        finalized = [
            placement.with_patch(patches[placement.event_index]) if placement.event_index in patches else placement
            for placement in placements
        ]
        tuplets.extend(layout_voice_tuplets(voice, finalized, notehead_width, metrics))
        for placement in finalized:
            notes.extend(placement.layout_notes())

    return LayoutMeasure(
        x=measure_x,
        width=measure_width,
        clef=clef,
        time_signature=time_signature,
        notes=tuple(notes),
        beams=tuple(beams),
        tuplets=tuple(tuplets),
    )


def compute_layout(
    score: ScoreInput,
    width: float = DEFAULT_PAGE_WIDTH,
    height: float = DEFAULT_PAGE_HEIGHT,
    *,
    glyphs: GlyphSource | None = None,
    spacing: SpacingConfig | None = None,
    metrics: GlyphMetrics | None = None,
) -> LayoutResult:
    """
    Compute the full geometry of a single-staff score.

    The same input always yields the same result; ``score`` is never mutated.

    Args:
        score:   Declarative score description.
        width:   Page width in pixels; measures share it by beat count.
        height:  Page height in pixels (passed through for the renderer).
        glyphs:  Font service; defaults to the bundled Bravura metrics.
        spacing: Breathing-room margins inside each measure.
        metrics: Width cache to reuse across calls; built from ``glyphs`` when omitted.
    """
    if metrics is None:
        metrics = GlyphMetrics(glyphs)
    spacing = spacing or SpacingConfig()
    measures = score.measures

    overheads = [measure_overhead(measure, metrics) for measure in measures]
    beat_totals = [measure_beat_total(measure) for measure in measures]
    end_widths = [barline_width(measure.barline_type) for measure in measures]
    measure_widths = allocate_measure_widths(
        overheads,
        beat_totals,
        [BARLINE_THIN_WIDTH, *end_widths],
        width,
    )

    barlines = [barline_at(0.0, "single")]
    cursor_x = BARLINE_THIN_WIDTH
    event_index = 0
    measure_layouts: list[LayoutMeasure] = []

    for measure, measure_width, end_width in zip(measures, measure_widths, end_widths):
        measure_layouts.append(
            layout_measure(
                measure,
                cursor_x,
                measure_width,
                first_event_index=event_index,
                metrics=metrics,
                spacing=spacing,
            )
        )
        event_index += sum(len(voice.notes) for voice in measure.voices)
        cursor_x += measure_width
        barlines.append(barline_at(cursor_x, measure.barline_type))
        cursor_x += end_width

    return LayoutResult(
        width=width,
        height=height,
        staff_lines=staff_lines(width),
        measures=tuple(measure_layouts),
        barlines=tuple(barlines),
    )

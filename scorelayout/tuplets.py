"""Tuplet layout: bracket extent, side, number glyphs and bracket strokes."""

from __future__ import annotations

from typing import Sequence

from scorelayout.constants import (
    TUPLET_BRACKET_HEIGHT,
    TUPLET_NUMBER_PADDING,
    TUPLET_NUMBER_SCALE,
    TUPLET_OFFSET,
    TUPLET_RATIO_GAP,
)
from scorelayout.glyphs import GlyphMetrics
from scorelayout.layout_models import LayoutGlyph, LayoutLine, LayoutTuplet
from scorelayout.pitch import is_beamable
from scorelayout.positioner import ChordPlacement
from scorelayout.score_models import TupletInput, VoiceInput
from scorelayout.spacing import time_signature_glyphs


def tuplet_number_glyphs(
    tuplet: TupletInput,
    center_x: float,
    y: float,
    metrics: GlyphMetrics,
) -> tuple[tuple[LayoutGlyph, ...], float]:
    """
    Digits of the tuplet number ("3", or "3:2" with show_ratio), centered.

    Returns:
        The glyphs and the total width of the run.
    """
    numerator = time_signature_glyphs(str(tuplet.count))
    denominator = time_signature_glyphs(str(tuplet.notes_occupied)) if tuplet.show_ratio else []

    def run_width(names: Sequence[str]) -> float:
        return sum(metrics.width_or_zero(name, TUPLET_NUMBER_SCALE) for name in names)

    total_width = run_width(numerator)
    if denominator:
        total_width += TUPLET_RATIO_GAP + run_width(denominator)

    glyphs: list[LayoutGlyph] = []
    x = center_x - total_width / 2
    for i, names in enumerate((numerator, denominator)):
        if i == 1 and names:
            x += TUPLET_RATIO_GAP
        for name in names:
            width = metrics.width(name, TUPLET_NUMBER_SCALE)
            if width is None:
                continue
            glyphs.append(LayoutGlyph(glyph_name=name, x=x, y=y, scale=TUPLET_NUMBER_SCALE))
            x += width
    return tuple(glyphs), total_width


def bracket_lines(
    x1: float,
    x2: float,
    y: float,
    location: int,
    number_width: float,
) -> tuple[LayoutLine, ...]:
    """Two end ticks pointing at the notes and two runs leaving room for the number."""
    center_x = (x1 + x2) / 2
    half_gap = number_width / 2 + TUPLET_NUMBER_PADDING
    tick_end = y + location * TUPLET_BRACKET_HEIGHT

    lines = [LayoutLine(x1=x1, y1=y, x2=x1, y2=tick_end)]
    if center_x - half_gap > x1:
        lines.append(LayoutLine(x1=x1, y1=y, x2=center_x - half_gap, y2=y))
    if x2 > center_x + half_gap:
        lines.append(LayoutLine(x1=center_x + half_gap, y1=y, x2=x2, y2=y))
    lines.append(LayoutLine(x1=x2, y1=y, x2=x2, y2=tick_end))
    return tuple(lines)


def layout_tuplet(
    tuplet: TupletInput,
    members: Sequence[ChordPlacement],
    notehead_width: float,
    metrics: GlyphMetrics,
) -> LayoutTuplet | None:
    """
    Geometry for one tuplet from its finalized member placements.

    The bracket goes on the side most stems point to (ties go above) and is
    left out when every member ended up under a beam.
    """
    if not members:
        return None

    up_count = sum(1 for member in members if member.stem_dir == "up")
    stem_dir = "up" if up_count >= len(members) / 2 else "down"
    location = 1 if stem_dir == "up" else -1

    x1 = members[0].x
    x2 = members[-1].x + notehead_width

    # One reference y per member: the stem tip, or the notehead when stemless.
    extremes = [member.stem.y2 if member.stem is not None else member.heads[0].y for member in members]
    if stem_dir == "up":
        y = min(extremes) - TUPLET_OFFSET
    else:
        y = max(extremes) + TUPLET_OFFSET

    all_beamed = all(
        member.flag is None and member.stem is not None and is_beamable(member.duration) and not member.is_rest
        for member in members
    )

    number_glyphs, number_width = tuplet_number_glyphs(tuplet, (x1 + x2) / 2, y, metrics)
    return LayoutTuplet(
        x1=x1,
        x2=x2,
        y=y,
        location=location,
        number_glyphs=number_glyphs,
        bracketed=not all_beamed,
        bracket_lines=() if all_beamed else bracket_lines(x1, x2, y, location, number_width),
    )


def layout_voice_tuplets(
    voice: VoiceInput,
    placements: Sequence[ChordPlacement],
    notehead_width: float,
    metrics: GlyphMetrics,
) -> list[LayoutTuplet]:
    """Tuplet layouts for one voice, in declaration order."""
    layouts = []
    for tuplet_index, tuplet in enumerate(voice.tuplets):
        members = [placement for placement in placements if placement.tuplet_index == tuplet_index]
        layout = layout_tuplet(tuplet, members, notehead_width, metrics)
        if layout is not None:
            layouts.append(layout)
    return layouts

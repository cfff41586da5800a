"""Note positioner: provisional geometry for every note, chord and rest."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from fractions import Fraction
from statistics import mean
from typing import Mapping

from scorelayout.beaming import StemPatch, stem_directions_for_voice
from scorelayout.constants import ACCIDENTAL_PADDING, LEDGER_LINE_EXTENSION, STEM_HEIGHT
from scorelayout.glyphs import GlyphMetrics
from scorelayout.layout_models import LayoutGlyph, LayoutLine, LayoutNote, LayoutStem
from scorelayout.pitch import (
    MIDDLE_LINE,
    InvalidKeyError,
    ParsedKey,
    accidental_glyph_name,
    effective_beats,
    flag_glyph_name,
    get_y_for_note,
    ledger_lines_for,
    notehead_for_duration,
    parse_key,
    pitch_to_line,
    rest_glyph_for_duration,
    rest_line,
)
from scorelayout.score_models import NoteInput, VoiceInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChordPlacement:
    """
    Provisional layout of one NoteInput.

    ``heads`` carry no stem or flag; those live on the placement so the beam
    pass can patch them before :meth:`layout_notes` attaches them to the head
    at ``stem_head_index``.
    """

    event_index: int
    voice_index: int
    note_index: int
    onset: Fraction
    beats: Fraction
    duration: str
    x: float
    heads: tuple[LayoutNote, ...]
    stem_dir: str = "up"
    is_rest: bool = False
    tuplet_index: int | None = None
    stem: LayoutStem | None = None
    flag: LayoutGlyph | None = None
    stem_head_index: int | None = None

    def with_patch(self, patch: StemPatch) -> ChordPlacement:
        """Copy with the stem tip moved onto the beam (and flag cleared)."""
        if self.stem is None:
            return self
        return replace(
            self,
            stem=replace(self.stem, y2=patch.stem_tip_y),
            flag=None if patch.clear_flag else self.flag,
        )

    def layout_notes(self) -> tuple[LayoutNote, ...]:
        if self.stem_head_index is None:
            return self.heads
        return tuple(
            replace(head, stem=self.stem, flag=self.flag) if i == self.stem_head_index else head
            for i, head in enumerate(self.heads)
        )


def _ledger_lines(line: float, x: float, head_width: float) -> tuple[LayoutLine, ...]:
    return tuple(
        LayoutLine(
            x1=x - LEDGER_LINE_EXTENSION,
            y1=get_y_for_note(ledger),
            x2=x + head_width + LEDGER_LINE_EXTENSION,
            y2=get_y_for_note(ledger),
        )
        for ledger in ledger_lines_for(line)
    )


def _accidental(parsed: ParsedKey, x: float, y: float, metrics: GlyphMetrics) -> LayoutGlyph | None:
    glyph_name = accidental_glyph_name(parsed.accidental)
    if glyph_name is None:
        if parsed.accidental is not None:
            logger.debug("No glyph for accidental '%s'.", parsed.accidental)
        return None
    width = metrics.width(glyph_name)
    if width is None:
        return None
    return LayoutGlyph(glyph_name=glyph_name, x=x - width - ACCIDENTAL_PADDING, y=y)


def resolve_stem_dir(preference: str, group_dir: str | None, mean_line: float) -> str:
    """Explicit voice preference, then beam-group direction, then pitch."""
    if preference != "auto":
        return preference
    if group_dir is not None:
        return group_dir
    return "down" if mean_line >= MIDDLE_LINE else "up"


def position_note(
    note: NoteInput,
    *,
    event_index: int,
    voice_index: int,
    note_index: int,
    onset: Fraction,
    beats: Fraction,
    x: float,
    clef: str | None,
    stem_preference: str,
    group_dir: str | None,
    tuplet_index: int | None,
    metrics: GlyphMetrics,
) -> ChordPlacement | None:
    """
    Place one note, chord or rest at ``x``.

    Returns ``None`` when nothing can be drawn (unparseable first key or an
    unmapped glyph).
    """
    try:
        first = parse_key(note.keys[0])
    except InvalidKeyError as exc:
        logger.debug("Skipping note event %d: %s", event_index, exc)
        return None

    common = {
        "event_index": event_index,
        "voice_index": voice_index,
        "note_index": note_index,
        "onset": onset,
        "beats": beats,
        "duration": note.duration,
        "x": x,
        "tuplet_index": tuplet_index,
    }

    if first.is_rest:
        glyph_name = rest_glyph_for_duration(note.duration)
        if not metrics.has(glyph_name):
            return None
        rest = LayoutNote(
            note_event_index=event_index,
            x=x,
            y=get_y_for_note(rest_line(note.duration)),
            glyph_name=glyph_name,
        )
        return ChordPlacement(heads=(rest,), is_rest=True, **common)

    pitched: list[tuple[ParsedKey, float]] = []
    for key in note.keys:
        try:
            pitched.append((parse_key(key), pitch_to_line(key, clef)))
        except InvalidKeyError as exc:
            logger.debug("Dropping key in note event %d: %s", event_index, exc)
    if not pitched:
        return None

    glyph_name = notehead_for_duration(note.duration)
    head_width = metrics.width(glyph_name)
    if head_width is None:
        return None

    mean_line = mean(line for _, line in pitched)
    stem_dir = resolve_stem_dir(stem_preference, group_dir, mean_line)

    heads = []
    for parsed, line in pitched:
        y = get_y_for_note(line)
        heads.append(
            LayoutNote(
                note_event_index=event_index,
                x=x,
                y=y,
                glyph_name=glyph_name,
                ledger_lines=_ledger_lines(line, x, head_width),
                accidental=_accidental(parsed, x, y, metrics),
            )
        )

    stem: LayoutStem | None = None
    stem_head_index: int | None = None
    if note.duration != "w":
        ys = [head.y for head in heads]
        if stem_dir == "up":
            # Runs from the lowest head to above the highest one.
            stem_head_index = ys.index(max(ys))
            stem = LayoutStem(x=x + head_width, y1=max(ys), y2=min(ys) - STEM_HEIGHT)
        else:
            stem_head_index = ys.index(min(ys))
            stem = LayoutStem(x=x, y1=min(ys), y2=max(ys) + STEM_HEIGHT)

    flag: LayoutGlyph | None = None
    flag_name = flag_glyph_name(note.duration, stem_dir)
    if stem is not None and flag_name is not None and metrics.has(flag_name):
        flag = LayoutGlyph(glyph_name=flag_name, x=stem.x, y=stem.y2)

    return ChordPlacement(
        heads=tuple(heads),
        stem_dir=stem_dir,
        stem=stem,
        flag=flag,
        stem_head_index=stem_head_index,
        **common,
    )


def position_voice(
    voice: VoiceInput,
    *,
    voice_index: int,
    first_event_index: int,
    clef: str | None,
    beat_x: Mapping[Fraction, float],
    metrics: GlyphMetrics,
) -> list[ChordPlacement]:
    """Place every note of a voice in onset order, skipping undrawable events."""
    group_dirs = stem_directions_for_voice(voice, clef)
    placements: list[ChordPlacement] = []
    onset = Fraction(0)

    for note_index, note in enumerate(voice.notes):
        beats = effective_beats(note.duration, voice.tuplet_for(note_index))
        placement = position_note(
            note,
            event_index=first_event_index + note_index,
            voice_index=voice_index,
            note_index=note_index,
            onset=onset,
            beats=beats,
            x=beat_x[onset],
            clef=clef,
            stem_preference=voice.stem,
            group_dir=group_dirs.get(note_index),
            tuplet_index=voice.tuplet_index_for(note_index),
            metrics=metrics,
        )
        if placement is not None:
            placements.append(placement)
        onset += beats

    return placements

"""Auto-beaming: group detection, stem-direction pre-pass and beam geometry.

The same grouping rule runs twice. Before positioning, it runs on the raw
voice to pick one stem direction per potential group. After positioning,
it runs on the placed chords to build the actual beams. A group closes at a
rest, at a non-beamable duration, at a gap left by an undrawable event, or
when a note ends past an integer beat unless both neighbours belong to the
same tuplet.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from fractions import Fraction
from statistics import mean
from typing import TYPE_CHECKING, Callable, Sequence

from scorelayout.constants import BEAM_LEVEL_STRIDE, BEAM_MAX_SLOPE, BEAM_WIDTH, PARTIAL_BEAM_LENGTH
from scorelayout.layout_models import LayoutBeam, LayoutBeamSegment, LayoutStem
from scorelayout.pitch import (
    MIDDLE_LINE,
    InvalidKeyError,
    beam_count,
    effective_beats,
    is_beamable,
    parse_key,
    pitch_to_line,
)
from scorelayout.score_models import VoiceInput

if TYPE_CHECKING:
    from scorelayout.positioner import ChordPlacement


@dataclass(frozen=True)
class BeamCandidate:
    """What the grouping rule needs to know about one event."""

    onset: Fraction
    beats: Fraction
    beamable: bool
    tuplet_index: int | None = None
    stem_dir: str | None = None


@dataclass(frozen=True)
class StemPatch:
    """Revised stem tip for a beamed chord; beamed chords lose their flag."""

    stem_tip_y: float
    clear_flag: bool = True


def group_beamable(
    count: int,
    info: Callable[[int], BeamCandidate],
    *,
    split_on_direction: bool = False,
) -> list[list[int]]:
    """
    Indices of consecutive beamable events that belong under one beam.

    Args:
        count:              Number of events in the voice.
        info:               Accessor returning the BeamCandidate for an index.
        split_on_direction: Also close a group when the stem direction changes.

    Returns:
        Groups of two or more indices, in order.
    """
    groups: list[list[int]] = []
    current: list[int] = []
    previous: BeamCandidate | None = None
    group_dir: str | None = None

    def flush() -> None:
        if len(current) >= 2:
            groups.append(list(current))
        current.clear()

    for index in range(count):
        candidate = info(index)
        if not candidate.beamable:
            flush()
            previous = None
            continue

        if current and previous is not None:
            same_tuplet = previous.tuplet_index is not None and previous.tuplet_index == candidate.tuplet_index
            previous_end = previous.onset + previous.beats
            if previous_end != candidate.onset:
                # Something undrawable sat between the two.
                flush()
            elif not same_tuplet and math.floor(previous_end) > math.floor(previous.onset):
                flush()
            elif split_on_direction and group_dir != candidate.stem_dir:
                flush()

        if not current:
            group_dir = candidate.stem_dir
        current.append(index)
        previous = candidate

    flush()
    return groups


def _mean_chord_line(keys: Sequence[str], clef: str | None) -> float | None:
    lines = []
    for key in keys:
        try:
            lines.append(pitch_to_line(key, clef))
        except InvalidKeyError:
            continue
    return mean(lines) if lines else None


def stem_directions_for_voice(voice: VoiceInput, clef: str | None) -> dict[int, str]:
    """
    Uniform stem direction for every note that will end up under a beam.

    Each potential group points down when the average of its chords' mean
    lines is on or above the middle line, up otherwise. Voices with an
    explicit stem preference are left alone.
    """
    if voice.stem != "auto":
        return {}

    candidates: list[BeamCandidate] = []
    mean_lines: list[float | None] = []
    onset = Fraction(0)
    for note_index, note in enumerate(voice.notes):
        tuplet_index = voice.tuplet_index_for(note_index)
        beats = effective_beats(note.duration, voice.tuplet_for(note_index))
        try:
            is_rest = parse_key(note.keys[0]).is_rest
        except InvalidKeyError:
            is_rest = True
        line = None if is_rest else _mean_chord_line(note.keys, clef)
        candidates.append(
            BeamCandidate(
                onset=onset,
                beats=beats,
                beamable=is_beamable(note.duration) and line is not None,
                tuplet_index=tuplet_index,
            )
        )
        mean_lines.append(line)
        onset += beats

    directions: dict[int, str] = {}
    for group in group_beamable(len(candidates), candidates.__getitem__):
        average = mean(line for line in (mean_lines[i] for i in group) if line is not None)
        group_dir = "down" if average >= MIDDLE_LINE else "up"
        for note_index in group:
            directions[note_index] = group_dir
    return directions


def beam_candidate(placement: ChordPlacement) -> BeamCandidate:
    return BeamCandidate(
        onset=placement.onset,
        beats=placement.beats,
        beamable=is_beamable(placement.duration) and not placement.is_rest and placement.stem is not None,
        tuplet_index=placement.tuplet_index,
        stem_dir=placement.stem_dir,
    )


def beam_groups(placements: Sequence[ChordPlacement]) -> list[list[ChordPlacement]]:
    """Beam groups among the placed chords of one voice."""
    groups = group_beamable(
        len(placements),
        lambda i: beam_candidate(placements[i]),
        split_on_direction=True,
    )
    return [[placements[i] for i in group] for group in groups]


def layout_beam_group(group: Sequence[ChordPlacement]) -> tuple[LayoutBeam, dict[int, StemPatch]]:
    """
    Beam geometry for one group plus the stem patches that meet it.

    The slope is half the slope between the outer stem tips, clamped to
    BEAM_MAX_SLOPE. The beam is then shifted so that no stem pokes through
    it, and every stem is stretched or trimmed to touch it.

    Returns:
        The beam, and a StemPatch per member keyed by note event index.

    Raises:
        ValueError: If a member has no stem.
    """
    stems: list[LayoutStem] = []
    for placement in group:
        if placement.stem is None:
            raise ValueError("Every member of a beam group needs a stem.")
        stems.append(placement.stem)

    stem_dir = group[0].stem_dir
    dir_sign = -1 if stem_dir == "up" else 1
    first, last = stems[0], stems[-1]

    dx = last.x - first.x
    slope = 0.0
    if dx != 0:
        raw_slope = (last.y2 - first.y2) / dx
        slope = max(-BEAM_MAX_SLOPE, min(BEAM_MAX_SLOPE, raw_slope / 2))

    def beam_y_at(x: float, level_y: float) -> float:
        return level_y + (x - first.x) * slope

    beam_first_y = first.y2
    for stem in stems:
        beam_y = beam_y_at(stem.x, beam_first_y)
        if stem_dir == "up" and beam_y > stem.y2:
            beam_first_y -= beam_y - stem.y2
        elif stem_dir == "down" and beam_y < stem.y2:
            beam_first_y += stem.y2 - beam_y

    patches = {
        placement.event_index: StemPatch(stem_tip_y=beam_y_at(stem.x, beam_first_y))
        for placement, stem in zip(group, stems)
    }

    thickness = BEAM_WIDTH * dir_sign
    counts = [beam_count(placement.duration) for placement in group]
    xs = [stem.x for stem in stems]
    segments: list[LayoutBeamSegment] = []

    for level in range(max(counts)):
        level_y = beam_first_y - level * BEAM_LEVEL_STRIDE * dir_sign
        if level == 0:
            segments.append(
                LayoutBeamSegment(
                    x1=first.x,
                    y1=level_y,
                    x2=last.x,
                    y2=beam_y_at(last.x, level_y),
                    thickness=thickness,
                )
            )
            continue

        run_start: int | None = None
        for i, count in enumerate(counts):
            if count <= level:
                continue
            if run_start is None:
                run_start = i
            if i + 1 < len(counts) and counts[i + 1] > level:
                continue

            if run_start == i:
                # Lone note at this level: a stub pointing at its neighbour.
                direction = 1 if i == 0 else -1
                x1 = xs[i]
                x2 = x1 + direction * PARTIAL_BEAM_LENGTH
            else:
                x1, x2 = xs[run_start], xs[i]
            segments.append(
                LayoutBeamSegment(
                    x1=x1,
                    y1=beam_y_at(x1, level_y),
                    x2=x2,
                    y2=beam_y_at(x2, level_y),
                    thickness=thickness,
                )
            )
            run_start = None

    beam = LayoutBeam(
        note_event_indices=tuple(placement.event_index for placement in group),
        segments=tuple(segments),
    )
    return beam, patches

"""ScoreImporter: reads MIDI or MusicXML with music21 and builds a ScoreInput."""

from __future__ import annotations

import logging
from fractions import Fraction
from pathlib import Path
from typing import Any, Final

from scorelayout.pitch import DURATION_BEATS
from scorelayout.score_models import MeasureInput, NoteInput, ScoreInput, TupletInput, VoiceInput

logger = logging.getLogger(__name__)

MIDI_SUFFIXES: Final[set[str]] = {".mid", ".midi"}


class ScoreImporter:
    """
    Convert one part of a MIDI or MusicXML file into a single-staff ScoreInput.

    Written note types map straight onto durations (``eighth`` → ``8``) with
    their dots; anything shorter or longer than the supported range falls back
    to the nearest supported length. music21 tuplets become TupletInputs.
    """

    _TYPE_TO_DURATION: Final[dict[str, str]] = {
        "whole": "w",
        "half": "h",
        "quarter": "q",
        "eighth": "8",
        "16th": "16",
    }

    _CLEF_SIGNS: Final[dict[str, str]] = {"G": "treble", "F": "bass"}

    _REST_KEYS: Final[dict[str, str]] = {"treble": "B/4/r", "bass": "D/3/r"}

    def __init__(self, part_index: int = 0) -> None:
        self.part_index = part_index

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_score(self, path: str) -> Any:
        from music21 import converter

        if Path(path).suffix.lower() in MIDI_SUFFIXES:
            return converter.parse(path, format="midi")
        return converter.parse(path)

    def _select_part(self, score: Any) -> Any:
        parts = list(getattr(score, "parts", []))
        if not parts:
            raise ValueError("The file contains no parts.")
        if not 0 <= self.part_index < len(parts):
            raise ValueError(f"Part {self.part_index} does not exist; the file has {len(parts)} part(s).")
        part = parts[self.part_index]
        if not part.hasMeasures():
            part = part.makeMeasures()
        return part

    def _part_to_input(self, part: Any) -> ScoreInput:
        measures = list(part.getElementsByClass("Measure"))
        clef = "treble"
        converted: list[MeasureInput] = []
        for measure in measures:
            measure_clef = self._clef_name(getattr(measure, "clef", None))
            if measure_clef is not None:
                clef = measure_clef
            converted.append(self._measure_to_input(measure, clef, show_clef=measure_clef is not None))

        if not converted:
            converted.append(MeasureInput(voices=(VoiceInput(notes=(self._default_rest(clef),)),), clef=clef))
        last = converted[-1]
        converted[-1] = MeasureInput(
            voices=last.voices,
            clef=last.clef,
            time_signature=last.time_signature,
            end_barline="end",
        )
        return ScoreInput(measures=tuple(converted))

    def _measure_to_input(self, measure: Any, clef: str, show_clef: bool = False) -> MeasureInput:
        time_signature = getattr(measure, "timeSignature", None)
        ratio = getattr(time_signature, "ratioString", None)

        # Multi-voice measures keep their notes inside stream.Voice containers.
        containers = list(getattr(measure, "voices", None) or ()) or [measure]
        voices = [
            voice
            for voice in (self._voice_to_input(container.notesAndRests, clef) for container in containers)
            if voice is not None
        ]
        if not voices:
            voices = [VoiceInput(notes=(self._default_rest(clef),))]

        return MeasureInput(
            voices=tuple(voices),
            clef=clef if show_clef else None,
            time_signature=ratio if isinstance(ratio, str) and ratio else None,
        )

    def _voice_to_input(self, elements: Any, clef: str) -> VoiceInput | None:
        notes: list[NoteInput] = []
        tuplet_shapes: list[tuple[int, int] | None] = []
        for element in elements:
            notes.append(self._element_to_note(element, clef))
            tuplets = getattr(element.duration, "tuplets", ()) or ()
            if tuplets:
                tuplet_shapes.append((int(tuplets[0].numberNotesActual), int(tuplets[0].numberNotesNormal)))
            else:
                tuplet_shapes.append(None)

        if not notes:
            return None
        return VoiceInput(notes=tuple(notes), tuplets=tuple(self._collect_tuplets(tuplet_shapes)))

    def _collect_tuplets(self, shapes: list[tuple[int, int] | None]) -> list[TupletInput]:
        """Group runs of notes sharing a tuplet ratio into TupletInputs of at most ``actual`` notes."""
        tuplets: list[TupletInput] = []
        start: int | None = None
        shape: tuple[int, int] | None = None

        def close(end: int) -> None:
            if start is not None and shape is not None:
                tuplets.append(TupletInput(start_index=start, count=end - start, notes_occupied=shape[1]))

        for index, current in enumerate(shapes):
            if start is not None and (current != shape or shape is None or index - start >= shape[0]):
                close(index)
                start, shape = None, None
            if current is not None and start is None:
                start, shape = index, current
        close(len(shapes))
        return tuplets

    def _element_to_note(self, element: Any, clef: str) -> NoteInput:
        duration, dots = self._duration_token(element.duration)
        if element.isRest:
            return NoteInput(keys=(self._REST_KEYS.get(clef, "B/4/r"),), duration=duration, dots=dots)
        pitches = element.pitches if element.isChord else [element.pitch]
        return NoteInput(keys=tuple(self._pitch_to_key(p) for p in pitches), duration=duration, dots=dots)

    def _duration_token(self, duration: Any) -> tuple[str, int]:
        token = self._TYPE_TO_DURATION.get(str(getattr(duration, "type", "")))
        if token is not None:
            return token, int(getattr(duration, "dots", 0) or 0)

        quarter_length = Fraction(getattr(duration, "quarterLength", 1)).limit_denominator(64)
        if quarter_length <= 0:
            return "q", 0
        logger.debug("Approximating unsupported duration of %s quarters.", quarter_length)
        nearest = min(DURATION_BEATS, key=lambda name: abs(DURATION_BEATS[name] - quarter_length))
        return nearest, 0

    def _pitch_to_key(self, pitch: Any) -> str:
        name = str(getattr(pitch, "name", "C")).replace("-", "b")
        octave_value = getattr(pitch, "octave", 4)
        octave = octave_value if isinstance(octave_value, int) else 4
        return f"{name[0].upper()}{name[1:]}/{octave}"

    def _clef_name(self, clef: Any) -> str | None:
        if clef is None:
            return None
        return self._CLEF_SIGNS.get(str(getattr(clef, "sign", "")))

    def _default_rest(self, clef: str) -> NoteInput:
        return NoteInput(keys=(self._REST_KEYS.get(clef, "B/4/r"),), duration="w")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def import_file(self, path: str) -> ScoreInput:
        """
        Read ``path`` and convert the selected part.

        Raises:
            ValueError: If the file has no such part.
            OSError: If the file cannot be read.
        """
        score = self._parse_score(path)
        return self._part_to_input(self._select_part(score))

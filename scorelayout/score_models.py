"""Input data models: the declarative score description consumed by layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping

from scorelayout.pitch import DURATIONS

STEM_PREFERENCES: Final[tuple[str, ...]] = ("up", "down", "auto")
BARLINE_TYPES: Final[tuple[str, ...]] = ("single", "double", "end", "none")


class ScoreInputError(ValueError):
    """Raised for structurally impossible score input."""


def _pick(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a JSON field under its camelCase or snake_case name."""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


@dataclass(frozen=True)
class NoteInput:
    """
    A single note, chord or rest.

    Attributes:
        keys:     Key strings such as ``"C#/5"``; a first key ending in ``/r``
                  makes the event a rest.
        duration: One of ``w``, ``h``, ``q``, ``8``, ``16``.
        dots:     Augmentation dots (not applied by the base layout pass).
    """

    keys: tuple[str, ...]
    duration: str
    dots: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(self.keys))
        if not self.keys:
            raise ScoreInputError("A note needs at least one key.")
        if self.duration not in DURATIONS:
            raise ScoreInputError(
                f"Unsupported duration '{self.duration}'. Use one of: {', '.join(DURATIONS)}."
            )
        if self.dots < 0:
            raise ScoreInputError("Dot count cannot be negative.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NoteInput:
        return cls(
            keys=tuple(data.get("keys", ())),
            duration=str(data.get("duration", "")),
            dots=int(data.get("dots", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"keys": list(self.keys), "duration": self.duration}
        if self.dots:
            payload["dots"] = self.dots
        return payload


@dataclass(frozen=True)
class TupletInput:
    """``count`` notes from ``start_index`` played in the time of ``notes_occupied``."""

    start_index: int
    count: int
    notes_occupied: int = 2
    show_ratio: bool = False

    def __post_init__(self) -> None:
        if self.count < 1 or self.notes_occupied < 1:
            raise ScoreInputError("Tuplet count and notes_occupied must be positive.")
        if self.start_index < 0:
            raise ScoreInputError("Tuplet start_index cannot be negative.")

    @property
    def end_index(self) -> int:
        """Index one past the last member."""
        return self.start_index + self.count

    def __contains__(self, note_index: object) -> bool:
        return isinstance(note_index, int) and self.start_index <= note_index < self.end_index

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TupletInput:
        return cls(
            start_index=int(_pick(data, "startIndex", "start_index", 0)),
            count=int(data.get("count", 0)),
            notes_occupied=int(_pick(data, "notesOccupied", "notes_occupied", 2) or 2),
            show_ratio=bool(_pick(data, "showRatio", "show_ratio", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "startIndex": self.start_index,
            "count": self.count,
            "notesOccupied": self.notes_occupied,
            "showRatio": self.show_ratio,
        }


@dataclass(frozen=True)
class VoiceInput:
    """An independent rhythmic line within a measure."""

    notes: tuple[NoteInput, ...]
    stem: str = "auto"
    tuplets: tuple[TupletInput, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "notes", tuple(self.notes))
        object.__setattr__(self, "tuplets", tuple(self.tuplets))
        if self.stem not in STEM_PREFERENCES:
            raise ScoreInputError(f"Unsupported stem preference '{self.stem}'.")

        claimed: set[int] = set()
        for tuplet in self.tuplets:
            if tuplet.end_index > len(self.notes):
                raise ScoreInputError(
                    f"Tuplet at index {tuplet.start_index} spans {tuplet.count} notes "
                    f"but the voice only has {len(self.notes)}."
                )
            members = set(range(tuplet.start_index, tuplet.end_index))
            if members & claimed:
                raise ScoreInputError("Tuplet ranges overlap within a voice.")
            claimed |= members

    def tuplet_index_for(self, note_index: int) -> int | None:
        """Index into ``tuplets`` of the tuplet containing ``note_index``."""
        for tuplet_index, tuplet in enumerate(self.tuplets):
            if note_index in tuplet:
                return tuplet_index
        return None

    def tuplet_for(self, note_index: int) -> TupletInput | None:
        tuplet_index = self.tuplet_index_for(note_index)
        return self.tuplets[tuplet_index] if tuplet_index is not None else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VoiceInput:
        return cls(
            notes=tuple(NoteInput.from_dict(note) for note in data.get("notes", ())),
            stem=str(data.get("stem") or "auto"),
            tuplets=tuple(TupletInput.from_dict(t) for t in data.get("tuplets") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"notes": [note.to_dict() for note in self.notes]}
        if self.stem != "auto":
            payload["stem"] = self.stem
        if self.tuplets:
            payload["tuplets"] = [tuplet.to_dict() for tuplet in self.tuplets]
        return payload


@dataclass(frozen=True)
class MeasureInput:
    """
    One measure. Clef and time signature are drawn only in this measure.

    ``end_barline`` of ``None`` means a single barline.
    """

    voices: tuple[VoiceInput, ...]
    clef: str | None = None
    time_signature: str | None = None
    end_barline: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "voices", tuple(self.voices))
        if self.end_barline is not None and self.end_barline not in BARLINE_TYPES:
            raise ScoreInputError(
                f"Unsupported barline '{self.end_barline}'. Use one of: {', '.join(BARLINE_TYPES)}."
            )

    @property
    def barline_type(self) -> str:
        return self.end_barline or "single"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MeasureInput:
        return cls(
            voices=tuple(VoiceInput.from_dict(voice) for voice in data.get("voices", ())),
            clef=data.get("clef"),
            time_signature=_pick(data, "timeSignature", "time_signature"),
            end_barline=_pick(data, "endBarline", "end_barline"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.clef is not None:
            payload["clef"] = self.clef
        if self.time_signature is not None:
            payload["timeSignature"] = self.time_signature
        payload["voices"] = [voice.to_dict() for voice in self.voices]
        if self.end_barline is not None:
            payload["endBarline"] = self.end_barline
        return payload


@dataclass(frozen=True)
class ScoreInput:
    """Ordered sequence of measures laid out on a single staff."""

    measures: tuple[MeasureInput, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "measures", tuple(self.measures))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScoreInput:
        """
        Build a score from JSON-style data.

        Raises:
            ScoreInputError: If the data is structurally invalid.
        """
        try:
            return cls(measures=tuple(MeasureInput.from_dict(m) for m in data.get("measures", ())))
        except ScoreInputError:
            raise
        except (TypeError, AttributeError, ValueError) as exc:
            raise ScoreInputError(f"Malformed score data: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {"measures": [measure.to_dict() for measure in self.measures]}

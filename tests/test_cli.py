"""Tests for the scorelayout command line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from scorelayout import __version__
from scorelayout.cli import main
from scorelayout.score_importer import ScoreImporter
from scorelayout.score_models import MeasureInput, NoteInput, ScoreInput, VoiceInput


def _sample_payload() -> dict:
    return {
        "measures": [
            {
                "clef": "treble",
                "timeSignature": "2/4",
                "voices": [
                    {
                        "notes": [
                            {"keys": ["C/5"], "duration": "8"},
                            {"keys": ["D/5"], "duration": "8"},
                            {"keys": ["E/5"], "duration": "q"},
                        ]
                    }
                ],
                "endBarline": "end",
            }
        ]
    }


def _write_score(tmp_path: Path, payload: dict | None = None) -> Path:
    path = tmp_path / "song.json"
    path.write_text(json.dumps(payload if payload is not None else _sample_payload()), encoding="utf-8")
    return path


def test_version_option() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_layout_writes_json_next_to_score(tmp_path: Path) -> None:
    score_path = _write_score(tmp_path)
    result = CliRunner().invoke(main, ["layout", str(score_path)])
    assert result.exit_code == 0, result.output
    layout = json.loads((tmp_path / "song.layout.json").read_text(encoding="utf-8"))
    assert layout["width"] == 600
    assert [barline["type"] for barline in layout["barlines"]] == ["single", "end"]
    assert "Done!" in result.output


def test_layout_respects_page_size(tmp_path: Path) -> None:
    score_path = _write_score(tmp_path)
    output = tmp_path / "out.json"
    result = CliRunner().invoke(
        main, ["layout", str(score_path), "-o", str(output), "--width", "900", "--height", "200"]
    )
    assert result.exit_code == 0, result.output
    layout = json.loads(output.read_text(encoding="utf-8"))
    assert (layout["width"], layout["height"]) == (900, 200)


def test_render_svg_by_default(tmp_path: Path) -> None:
    score_path = _write_score(tmp_path)
    result = CliRunner().invoke(main, ["render", str(score_path)])
    assert result.exit_code == 0, result.output
    svg = (tmp_path / "song.svg").read_text(encoding="utf-8")
    assert svg.startswith("<svg")
    assert "<title>song</title>" in svg


def test_render_html_with_title(tmp_path: Path) -> None:
    score_path = _write_score(tmp_path)
    output = tmp_path / "page.html"
    result = CliRunner().invoke(
        main, ["render", str(score_path), "--format", "html", "--title", "My Song", "-o", str(output)]
    )
    assert result.exit_code == 0, result.output
    html = output.read_text(encoding="utf-8")
    assert "<h1>My Song</h1>" in html


def test_invalid_json_exits_with_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    result = CliRunner().invoke(main, ["layout", str(path)])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_invalid_score_exits_with_error(tmp_path: Path) -> None:
    payload = {"measures": [{"voices": [{"notes": [{"keys": ["C/4"], "duration": "3"}]}]}]}
    score_path = _write_score(tmp_path, payload)
    result = CliRunner().invoke(main, ["render", str(score_path)])
    assert result.exit_code == 1
    assert "Unsupported duration" in result.output


def test_missing_file_is_usage_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(main, ["layout", str(tmp_path / "missing.json")])
    assert result.exit_code == 2


def test_import_writes_score_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "melody.mid"
    source.write_bytes(b"MThd")
    whole = NoteInput(keys=("C/4",), duration="w")
    imported = ScoreInput(measures=(MeasureInput(voices=(VoiceInput(notes=(whole,)),), end_barline="end"),))
    seen: dict[str, object] = {}

    def fake_import(self: ScoreImporter, path: str) -> ScoreInput:
        seen["path"] = path
        seen["part"] = self.part_index
        return imported

    monkeypatch.setattr(ScoreImporter, "import_file", fake_import)
    result = CliRunner().invoke(main, ["import", str(source), "--part", "1"])
    assert result.exit_code == 0, result.output
    assert seen == {"path": str(source), "part": 1}
    written = json.loads((tmp_path / "melody.json").read_text(encoding="utf-8"))
    assert ScoreInput.from_dict(written) == imported


def test_import_failure_exits_with_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "melody.mid"
    source.write_bytes(b"MThd")

    def failing_import(self: ScoreImporter, path: str) -> ScoreInput:
        raise ValueError("The file contains no parts.")

    monkeypatch.setattr(ScoreImporter, "import_file", failing_import)
    result = CliRunner().invoke(main, ["import", str(source)])
    assert result.exit_code == 1
    assert "no parts" in result.output

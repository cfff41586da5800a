"""scorelayout CLI entry point."""

import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from scorelayout import __version__
from scorelayout.constants import DEFAULT_PAGE_HEIGHT, DEFAULT_PAGE_WIDTH
from scorelayout.layout import compute_layout
from scorelayout.renderers import HtmlRenderer, LayoutRenderer, SvgRenderer
from scorelayout.score_models import ScoreInput


def _get_renderer(output_format: str) -> LayoutRenderer:
    """Return the renderer for the requested output format."""
    if output_format == "html":
        return HtmlRenderer()
    return SvgRenderer()


def _load_score(score_json: str) -> ScoreInput:
    """Read a ScoreInput JSON document from disk.

    Raises ValueError for malformed JSON or an invalid score structure.
    """
    data = json.loads(Path(score_json).read_text(encoding="utf-8"))
    return ScoreInput.from_dict(data)


def _fail(message: str, exc: Exception) -> NoReturn:
    click.echo(f"  ERROR: {message} — {exc}", err=True)
    sys.exit(1)


page_width_option = click.option(
    "--width",
    type=click.FloatRange(min=1.0),
    default=DEFAULT_PAGE_WIDTH,
    show_default=True,
    help="Page width in pixels. Measures share it by beat count.",
)
page_height_option = click.option(
    "--height",
    type=click.FloatRange(min=1.0),
    default=DEFAULT_PAGE_HEIGHT,
    show_default=True,
    help="Page height in pixels.",
)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="scorelayout")
def main() -> None:
    """scorelayout — single-staff music notation layout engine."""


# ── layout subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("score_json", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination layout JSON path. Defaults to <score>.layout.json.",
)
@page_width_option
@page_height_option
def layout(score_json: str, output: str | None, width: float, height: float) -> None:
    """
    Compute the layout geometry of a score and save it as JSON.

    SCORE_JSON is a ScoreInput document (measures → voices → notes).

    \b
    Examples:
      scorelayout layout song.json
      scorelayout layout song.json --width 900 -o song.layout.json
    """
    score_path = Path(score_json)
    resolved_output = output if output is not None else str(score_path.with_suffix(".layout.json"))

    click.echo(f"scorelayout v{__version__}")
    click.echo(f"  Score  : {score_json}")
    click.echo(f"  Page   : {width:g} x {height:g}")
    click.echo()

    click.echo("[1/3] Reading score...")
    try:
        score = _load_score(score_json)
    except (OSError, ValueError) as exc:
        _fail("Could not read score", exc)

    click.echo(f"[2/3] Laying out {len(score.measures)} measure(s)...")
    result = compute_layout(score, width, height)

    click.echo(f"[3/3] Writing layout → '{resolved_output}'...")
    try:
        Path(resolved_output).write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    except OSError as exc:
        _fail("Could not write layout file", exc)

    click.echo()
    click.echo(f"Done!  {sum(len(m.notes) for m in result.measures)} notehead(s) placed.")


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("score_json", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file path. Defaults to extension based on --format.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["svg", "html"], case_sensitive=False),
    default="svg",
    show_default=True,
    help="Standalone SVG or a self-contained HTML page wrapping it.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output. Defaults to the score filename stem.",
)
@page_width_option
@page_height_option
def render(
    score_json: str,
    output: str | None,
    output_format: str,
    title: str | None,
    width: float,
    height: float,
) -> None:
    """
    Lay out a score and draw it as SVG or HTML.

    Glyphs are drawn with the Bravura font, which must be installed to view them.

    \b
    Examples:
      scorelayout render song.json
      scorelayout render song.json --format html --title "My Song" -o song.html
    """
    score_path = Path(score_json)
    renderer = _get_renderer(output_format.lower())
    resolved_title = title if title is not None else score_path.stem.replace("_", " ")
    resolved_output = output if output is not None else str(score_path.with_suffix(renderer.default_extension))

    click.echo(f"scorelayout v{__version__}")
    click.echo(f"  Score  : {score_json}")
    click.echo(f"  Format : {output_format.lower()}")
    click.echo(f"  Title  : {resolved_title}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/3] Reading score...")
    try:
        score = _load_score(score_json)
    except (OSError, ValueError) as exc:
        _fail("Could not read score", exc)

    click.echo("[2/3] Computing layout...")
    result = compute_layout(score, width, height)

    click.echo("[3/3] Rendering...")
    try:
        Path(resolved_output).write_text(renderer.render(result, title=resolved_title), encoding="utf-8")
    except OSError as exc:
        _fail("Could not write output file", exc)

    click.echo()
    click.echo(f"Done!  Open '{resolved_output}' in any browser.")


# ── import subcommand ──────────────────────────────────────────────────────────

@main.command("import")
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination ScoreInput JSON path. Defaults to <score>.json.",
)
@click.option(
    "--part",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Index of the part to import.",
)
def import_score(score_file: str, output: str | None, part: int) -> None:
    """
    Convert one part of a MIDI or MusicXML file into ScoreInput JSON.

    \b
    Examples:
      scorelayout import melody.mid
      scorelayout import quartet.musicxml --part 1 -o viola.json
    """
    from scorelayout.score_importer import ScoreImporter

    score_path = Path(score_file)
    resolved_output = output if output is not None else str(score_path.with_suffix(".json"))

    click.echo(f"scorelayout v{__version__}")
    click.echo(f"  File   : {score_file}")
    click.echo(f"  Part   : {part}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/2] Parsing score with music21...")
    try:
        score = ScoreImporter(part_index=part).import_file(score_file)
    except (OSError, ValueError) as exc:
        _fail("Could not import score", exc)

    click.echo(f"[2/2] Writing {len(score.measures)} measure(s) → '{resolved_output}'...")
    try:
        Path(resolved_output).write_text(json.dumps(score.to_dict(), indent=2), encoding="utf-8")
    except OSError as exc:
        _fail("Could not write score file", exc)

    click.echo()
    click.echo(f"Done!  Lay it out with: scorelayout render '{resolved_output}'")

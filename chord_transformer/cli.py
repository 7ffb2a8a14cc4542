"""Command-line interface for Chord Transformer.

Provides commands for:
- analyze: Detect chords and key in a MIDI file
- transform: Replace chords and write a new MIDI file
"""

import logging
import typer
from pathlib import Path
from typing import List, Optional, Tuple
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.constants import DEFAULT_TEMPO, DEFAULT_TIME_TOLERANCE
from .inference import TransformationOptions, TransformationType, format_notes
from .session import ChordTransformerSession, SessionConfig

app = typer.Typer(
    name="chord-transformer",
    help="MIDI chord analysis and transformation",
    rich_markup_mode="markdown",
)
console = Console()

MODES = {t.value: t for t in TransformationType}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(input_file: Path, tolerance: int) -> ChordTransformerSession:
    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    session = ChordTransformerSession(SessionConfig(time_tolerance=tolerance))
    if not session.load_file(input_file):
        console.print(f"[red]Error: Could not load {input_file}[/red]")
        raise typer.Exit(1)
    return session


def _parse_chord_option(value: str) -> Tuple[int, str]:
    """Parse "INDEX=NAME" with a 1-based index."""
    index, sep, name = value.partition("=")
    if not sep or not name or not index.strip().isdigit():
        raise typer.BadParameter(f"Expected INDEX=NAME, got {value!r}")
    return int(index) - 1, name.strip()


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input MIDI file"),
    tolerance: int = typer.Option(
        DEFAULT_TIME_TOLERANCE, "-t", "--tolerance", help="Chord grouping tolerance in ticks"
    ),
    report: Optional[Path] = typer.Option(
        None, "-r", "--report", help="Write a plain-text analysis report"
    ),
    sheet: Optional[Path] = typer.Option(
        None, "--sheet", help="Write the chords as block chords to a MIDI file"
    ),
    tempo: float = typer.Option(
        DEFAULT_TEMPO, "--tempo", help="Tempo (BPM) for the chord sheet"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Detect chords and the key of a MIDI file."""
    _setup_logging(verbose)
    session = _load(input_file, tolerance)

    _show_chords_table(session)

    key = session.detect_key()
    if key is not None:
        console.print(f"\n[bold]Key:[/bold] {key.name}")
    else:
        console.print("\n[yellow]Key: undetermined[/yellow]")

    if report is not None:
        if not session.save_chord_analysis(report):
            raise typer.Exit(1)
        console.print(f"[green]Report saved:[/green] {report}")

    if sheet is not None:
        if not session.export_chord_sheet(sheet, tempo=tempo):
            raise typer.Exit(1)
        console.print(f"[green]Chord sheet saved:[/green] {sheet}")


@app.command()
def transform(
    input_file: Path = typer.Argument(..., help="Input MIDI file"),
    output: Path = typer.Option(..., "-o", "--output", help="Output MIDI file path"),
    chord: List[str] = typer.Option(
        ..., "-c", "--chord", help="Chord to replace as INDEX=NAME (1-based), repeatable"
    ),
    mode: str = typer.Option(
        "standard", "-m", "--mode", help="standard / inversion / percentage / switch"
    ),
    inversion: int = typer.Option(0, "--inversion", help="Inversion number for inversion mode"),
    percentage: float = typer.Option(100.0, "--percentage", help="Blend amount for percentage mode"),
    voice_leading: bool = typer.Option(
        True, "--voice-leading/--no-voice-leading", help="Use voice leading"
    ),
    tolerance: int = typer.Option(
        DEFAULT_TIME_TOLERANCE, "-t", "--tolerance", help="Chord grouping tolerance in ticks"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Replace chords in a MIDI file and write the result.

    Examples:
        chord-transformer transform song.mid -o out.mid -c 1=Am -c 3=F
        chord-transformer transform song.mid -o out.mid -c 2=G --mode inversion --inversion 1
        chord-transformer transform song.mid -o out.mid -c 1=C --mode switch
    """
    _setup_logging(verbose)

    if mode not in MODES:
        raise typer.BadParameter(f"Unknown mode {mode!r}", param_hint="--mode")

    edits = [_parse_chord_option(value) for value in chord]
    session = _load(input_file, tolerance)

    if MODES[mode] == TransformationType.SWITCH_TONALITY:
        changed = sum(session.switch_tonality(index) for index, _ in edits)
    else:
        options = TransformationOptions(
            type=MODES[mode],
            inversion=inversion,
            percentage=percentage,
            use_voice_leading=voice_leading,
        )
        changed = session.transform_selected_chords(
            [index for index, _ in edits],
            [name for _, name in edits],
            options,
        )

    console.print(f"Transformed {changed} of {len(edits)} chords")
    _show_chords_table(session, transformed_only=True)

    if not session.write_file(output):
        console.print(f"[red]Error: Could not write {output}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Saved:[/green] {output}")


def _show_chords_table(session: ChordTransformerSession, transformed_only: bool = False):
    """Display chords in a table."""
    table = Table(title="Transformed Chords" if transformed_only else "Detected Chords")
    table.add_column("#", style="dim")
    table.add_column("Chord", style="cyan")
    table.add_column("Start", style="yellow")
    table.add_column("Duration", style="yellow")
    table.add_column("Notes", style="green")
    if transformed_only:
        table.add_column("Original", style="magenta")

    for i, chord in enumerate(session.chords, start=1):
        if transformed_only and not chord.is_transformed:
            continue
        row = [str(i), chord.name, str(chord.start), str(chord.duration), format_notes(chord.pitches)]
        if transformed_only:
            row.append(chord.original.name)
        table.add_row(*row)

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

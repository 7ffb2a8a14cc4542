"""Plain-text chord analysis report."""

from typing import Sequence

from ..inference.chords import Chord, format_notes


def format_analysis(chords: Sequence[Chord], filename: str = "") -> str:
    """
    Render a chord list as a plain-text report.

    Args:
        chords: Chords to list
        filename: Source file name shown in the header

    Returns:
        Report text, one block per chord
    """
    lines = [
        "MIDI Chord Analysis",
        "===================",
        f"File: {filename}",
        f"Number of chords: {len(chords)}",
        "",
        "Chord List:",
        "----------",
    ]

    for i, chord in enumerate(chords, start=1):
        lines.append(
            f"Chord {i}: {chord.name} at {chord.start} ticks, "
            f"duration: {chord.duration} ticks"
        )
        lines.append(f"  Notes: {format_notes(chord.pitches)}")
        if chord.original is not None:
            lines.append(f"  Original: {chord.original.name}")
            lines.append(f"  Original Notes: {format_notes(chord.original.pitches)}")
        lines.append("")

    return "\n".join(lines) + "\n"

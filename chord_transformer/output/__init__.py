"""Output layer - Export analyzed chords.

This layer handles exporting chord analysis to:
- Plain-text reports
- Chord-sheet MIDI files
"""

from .report import format_analysis
from .midi import ChordSheetExporter

__all__ = [
    "format_analysis",
    "ChordSheetExporter",
]

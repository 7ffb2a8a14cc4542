"""Transcription layer - Note-level reconstruction from MIDI events.

MidiFile -> [NoteExtractor] -> List[Note]
"""

from .note_extractor import NoteExtractor, PairedNote

__all__ = [
    "NoteExtractor",
    "PairedNote",
]

"""Core types and constants for Chord Transformer."""

from .note import Note
from .constants import (
    PITCH_NAMES,
    MIDI_MIN,
    MIDI_MAX,
    DEFAULT_TIME_TOLERANCE,
    DEFAULT_DIVISION,
    KEY_CONFIDENCE_THRESHOLD,
)
from .chord_names import (
    parse_chord_name,
    split_bass,
    chord_notes_from_name,
    note_name_to_pitch_class,
    note_name_to_midi,
    midi_to_note_name,
    TONALITY_SWITCH,
)
from .hashing import content_hash

__all__ = [
    "Note",
    "PITCH_NAMES",
    "MIDI_MIN",
    "MIDI_MAX",
    "DEFAULT_TIME_TOLERANCE",
    "DEFAULT_DIVISION",
    "KEY_CONFIDENCE_THRESHOLD",
    "parse_chord_name",
    "split_bass",
    "chord_notes_from_name",
    "note_name_to_pitch_class",
    "note_name_to_midi",
    "midi_to_note_name",
    "TONALITY_SWITCH",
    "content_hash",
]

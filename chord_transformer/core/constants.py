"""Global constants for Chord Transformer."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
MAX_VARIABLE_LENGTH = 0x0FFFFFFF

# File defaults
DEFAULT_FORMAT = 1
DEFAULT_DIVISION = 480  # ticks per quarter note
DEFAULT_TEMPO = 120.0

# Analysis defaults
DEFAULT_TIME_TOLERANCE = 120  # ticks
MIN_CHORD_NOTES = 3
KEY_CONFIDENCE_THRESHOLD = 0.6
DEFAULT_HISTORY_SIZE = 50

# Voicing
DEFAULT_CHORD_OCTAVE = 4
FALLBACK_OCTAVE = 5
MAX_OCTAVE = 10

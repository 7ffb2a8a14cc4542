"""Chord-name mini-language.

Chord names follow ``<Root>[#|b]<Quality>[/<BassNote>]``, e.g. ``C``, ``F#m7``,
``Bb9`` or ``D/F#``. This module parses names, maps note names to pitch classes,
and expands a chord name into concrete MIDI pitches.
"""

from types import MappingProxyType
from typing import List, Optional, Tuple

from .constants import DEFAULT_CHORD_OCTAVE, MIDI_MAX, PITCH_NAMES


NOTE_TO_PITCH_CLASS = MappingProxyType({
    "C": 0, "B#": 0,
    "C#": 1, "Db": 1,
    "D": 2,
    "D#": 3, "Eb": 3,
    "E": 4, "Fb": 4,
    "F": 5, "E#": 5,
    "F#": 6, "Gb": 6,
    "G": 7,
    "G#": 8, "Ab": 8,
    "A": 9,
    "A#": 10, "Bb": 10,
    "B": 11, "Cb": 11,
})

# Intervals above the root for each quality suffix
QUALITY_INTERVALS = MappingProxyType({
    # Triads
    "": (0, 4, 7),
    "m": (0, 3, 7),
    "dim": (0, 3, 6),
    "aug": (0, 4, 8),
    "sus4": (0, 5, 7),
    "sus2": (0, 2, 7),
    # Seventh chords
    "7": (0, 4, 7, 10),
    "maj7": (0, 4, 7, 11),
    "m7": (0, 3, 7, 10),
    "dim7": (0, 3, 6, 9),
    "m7b5": (0, 3, 6, 10),
    "ø": (0, 3, 6, 10),
    "aug7": (0, 4, 8, 10),
    "7sus4": (0, 5, 7, 10),
    # Extended
    "9": (0, 4, 7, 10, 14),
    "maj9": (0, 4, 7, 11, 14),
    "m9": (0, 3, 7, 10, 14),
    # Sixths
    "6": (0, 4, 7, 9),
    "m6": (0, 3, 7, 9),
    # Added tones
    "add9": (0, 4, 7, 14),
    "madd9": (0, 3, 7, 14),
})

# Major/minor counterpart of each quality
TONALITY_SWITCH = MappingProxyType({
    "": "m",
    "m": "",
    "dim": "m",
    "aug": "",
    "7": "m7",
    "maj7": "m7",
    "m7": "maj7",
    "dim7": "m7b5",
    "m7b5": "dim7",
    "9": "m9",
    "maj9": "m9",
    "m9": "maj9",
    "6": "m6",
    "m6": "6",
    "add9": "madd9",
    "madd9": "add9",
})


def parse_root(text: str) -> Tuple[Optional[str], int]:
    """Match the leading note name of ``text``.

    Two-character sharp/flat names are tried before single letters.

    Returns:
        (root name or None, number of characters consumed)
    """
    if len(text) >= 2 and text[:2] in NOTE_TO_PITCH_CLASS:
        return text[:2], 2
    if text[:1] in NOTE_TO_PITCH_CLASS:
        return text[:1], 1
    return None, 0


def parse_chord_name(chord_name: str) -> Tuple[str, str]:
    """
    Split a chord name into root and quality.

    The slash bass, if any, is not part of the quality. An unparsable root
    defaults to C.

    Args:
        chord_name: Chord name (e.g., "F#m7", "D/F#")

    Returns:
        Tuple of (root, quality)
    """
    root, pos = parse_root(chord_name)
    if root is None:
        root = "C"

    slash = chord_name.find("/", pos)
    quality = chord_name[pos:slash] if slash != -1 else chord_name[pos:]
    return root, quality


def split_bass(chord_name: str) -> Optional[str]:
    """Return the slash bass note name of a chord name, or None."""
    _, pos = parse_root(chord_name)
    slash = chord_name.find("/", pos)
    if slash == -1 or slash + 1 >= len(chord_name):
        return None
    bass, _ = parse_root(chord_name[slash + 1:])
    return bass


def note_name_to_pitch_class(name: str) -> int:
    """Convert a note name without octave (e.g., "Bb") to a pitch class."""
    if name not in NOTE_TO_PITCH_CLASS:
        raise ValueError(f"Invalid note name: {name!r}")
    return NOTE_TO_PITCH_CLASS[name]


def note_name_to_midi(name: str, default_octave: int = 4) -> int:
    """Convert a note name with optional octave ("C4", "F#") to a MIDI pitch."""
    note, octave = name, default_octave
    if len(name) >= 2 and name[-1].isdigit():
        digits = len(name) - len(name.rstrip("0123456789"))
        note, octave = name[:-digits], int(name[-digits:])
        if note.endswith("-"):
            note, octave = note[:-1], -octave
    return (octave + 1) * 12 + note_name_to_pitch_class(note)


def midi_to_note_name(pitch: int) -> str:
    """Convert a MIDI pitch to a note name with octave (60 -> "C4")."""
    return f"{PITCH_NAMES[pitch % 12]}{pitch // 12 - 1}"


def quality_intervals(quality: str) -> Tuple[int, ...]:
    """Intervals for a quality suffix. Unrecognized qualities are major triads."""
    return QUALITY_INTERVALS.get(quality, QUALITY_INTERVALS[""])


def chord_notes_from_name(
    chord_name: str,
    base_octave: int = DEFAULT_CHORD_OCTAVE,
) -> List[int]:
    """
    Expand a chord name into MIDI pitches.

    The root sits at ``base_octave * 12 + root_pc``. A slash bass not already in
    the chord is placed one octave lower, in front of the other notes.

    Args:
        chord_name: Chord name (e.g., "Cmaj7", "G/B")
        base_octave: Octave multiplier for the root

    Returns:
        List of MIDI pitches, bass first for slash chords
    """
    root, quality = parse_chord_name(chord_name)
    root_pitch = note_name_to_pitch_class(root) + base_octave * 12

    notes = [
        root_pitch + interval
        for interval in quality_intervals(quality)
        if root_pitch + interval <= MIDI_MAX
    ]

    bass = split_bass(chord_name)
    if bass is not None:
        bass_pitch = note_name_to_pitch_class(bass) + (base_octave - 1) * 12
        if 0 <= bass_pitch <= MIDI_MAX and bass_pitch not in notes:
            notes.insert(0, bass_pitch)

    return notes

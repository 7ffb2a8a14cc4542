"""Inference layer - Harmonic understanding of extracted notes.

This layer builds chord-level understanding from notes:
- Chord detection and naming (including inversions)
- Key detection (tonal center)
- Voice leading for chord transformations

Pipeline: Notes → Chords → [Key, Voicings]
"""

from .chords import (
    Chord,
    OriginalChord,
    NoteCluster,
    ChordDetector,
    identify_chord,
    format_notes,
)
from .key import KeyDetector, KeySignature, KeyCandidate, ScaleConstraint
from .voice_leading import (
    VoiceLeadingEngine,
    VoiceLeadingOptions,
    VoiceMovement,
    TransformationOptions,
    TransformationType,
)

__all__ = [
    # Chord analysis
    "Chord",
    "OriginalChord",
    "NoteCluster",
    "ChordDetector",
    "identify_chord",
    "format_notes",
    # Key detection
    "KeyDetector",
    "KeySignature",
    "KeyCandidate",
    "ScaleConstraint",
    # Voice leading
    "VoiceLeadingEngine",
    "VoiceLeadingOptions",
    "VoiceMovement",
    "TransformationOptions",
    "TransformationType",
]

"""Chord Transformer - MIDI chord analysis and reharmonization.

Architecture Layers:
    1. core/          - Notes, constants, chord-name mini-language
    2. codec/         - Standard MIDI File decoding and encoding
    3. transcription/ - Note reconstruction from note events
    4. inference/     - Chord detection, key detection, voice leading
    5. processing/    - Undo/redo history, event rebuilding
    6. output/        - Analysis reports, chord-sheet MIDI export
"""

__version__ = "0.1.0"

# Core types
from .core import Note

# Codec layer
from .codec import MidiFile, MidiTrack, MidiEvent, MidiDecodeError, decode, encode

# Transcription layer
from .transcription import NoteExtractor

# Inference layer
from .inference import (
    Chord,
    ChordDetector,
    KeyDetector,
    KeySignature,
    VoiceLeadingEngine,
    VoiceLeadingOptions,
    TransformationOptions,
    TransformationType,
)

# Processing layer
from .processing import ActionHistory, EventRebuilder

# Output layer
from .output import ChordSheetExporter, format_analysis

# Orchestration
from .session import ChordTransformerSession, SessionConfig

__all__ = [
    # Core
    "Note",
    # Codec
    "MidiFile",
    "MidiTrack",
    "MidiEvent",
    "MidiDecodeError",
    "decode",
    "encode",
    # Transcription
    "NoteExtractor",
    # Inference
    "Chord",
    "ChordDetector",
    "KeyDetector",
    "KeySignature",
    "VoiceLeadingEngine",
    "VoiceLeadingOptions",
    "TransformationOptions",
    "TransformationType",
    # Processing
    "ActionHistory",
    "EventRebuilder",
    # Output
    "ChordSheetExporter",
    "format_analysis",
    # Session
    "ChordTransformerSession",
    "SessionConfig",
]

"""Codec layer - Standard MIDI File parsing and serialization.

Bytes -> MidiFile (header, tracks, events) -> bytes
"""

from .events import MidiEvent, MidiTrack, MidiFile, MidiEventType, MetaEventType
from .smf import (
    decode,
    encode,
    read_variable_length,
    encode_variable_length,
    MidiDecodeError,
)

__all__ = [
    "MidiEvent",
    "MidiTrack",
    "MidiFile",
    "MidiEventType",
    "MetaEventType",
    "decode",
    "encode",
    "read_variable_length",
    "encode_variable_length",
    "MidiDecodeError",
]

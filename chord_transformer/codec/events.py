"""Event-level data model for Standard MIDI Files."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from ..core.constants import DEFAULT_DIVISION, DEFAULT_FORMAT


class MidiEventType(IntEnum):
    """Status high nibbles for channel-voice events, plus system statuses."""
    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    POLY_AFTERTOUCH = 0xA0
    CONTROL_CHANGE = 0xB0
    PROGRAM_CHANGE = 0xC0
    CHANNEL_AFTERTOUCH = 0xD0
    PITCH_BEND = 0xE0
    SYSEX = 0xF0
    SYSEX_ESCAPE = 0xF7
    META = 0xFF


class MetaEventType(IntEnum):
    """Meta event type bytes."""
    SEQUENCE_NUMBER = 0x00
    TEXT_EVENT = 0x01
    COPYRIGHT_NOTICE = 0x02
    TRACK_NAME = 0x03
    INSTRUMENT_NAME = 0x04
    LYRICS = 0x05
    MARKER = 0x06
    CUE_POINT = 0x07
    CHANNEL_PREFIX = 0x20
    END_OF_TRACK = 0x2F
    SET_TEMPO = 0x51
    SMPTE_OFFSET = 0x54
    TIME_SIGNATURE = 0x58
    KEY_SIGNATURE = 0x59
    SEQUENCER_SPECIFIC = 0x7F


# Data bytes following each channel-voice status
CHANNEL_DATA_LENGTHS = {
    MidiEventType.NOTE_OFF: 2,
    MidiEventType.NOTE_ON: 2,
    MidiEventType.POLY_AFTERTOUCH: 2,
    MidiEventType.CONTROL_CHANGE: 2,
    MidiEventType.PROGRAM_CHANGE: 1,
    MidiEventType.CHANNEL_AFTERTOUCH: 1,
    MidiEventType.PITCH_BEND: 2,
}


@dataclass
class MidiEvent:
    """A single track event.

    ``data`` holds the channel-voice data bytes, or the payload of a meta or
    sysex event (without its length prefix).
    """

    delta_time: int = 0
    status: int = 0
    data: bytes = b""
    is_meta: bool = False
    meta_type: int = 0

    @property
    def event_type(self) -> int:
        """High nibble of the status byte (0x80-0xF0)."""
        return self.status & 0xF0

    @property
    def channel(self) -> int:
        """Channel of a channel-voice event (0-15)."""
        return self.status & 0x0F

    @property
    def is_sysex(self) -> bool:
        return not self.is_meta and self.status in (
            MidiEventType.SYSEX, MidiEventType.SYSEX_ESCAPE
        )

    @property
    def is_end_of_track(self) -> bool:
        return self.is_meta and self.meta_type == MetaEventType.END_OF_TRACK

    @classmethod
    def note_on(cls, delta_time: int, channel: int, pitch: int, velocity: int) -> "MidiEvent":
        return cls(delta_time, MidiEventType.NOTE_ON | channel, bytes([pitch, velocity]))

    @classmethod
    def note_off(cls, delta_time: int, channel: int, pitch: int, velocity: int = 0) -> "MidiEvent":
        return cls(delta_time, MidiEventType.NOTE_OFF | channel, bytes([pitch, velocity]))

    @classmethod
    def meta(cls, delta_time: int, meta_type: int, data: bytes = b"") -> "MidiEvent":
        return cls(delta_time, MidiEventType.META, bytes(data), True, meta_type)


@dataclass
class MidiTrack:
    """A track chunk: an ordered list of delta-timed events."""

    name: str = "Unnamed Track"
    events: List[MidiEvent] = field(default_factory=list)


@dataclass
class MidiFile:
    """A decoded Standard MIDI File."""

    format: int = DEFAULT_FORMAT
    division: int = DEFAULT_DIVISION  # Ticks per quarter note
    tracks: List[MidiTrack] = field(default_factory=list)

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

"""Tests for the Standard MIDI File codec.

Tests cover:
- Header and track chunk decoding
- Byte-identical round trips
- Variable-length quantities
- Running status
- Meta and sysex events
- Error handling and resynchronization
"""

import logging
import pytest
from pathlib import Path
import sys

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chord_transformer.codec import (
    MidiDecodeError,
    MidiEventType,
    MetaEventType,
    decode,
    encode,
    encode_variable_length,
    read_variable_length,
)


# ============================================================================
# Test Fixtures - Helper functions to build raw MIDI bytes
# ============================================================================

def header(format: int = 1, num_tracks: int = 1, division: int = 480) -> bytes:
    """Build an MThd chunk."""
    return (
        b"MThd" + (6).to_bytes(4, "big")
        + format.to_bytes(2, "big")
        + num_tracks.to_bytes(2, "big")
        + division.to_bytes(2, "big")
    )


def track(body: bytes) -> bytes:
    """Wrap event bytes in an MTrk chunk."""
    return b"MTrk" + len(body).to_bytes(4, "big") + body


END_OF_TRACK = bytes([0x00, 0xFF, 0x2F, 0x00])

# Note on C4, note off 480 ticks later, end of track
MINIMAL_TRACK = bytes([
    0x00, 0x90, 0x3C, 0x40,
    0x83, 0x60, 0x80, 0x3C, 0x40,
]) + END_OF_TRACK


# ============================================================================
# Decoding
# ============================================================================

class TestDecode:
    """Test decoding of well-formed files."""

    def test_minimal_file(self):
        """A one-track file decodes header fields and events."""
        midi = decode(header() + track(MINIMAL_TRACK))

        assert midi.format == 1
        assert midi.division == 480
        assert midi.num_tracks == 1

        events = midi.tracks[0].events
        assert len(events) == 3
        assert events[0].event_type == MidiEventType.NOTE_ON
        assert events[0].data == bytes([0x3C, 0x40])
        assert events[1].delta_time == 480
        assert events[1].event_type == MidiEventType.NOTE_OFF
        assert events[2].is_end_of_track

    def test_channel_is_low_nibble(self):
        """Channel comes from the low nibble of the status byte."""
        body = bytes([0x00, 0x93, 0x3C, 0x40]) + END_OF_TRACK
        event = decode(header() + track(body)).tracks[0].events[0]

        assert event.channel == 3
        assert event.event_type == MidiEventType.NOTE_ON

    def test_track_name_sets_name(self):
        """Track name meta event names the track."""
        body = bytes([0x00, 0xFF, 0x03, 0x04]) + b"Bass" + END_OF_TRACK
        midi = decode(header() + track(body))

        assert midi.tracks[0].name == "Bass"
        assert midi.tracks[0].events[0].meta_type == MetaEventType.TRACK_NAME

    def test_default_track_name(self):
        """Tracks without a name meta event keep the default name."""
        midi = decode(header() + track(MINIMAL_TRACK))
        assert midi.tracks[0].name == "Unnamed Track"

    def test_one_byte_payloads(self):
        """Program change and channel aftertouch carry one data byte."""
        body = bytes([
            0x00, 0xC0, 0x05,
            0x00, 0xD0, 0x40,
            0x00, 0xE0, 0x00, 0x40,
        ]) + END_OF_TRACK
        events = decode(header() + track(body)).tracks[0].events

        assert [len(e.data) for e in events[:3]] == [1, 1, 2]

    def test_multiple_tracks(self):
        """Every declared track is decoded."""
        data = header(num_tracks=2) + track(END_OF_TRACK) + track(MINIMAL_TRACK)
        midi = decode(data)

        assert midi.num_tracks == 2
        assert len(midi.tracks[0].events) == 1
        assert len(midi.tracks[1].events) == 3


class TestRunningStatus:
    """Test running status handling."""

    def test_data_byte_reuses_previous_status(self):
        """An event without a status byte reuses the last channel status."""
        body = bytes([
            0x00, 0x90, 0x3C, 0x40,
            0x00, 0x40, 0x40,
            0x60, 0x3C, 0x00,
            0x00, 0x40, 0x00,
        ]) + END_OF_TRACK
        events = decode(header() + track(body)).tracks[0].events

        assert len(events) == 5
        assert all(e.status == 0x90 for e in events[:4])
        assert events[1].data == bytes([0x40, 0x40])
        assert events[2].delta_time == 0x60

    def test_meta_event_does_not_reset_running_status(self):
        """Meta events leave the running status untouched."""
        body = bytes([
            0x00, 0x90, 0x3C, 0x40,
            0x00, 0xFF, 0x01, 0x01, 0x41,
            0x10, 0x3C, 0x00,
        ]) + END_OF_TRACK
        events = decode(header() + track(body)).tracks[0].events

        assert events[1].is_meta
        assert events[2].status == 0x90
        assert events[2].data == bytes([0x3C, 0x00])

    def test_encode_writes_explicit_status(self):
        """Running status is expanded on encode and decodes to the same events."""
        body = bytes([
            0x00, 0x90, 0x3C, 0x40,
            0x00, 0x40, 0x40,
        ]) + END_OF_TRACK
        midi = decode(header() + track(body))
        encoded = encode(midi)

        assert len(encoded) == len(header() + track(body)) + 1
        assert decode(encoded).tracks[0].events == midi.tracks[0].events


class TestRoundTrip:
    """Test that decode followed by encode reproduces the input."""

    def test_minimal_file_is_byte_identical(self):
        """A minimal note-on/note-off file round-trips byte for byte."""
        data = header() + track(MINIMAL_TRACK)
        assert encode(decode(data)) == data

    def test_format_zero(self):
        """Format 0 files keep their format."""
        data = header(format=0) + track(MINIMAL_TRACK)
        assert encode(decode(data)) == data

    def test_meta_and_sysex_preserved(self):
        """Meta and sysex payloads survive a round trip."""
        body = (
            bytes([0x00, 0xFF, 0x51, 0x03, 0x07, 0xA1, 0x20])
            + bytes([0x00, 0xF0, 0x03, 0x7E, 0x7F, 0xF7])
            + MINIMAL_TRACK
        )
        data = header() + track(body)
        midi = decode(data)

        assert midi.tracks[0].events[1].is_sysex
        assert midi.tracks[0].events[1].data == bytes([0x7E, 0x7F, 0xF7])
        assert encode(midi) == data

    def test_long_delta_time(self):
        """Multi-byte delta times round-trip."""
        body = bytes([0x00, 0x90, 0x3C, 0x40, 0x81, 0x80, 0x00, 0x80, 0x3C, 0x00]) + END_OF_TRACK
        data = header() + track(body)
        midi = decode(data)

        assert midi.tracks[0].events[1].delta_time == 0x4000
        assert encode(midi) == data


class TestVariableLength:
    """Test variable-length quantity encoding."""

    def test_zero_is_one_byte(self):
        """Zero encodes as a single zero byte."""
        assert encode_variable_length(0) == b"\x00"

    def test_boundaries(self):
        """Values at 7-bit group boundaries use the expected byte counts."""
        assert encode_variable_length(0x7F) == b"\x7F"
        assert encode_variable_length(0x80) == b"\x81\x00"
        assert encode_variable_length(0x3FFF) == b"\xFF\x7F"
        assert encode_variable_length(0x4000) == b"\x81\x80\x00"
        assert encode_variable_length(0x0FFFFFFF) == b"\xFF\xFF\xFF\x7F"

    def test_read_returns_new_position(self):
        """Reading reports the offset after the quantity."""
        data = b"\xAA\x81\x00\xBB"
        assert read_variable_length(data, 1) == (0x80, 3)

    @pytest.mark.parametrize("value", [0, 1, 0x7F, 0x80, 0x2000, 0x1FFFFF, 0x200000, 0x0FFFFFFF])
    def test_read_inverts_encode(self, value):
        """Encoded values read back unchanged."""
        encoded = encode_variable_length(value)
        assert read_variable_length(encoded, 0) == (value, len(encoded))

    @pytest.mark.parametrize("value", [-1, 0x10000000])
    def test_out_of_range(self, value):
        """Values outside 28 bits are rejected."""
        with pytest.raises(ValueError):
            encode_variable_length(value)

    def test_truncated_quantity(self):
        """A quantity cut off by the end of data raises."""
        with pytest.raises(MidiDecodeError):
            read_variable_length(b"\x81\x80", 0)


class TestDecodeErrors:
    """Test rejection of malformed files."""

    def test_bad_header_magic(self):
        """Files must start with MThd."""
        data = b"MThx" + header()[4:] + track(MINIMAL_TRACK)
        with pytest.raises(MidiDecodeError):
            decode(data)

    def test_bad_header_length(self):
        """The header length must be 6."""
        data = b"MThd" + (7).to_bytes(4, "big") + header()[8:] + b"\x00" + track(MINIMAL_TRACK)
        with pytest.raises(MidiDecodeError):
            decode(data)

    def test_short_buffer(self):
        """Buffers shorter than a header are rejected."""
        with pytest.raises(MidiDecodeError):
            decode(b"MThd\x00\x00")

    def test_bad_track_magic(self):
        """Tracks must start with MTrk."""
        data = header() + b"MTrx" + track(MINIMAL_TRACK)[4:]
        with pytest.raises(MidiDecodeError):
            decode(data)

    def test_missing_track(self):
        """A declared track that is absent is an error."""
        with pytest.raises(MidiDecodeError):
            decode(header(num_tracks=2) + track(MINIMAL_TRACK))

    def test_track_length_past_end(self):
        """Track lengths that overrun the buffer are rejected."""
        data = header() + b"MTrk" + (100).to_bytes(4, "big") + MINIMAL_TRACK
        with pytest.raises(MidiDecodeError) as excinfo:
            decode(data)
        assert excinfo.value.position == 22

    def test_truncated_event(self):
        """Event data cut off by the track end is an error."""
        with pytest.raises(MidiDecodeError):
            decode(header() + track(bytes([0x00, 0x90, 0x3C])))

    def test_decode_error_is_value_error(self):
        """MidiDecodeError can be caught as ValueError."""
        with pytest.raises(ValueError):
            decode(b"not a midi file at all")


class TestResync:
    """Test recovery from unknown events."""

    def test_unset_running_status_is_skipped(self, caplog):
        """Data bytes with no running status are skipped with a warning."""
        body = bytes([0x00, 0x3C, 0x40])
        with caplog.at_level(logging.WARNING):
            midi = decode(header() + track(body))

        assert midi.tracks[0].events == []
        assert "Unknown event type" in caplog.text

    def test_skipped_delta_carried_forward(self):
        """A skipped event's delta is added to the next event, keeping absolute times."""
        body = bytes([
            0x10, 0xF4,              # unknown system status
            0x81, 0x00,              # resumes at the next status-flagged byte
            0x90, 0x3C, 0x40,
        ]) + END_OF_TRACK
        midi = decode(header() + track(body))

        events = midi.tracks[0].events
        assert events[0].event_type == MidiEventType.NOTE_ON
        assert events[0].delta_time == 0x10 + 128
        assert events[-1].is_end_of_track

    def test_decoding_continues_after_unknown_event(self):
        """Later tracks still decode after a resync."""
        data = header(num_tracks=2) + track(bytes([0x00, 0x3C, 0x40])) + track(MINIMAL_TRACK)
        midi = decode(data)

        assert len(midi.tracks[1].events) == 3

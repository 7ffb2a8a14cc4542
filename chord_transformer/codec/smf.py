"""Standard MIDI File codec.

Decodes raw bytes into a :class:`MidiFile` and serializes it back:
- Header and track chunk validation
- Variable-length quantities
- Running status
- Meta and sysex events
- Resynchronization after unknown channel-voice events
"""

import logging
from typing import Optional, Tuple

from ..core.constants import MAX_VARIABLE_LENGTH
from .events import (
    CHANNEL_DATA_LENGTHS,
    MetaEventType,
    MidiEvent,
    MidiEventType,
    MidiFile,
    MidiTrack,
)

logger = logging.getLogger(__name__)

HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"
HEADER_LENGTH = 6


class MidiDecodeError(ValueError):
    """Raised when a byte buffer is not a decodable MIDI file."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


def read_uint16_be(data: bytes, position: int) -> int:
    if position + 2 > len(data):
        raise MidiDecodeError("Unexpected end of data reading 16-bit value", position)
    return (data[position] << 8) | data[position + 1]


def read_uint32_be(data: bytes, position: int) -> int:
    if position + 4 > len(data):
        raise MidiDecodeError("Unexpected end of data reading 32-bit value", position)
    return int.from_bytes(data[position:position + 4], "big")


def write_uint16_be(value: int) -> bytes:
    return bytes([(value >> 8) & 0xFF, value & 0xFF])


def write_uint32_be(value: int) -> bytes:
    return bytes([
        (value >> 24) & 0xFF,
        (value >> 16) & 0xFF,
        (value >> 8) & 0xFF,
        value & 0xFF,
    ])


def read_variable_length(data: bytes, position: int, end: Optional[int] = None) -> Tuple[int, int]:
    """
    Read a variable-length quantity.

    Bytes are consumed in stream order, most significant 7-bit group first,
    until a byte without the continuation bit.

    Args:
        data: Buffer to read from
        position: Offset of the first byte
        end: Offset the quantity must not run past (default: end of buffer)

    Returns:
        Tuple of (value, position after the quantity)
    """
    limit = len(data) if end is None else end
    value = 0
    while True:
        if position >= limit:
            raise MidiDecodeError("Unexpected end of data reading variable-length value", position)
        byte = data[position]
        position += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, position


def encode_variable_length(value: int) -> bytes:
    """
    Encode a variable-length quantity.

    The least significant group is emitted first into a scratch buffer, with the
    continuation bit on every group after it, and the buffer is then reversed so
    the output reads most significant group first.
    """
    if value < 0 or value > MAX_VARIABLE_LENGTH:
        raise ValueError(f"Variable-length value out of range: {value}")

    groups = bytearray([value & 0x7F])
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    groups.reverse()
    return bytes(groups)


def decode(data: bytes) -> MidiFile:
    """
    Decode a Standard MIDI File.

    Args:
        data: Complete file content

    Returns:
        Decoded MidiFile

    Raises:
        MidiDecodeError: Malformed header or track chunk, or truncated data
    """
    data = bytes(data)
    if len(data) < 8 + HEADER_LENGTH:
        raise MidiDecodeError("Truncated MIDI header", len(data))
    if data[0:4] != HEADER_MAGIC:
        raise MidiDecodeError("Invalid MIDI file header", 0)

    header_length = read_uint32_be(data, 4)
    if header_length != HEADER_LENGTH:
        raise MidiDecodeError(f"Invalid header length {header_length}", 4)

    midi_file = MidiFile(
        format=read_uint16_be(data, 8),
        division=read_uint16_be(data, 12),
    )
    num_tracks = read_uint16_be(data, 10)

    position = 8 + HEADER_LENGTH
    for _ in range(num_tracks):
        track, position = _decode_track(data, position)
        midi_file.tracks.append(track)

    return midi_file


def _decode_track(data: bytes, position: int) -> Tuple[MidiTrack, int]:
    """Decode one track chunk starting at ``position``."""
    if position + 8 > len(data) or data[position:position + 4] != TRACK_MAGIC:
        raise MidiDecodeError("Invalid track header", position)

    track_length = read_uint32_be(data, position + 4)
    position += 8
    track_end = position + track_length
    if track_end > len(data):
        raise MidiDecodeError("Track length exceeds file size", position)

    track = MidiTrack()
    running_status = 0
    # Delta of skipped events, carried into the next decoded one
    carried_delta = 0

    while position < track_end:
        delta, position = read_variable_length(data, position, track_end)
        delta_time = carried_delta + delta
        carried_delta = 0
        if position >= track_end:
            raise MidiDecodeError("Truncated event", position)

        if data[position] & 0x80:
            status = data[position]
            position += 1
        else:
            status = running_status

        if status == MidiEventType.META:
            if position >= track_end:
                raise MidiDecodeError("Truncated meta event", position)
            meta_type = data[position]
            length, position = read_variable_length(data, position + 1, track_end)
            payload = _read_bytes(data, position, length, track_end)
            position += length

            event = MidiEvent(delta_time, status, payload, True, meta_type)
            if meta_type == MetaEventType.TRACK_NAME:
                track.name = payload.decode("latin-1")

        elif status in (MidiEventType.SYSEX, MidiEventType.SYSEX_ESCAPE):
            length, position = read_variable_length(data, position, track_end)
            payload = _read_bytes(data, position, length, track_end)
            position += length
            event = MidiEvent(delta_time, status, payload)

        else:
            size = CHANNEL_DATA_LENGTHS.get(status & 0xF0)
            if size is None:
                logger.warning(
                    "Unknown event type 0x%02X at position %d, resynchronizing",
                    status & 0xF0, position,
                )
                while position < track_end and not data[position] & 0x80:
                    position += 1
                carried_delta = delta_time
                continue

            running_status = status
            payload = _read_bytes(data, position, size, track_end)
            position += size
            event = MidiEvent(delta_time, status, payload)

        track.events.append(event)

    return track, track_end


def _read_bytes(data: bytes, position: int, length: int, end: int) -> bytes:
    if position + length > end:
        raise MidiDecodeError("Event data runs past end of track", position)
    return data[position:position + length]


def encode(midi_file: MidiFile) -> bytes:
    """
    Serialize a MidiFile.

    Every event is written with an explicit status byte.

    Args:
        midi_file: File model to serialize

    Returns:
        Complete file content
    """
    buffer = bytearray(HEADER_MAGIC)
    buffer += write_uint32_be(HEADER_LENGTH)
    buffer += write_uint16_be(midi_file.format)
    buffer += write_uint16_be(midi_file.num_tracks)
    buffer += write_uint16_be(midi_file.division)

    for track in midi_file.tracks:
        body = bytearray()
        for event in track.events:
            body += encode_variable_length(event.delta_time)
            body.append(event.status)
            if event.is_meta:
                body.append(event.meta_type)
                body += encode_variable_length(len(event.data))
            elif event.is_sysex:
                body += encode_variable_length(len(event.data))
            body += event.data

        buffer += TRACK_MAGIC
        buffer += write_uint32_be(len(body))
        buffer += body

    return bytes(buffer)

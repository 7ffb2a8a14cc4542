"""Tests for note extraction from MIDI events."""

import pytest
from pathlib import Path
import sys

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chord_transformer.codec import MidiEvent, MidiFile, MidiTrack, MetaEventType
from chord_transformer.core import Note
from chord_transformer.transcription import NoteExtractor


def make_track(*events) -> MidiTrack:
    """Build a track ending with an end-of-track event."""
    return MidiTrack(events=list(events) + [MidiEvent.meta(0, MetaEventType.END_OF_TRACK)])


def make_file(*tracks) -> MidiFile:
    return MidiFile(tracks=list(tracks))


class TestNoteExtractor:
    """Test note-on/note-off pairing."""

    def test_simple_note(self):
        """A note-on and matching note-off make one note."""
        midi = make_file(make_track(
            MidiEvent.note_on(0, 0, 60, 100),
            MidiEvent.note_off(480, 0, 60),
        ))
        notes = NoteExtractor().extract(midi)

        assert notes == [Note(pitch=60, start=0, duration=480, velocity=100, channel=0, track=0)]

    def test_zero_velocity_note_on_closes(self):
        """A note-on with velocity 0 ends the note."""
        midi = make_file(make_track(
            MidiEvent.note_on(100, 0, 64, 90),
            MidiEvent.note_on(240, 0, 64, 0),
        ))
        notes = NoteExtractor().extract(midi)

        assert len(notes) == 1
        assert notes[0].start == 100
        assert notes[0].duration == 240
        assert notes[0].end == 340

    def test_out_of_range_pitch_ignored(self):
        """Note events with a data byte above 127 produce no note."""
        midi = make_file(make_track(
            MidiEvent.note_on(0, 0, 0x83, 100),
            MidiEvent.note_off(480, 0, 0x83),
        ))
        assert NoteExtractor().extract(midi) == []

    def test_channels_are_independent(self):
        """A note-off on another channel does not close the note."""
        midi = make_file(make_track(
            MidiEvent.note_on(0, 0, 60, 100),
            MidiEvent.note_off(100, 1, 60),
            MidiEvent.note_off(100, 0, 60),
        ))
        notes = NoteExtractor().extract(midi)

        assert len(notes) == 1
        assert notes[0].duration == 200

    def test_restrike_closes_previous_note(self):
        """Re-striking an active pitch ends the earlier note at the re-strike."""
        midi = make_file(make_track(
            MidiEvent.note_on(0, 0, 60, 100),
            MidiEvent.note_on(240, 0, 60, 80),
            MidiEvent.note_off(240, 0, 60),
        ))
        notes = NoteExtractor().extract(midi)

        assert [(n.start, n.duration, n.velocity) for n in notes] == [
            (0, 240, 100),
            (240, 240, 80),
        ]

    def test_open_note_closed_at_track_end(self):
        """Notes never released end at the track's last tick."""
        midi = make_file(MidiTrack(events=[
            MidiEvent.note_on(0, 0, 60, 100),
            MidiEvent.meta(960, MetaEventType.END_OF_TRACK),
        ]))
        notes = NoteExtractor().extract(midi)

        assert notes[0].duration == 960

    def test_tracks_do_not_share_active_notes(self):
        """A note-off in one track does not close a note in another."""
        midi = make_file(
            MidiTrack(events=[
                MidiEvent.note_on(0, 0, 60, 100),
                MidiEvent.meta(300, MetaEventType.END_OF_TRACK),
            ]),
            make_track(MidiEvent.note_off(50, 0, 60)),
        )
        notes = NoteExtractor().extract(midi)

        assert len(notes) == 1
        assert notes[0].duration == 300
        assert notes[0].track == 0

    def test_sorted_by_start_across_tracks(self):
        """Notes from all tracks are sorted by start tick."""
        midi = make_file(
            make_track(MidiEvent.note_on(200, 0, 60, 100), MidiEvent.note_off(100, 0, 60)),
            make_track(MidiEvent.note_on(50, 0, 67, 100), MidiEvent.note_off(100, 0, 67)),
        )
        notes = NoteExtractor().extract(midi)

        assert [n.pitch for n in notes] == [67, 60]
        assert [n.track for n in notes] == [1, 0]

    def test_non_note_events_ignored(self):
        """Control changes and meta events do not create notes."""
        midi = make_file(make_track(
            MidiEvent(0, 0xB0, bytes([7, 100])),
            MidiEvent.meta(0, MetaEventType.TEXT_EVENT, b"hello"),
        ))
        assert NoteExtractor().extract(midi) == []


class TestPairTrack:
    """Test event index reporting."""

    def test_event_indices(self):
        """Paired notes report the indices of their on and off events."""
        track = make_track(
            MidiEvent.note_on(0, 0, 60, 100),
            MidiEvent.note_on(0, 0, 64, 100),
            MidiEvent.note_off(480, 0, 60),
            MidiEvent.note_off(0, 0, 64),
        )
        paired = NoteExtractor().pair_track(track, track_index=2)

        assert [(p.note.pitch, p.on_index, p.off_index) for p in paired] == [
            (60, 0, 2),
            (64, 1, 3),
        ]
        assert all(p.note.track == 2 for p in paired)

    def test_force_closed_note_has_no_off_index(self):
        """Notes closed at track end have no off event."""
        paired = NoteExtractor().pair_track(make_track(MidiEvent.note_on(0, 0, 60, 100)))
        assert paired[0].off_index is None

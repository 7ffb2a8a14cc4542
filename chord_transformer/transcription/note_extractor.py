"""Note extraction - Pair note-on/note-off events into timed notes.

Events are walked per track with an absolute tick clock. A note-on with
non-zero velocity opens a note; a note-off, or a note-on with velocity 0, on
the same channel and pitch closes it. Notes left open are closed at the
track's final tick.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..codec.events import MidiEventType, MidiFile, MidiTrack
from ..core import MIDI_MAX, Note


@dataclass(frozen=True)
class PairedNote:
    """A note together with the indices of the events that produced it."""

    note: Note
    on_index: int
    off_index: Optional[int]  # None when force-closed at track end


class NoteExtractor:
    """Turn a decoded MIDI file into absolute-time notes."""

    def extract(self, midi_file: MidiFile) -> List[Note]:
        """
        Extract notes from every track.

        Args:
            midi_file: Decoded MIDI file

        Returns:
            Notes sorted by start tick (stable for equal starts)
        """
        notes = []
        for track_index, track in enumerate(midi_file.tracks):
            notes.extend(p.note for p in self.pair_track(track, track_index))

        notes.sort(key=lambda n: n.start)
        return notes

    def pair_track(self, track: MidiTrack, track_index: int = 0) -> List[PairedNote]:
        """
        Pair the note events of one track.

        Args:
            track: Track to scan
            track_index: Index recorded on the produced notes

        Returns:
            Paired notes in closing order
        """
        # (channel, pitch) -> (start tick, velocity, event index)
        active: Dict[Tuple[int, int], Tuple[int, int, int]] = {}
        paired = []
        absolute_time = 0

        def close(key: Tuple[int, int], end_time: int, off_index: Optional[int]) -> None:
            start, velocity, on_index = active.pop(key)
            channel, pitch = key
            note = Note(
                pitch=pitch,
                start=start,
                duration=end_time - start,
                velocity=velocity,
                channel=channel,
                track=track_index,
            )
            paired.append(PairedNote(note, on_index, off_index))

        for index, event in enumerate(track.events):
            absolute_time += event.delta_time

            if event.is_meta or event.is_sysex or len(event.data) < 2:
                continue
            # Malformed data byte; not a playable note
            if event.data[0] > MIDI_MAX:
                continue

            event_type = event.event_type
            key = (event.channel, event.data[0])
            velocity = event.data[1]

            if event_type == MidiEventType.NOTE_ON and velocity > 0:
                if key in active:
                    # Re-struck before release
                    close(key, absolute_time, None)
                active[key] = (absolute_time, velocity, index)
            elif event_type in (MidiEventType.NOTE_ON, MidiEventType.NOTE_OFF):
                if key in active:
                    close(key, absolute_time, index)

        for key in list(active):
            close(key, absolute_time, None)

        return paired

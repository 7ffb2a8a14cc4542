"""Event rebuilding - Write transformed chords back into track events.

For every transformed chord, the note events that made up the original chord
are removed and new note-on/note-off pairs are inserted:
- At the chord's start tick, lasting for the chord's duration
- On the track and channel of the replaced notes
- With the mean velocity of the replaced notes

All other events keep their relative order, and each track's end-of-track
event stays last.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Sequence, Set, Tuple

from ..codec.events import MidiEvent, MidiFile, MidiTrack
from ..core import Note
from ..core.constants import DEFAULT_TIME_TOLERANCE
from ..inference.chords import Chord, ChordDetector
from ..transcription.note_extractor import NoteExtractor, PairedNote

logger = logging.getLogger(__name__)

# Sort priority among events sharing a tick
_PRIORITY_NOTE_OFF = 0
_PRIORITY_EXISTING = 1
_PRIORITY_NOTE_ON = 2
_PRIORITY_END_OF_TRACK = 3


@dataclass
class _Placement:
    """Where the new notes of one chord go."""
    track: int
    channel: int
    velocity: int


class EventRebuilder:
    """Rebuild a MIDI file's note events from a chord list."""

    def __init__(self, time_tolerance: int = DEFAULT_TIME_TOLERANCE):
        """
        Initialize EventRebuilder.

        Args:
            time_tolerance: Tolerance the chords were detected with
        """
        self.time_tolerance = time_tolerance
        self.extractor = NoteExtractor()

    def rebuild(self, midi_file: MidiFile, chords: Sequence[Chord]) -> MidiFile:
        """
        Return a copy of ``midi_file`` with transformed chords written in.

        Args:
            midi_file: Decoded source file (not modified)
            chords: Current chord list

        Returns:
            The same file object if no chord is transformed, else a new MidiFile
        """
        transformed = [c for c in chords if c.is_transformed]
        if not transformed:
            return midi_file

        paired: Dict[int, PairedNote] = {}
        notes: List[Note] = []
        for track_index, track in enumerate(midi_file.tracks):
            for pair in self.extractor.pair_track(track, track_index):
                paired[id(pair.note)] = pair
                notes.append(pair.note)

        clusters = {
            cluster.anchor: cluster
            for cluster in ChordDetector(self.time_tolerance).group(notes)
        }

        removed: Dict[int, Set[int]] = {}
        added: Dict[int, List[Tuple[int, int, MidiEvent]]] = {}

        for chord in transformed:
            cluster = clusters.get(chord.start)
            members = cluster.notes if cluster is not None else []
            if not members:
                logger.warning(
                    "No source notes found for chord %s at tick %d; skipping",
                    chord.name, chord.start,
                )
                continue

            for note in members:
                pair = paired[id(note)]
                indices = removed.setdefault(note.track, set())
                indices.add(pair.on_index)
                if pair.off_index is not None:
                    indices.add(pair.off_index)

            placement = self._placement(members)
            events = added.setdefault(placement.track, [])
            end = chord.start + chord.duration
            for pitch in chord.pitches:
                events.append((chord.start, _PRIORITY_NOTE_ON, MidiEvent.note_on(
                    0, placement.channel, pitch, placement.velocity)))
                events.append((end, _PRIORITY_NOTE_OFF, MidiEvent.note_off(
                    0, placement.channel, pitch)))

        rebuilt = MidiFile(format=midi_file.format, division=midi_file.division)
        for track_index, track in enumerate(midi_file.tracks):
            rebuilt.tracks.append(self._rebuild_track(
                track,
                removed.get(track_index, set()),
                added.get(track_index, []),
            ))

        return rebuilt

    def _placement(self, members: Sequence[Note]) -> _Placement:
        first = members[0]
        velocity = round(sum(n.velocity for n in members) / len(members))
        return _Placement(first.track, first.channel, max(1, min(127, velocity)))

    def _rebuild_track(
        self,
        track: MidiTrack,
        removed: Set[int],
        added: List[Tuple[int, int, MidiEvent]],
    ) -> MidiTrack:
        if not removed and not added:
            return MidiTrack(name=track.name, events=list(track.events))

        timed = []
        end_of_track = []
        absolute_time = 0
        for index, event in enumerate(track.events):
            absolute_time += event.delta_time
            if index in removed:
                continue
            if event.is_end_of_track:
                end_of_track.append((absolute_time, event))
            else:
                timed.append((absolute_time, _PRIORITY_EXISTING, event))

        timed.extend(added)
        last_time = max((t for t, _, _ in timed), default=0)
        for time, event in end_of_track:
            timed.append((max(time, last_time), _PRIORITY_END_OF_TRACK, event))

        # sorted() is stable, so events sharing a tick and priority keep their order
        timed = sorted(timed, key=lambda item: (item[0], item[1]))

        events = []
        previous = 0
        for time, _, event in timed:
            events.append(replace(event, delta_time=time - previous))
            previous = time

        return MidiTrack(name=track.name, events=events)

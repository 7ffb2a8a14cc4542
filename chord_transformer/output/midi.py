"""MIDI chord-sheet export."""

import pretty_midi
from typing import Sequence
from pathlib import Path

from ..core.constants import DEFAULT_DIVISION, DEFAULT_TEMPO
from ..inference.chords import Chord


class ChordSheetExporter:
    """Export a chord sequence as block chords."""

    def __init__(
        self,
        tempo: float = DEFAULT_TEMPO,
        instrument_name: str = "Chords",
        instrument_program: int = 0,
        velocity: int = 80,
    ):
        """
        Initialize ChordSheetExporter.

        Args:
            tempo: Tempo in BPM, used to convert ticks to seconds
            instrument_name: MIDI instrument name
            instrument_program: MIDI program number (0-127)
            velocity: Velocity of every chord note
        """
        self.tempo = tempo
        self.instrument_name = instrument_name
        self.instrument_program = instrument_program
        self.velocity = velocity

    def ticks_to_seconds(self, ticks: int, division: int = DEFAULT_DIVISION) -> float:
        """Convert ticks to seconds at a constant tempo."""
        return ticks * 60.0 / (self.tempo * division)

    def chords_to_pretty_midi(
        self,
        chords: Sequence[Chord],
        division: int = DEFAULT_DIVISION,
    ) -> pretty_midi.PrettyMIDI:
        """Convert chords to a PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)

        instrument = pretty_midi.Instrument(
            program=self.instrument_program,
            name=self.instrument_name,
        )

        for chord in chords:
            start = self.ticks_to_seconds(chord.start, division)
            end = self.ticks_to_seconds(chord.start + chord.duration, division)
            if end <= start:
                continue
            for pitch in chord.pitches:
                instrument.notes.append(pretty_midi.Note(
                    velocity=self.velocity,
                    pitch=pitch,
                    start=start,
                    end=end,
                ))

        midi.instruments.append(instrument)
        return midi

    def export(
        self,
        chords: Sequence[Chord],
        output_path: str,
        division: int = DEFAULT_DIVISION,
    ) -> None:
        """
        Export chords to a MIDI file.

        Args:
            chords: Chords to write
            output_path: Path to output MIDI file
            division: Ticks per quarter note of the chords' source file
        """
        midi = self.chords_to_pretty_midi(chords, division)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(str(output_path))

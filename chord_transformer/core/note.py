"""Note data class - a sounded pitch reconstructed from note events."""

from dataclasses import dataclass

from .constants import PITCH_NAMES


@dataclass(frozen=True)
class Note:
    """Represents a musical note in tick time."""

    pitch: int  # MIDI pitch (0-127)
    start: int  # Absolute start time in ticks
    duration: int  # Duration in ticks
    velocity: int = 64  # MIDI velocity (0-127)
    channel: int = 0  # MIDI channel (0-15)
    track: int = 0  # Index of the track the note was read from

    @property
    def end(self) -> int:
        """Absolute end time in ticks."""
        return self.start + self.duration

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        octave = (self.pitch // 12) - 1
        return f"{PITCH_NAMES[self.pitch % 12]}{octave}"

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.pitch % 12

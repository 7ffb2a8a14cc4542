"""Chord analysis - Group simultaneous notes into chords and name them.

Implements chord detection with:
- Greedy onset clustering within a tick tolerance
- Pitch de-duplication and a three-note minimum
- Interval-pattern naming in root position
- Inversion search with slash-bass naming
- Explicit "unidentified" names for unmatched clusters
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from ..core import MIDI_MAX, MIDI_MIN, Note, PITCH_NAMES
from ..core.chord_names import parse_chord_name, split_bass, midi_to_note_name
from ..core.constants import DEFAULT_TIME_TOLERANCE, MIN_CHORD_NOTES


# Interval patterns above the bass, tried in this order
CHORD_PATTERNS: Tuple[Tuple[str, Tuple[int, ...]], ...] = (
    # Triads
    ("", (0, 4, 7)),
    ("m", (0, 3, 7)),
    ("dim", (0, 3, 6)),
    ("aug", (0, 4, 8)),
    ("sus4", (0, 5, 7)),
    ("sus2", (0, 2, 7)),
    # Seventh chords
    ("7", (0, 4, 7, 10)),
    ("maj7", (0, 4, 7, 11)),
    ("m7", (0, 3, 7, 10)),
    ("dim7", (0, 3, 6, 9)),
    ("m7b5", (0, 3, 6, 10)),
    ("aug7", (0, 4, 8, 10)),
    ("7sus4", (0, 5, 7, 10)),
    # Extended
    ("9", (0, 4, 7, 10, 14)),
    ("maj9", (0, 4, 7, 11, 14)),
    ("m9", (0, 3, 7, 10, 14)),
    ("6", (0, 4, 7, 9)),
    ("m6", (0, 3, 7, 9)),
    ("add9", (0, 4, 7, 14)),
    ("madd9", (0, 3, 7, 14)),
)


@dataclass(frozen=True)
class OriginalChord:
    """Snapshot of a chord before its first transformation."""
    pitches: Tuple[int, ...]
    name: str


@dataclass(frozen=True)
class Chord:
    """Represents a detected (or transformed) chord."""

    pitches: Tuple[int, ...]  # Sorted, unique MIDI pitches
    name: str  # Chord symbol (e.g., "Cmaj7", "D/F#")
    start: int  # Start tick
    duration: int  # Duration in ticks
    original: Optional[OriginalChord] = None  # Set once, on first transformation

    def __post_init__(self):
        pitches = tuple(sorted(set(self.pitches)))
        if len(pitches) < MIN_CHORD_NOTES:
            raise ValueError(
                f"A chord needs at least {MIN_CHORD_NOTES} distinct pitches, got {pitches}"
            )
        if pitches[0] < MIDI_MIN or pitches[-1] > MIDI_MAX:
            raise ValueError(f"Chord pitches must be in {MIDI_MIN}-{MIDI_MAX}, got {pitches}")
        object.__setattr__(self, "pitches", pitches)

    @property
    def is_transformed(self) -> bool:
        return self.original is not None

    @property
    def root(self) -> str:
        return parse_chord_name(self.name)[0]

    @property
    def quality(self) -> str:
        return parse_chord_name(self.name)[1]

    @property
    def bass(self) -> Optional[str]:
        """Slash bass note name, if the chord is named as an inversion."""
        return split_bass(self.name)

    @property
    def pitch_classes(self) -> Set[int]:
        return {p % 12 for p in self.pitches}

    def transformed(self, pitches: Sequence[int], name: str) -> "Chord":
        """
        Return this chord with new pitches and name.

        The original snapshot is taken only if none exists yet, so the state
        before the very first transformation is always kept.
        """
        original = self.original or OriginalChord(self.pitches, self.name)
        return Chord(
            pitches=tuple(pitches),
            name=name,
            start=self.start,
            duration=self.duration,
            original=original,
        )


@dataclass
class NoteCluster:
    """Notes grouped around a fixed anchor tick."""
    anchor: int
    notes: List[Note] = field(default_factory=list)

    @property
    def pitches(self) -> List[int]:
        return sorted({n.pitch for n in self.notes})


def format_notes(pitches: Sequence[int]) -> str:
    """Format pitches as a note list (e.g., "C4, E4, G4")."""
    return ", ".join(midi_to_note_name(p) for p in pitches)


def normalize_chord(pitches: Sequence[int]) -> List[int]:
    """Intervals above the lowest pitch, sorted ascending."""
    if not pitches:
        return []
    lowest = min(pitches)
    return sorted(p - lowest for p in pitches)


def invert_pattern(pattern: Sequence[int], inversion: int) -> Tuple[List[int], int]:
    """
    Raise the first ``inversion`` intervals an octave and re-normalize.

    Returns:
        (intervals above the new lowest note, offset of that note above the root)
    """
    raised = sorted(
        [i + 12 for i in pattern[:inversion]] + list(pattern[inversion:])
    )
    return [i - raised[0] for i in raised], raised[0]


def identify_chord(pitches: Sequence[int]) -> str:
    """
    Name a set of pitches from its interval pattern.

    Root-position patterns are tried first, then every inversion of every
    pattern. Clusters that match nothing are named after their lowest note
    followed by the note list.

    Args:
        pitches: MIDI pitches (order does not matter, duplicates are ignored)

    Returns:
        Chord name, e.g. "C", "Cmaj7", "C/E" or "C (C4, C#4, D4)"
    """
    unique = sorted(set(pitches))
    if len(unique) < MIN_CHORD_NOTES:
        return "N/A"

    intervals = normalize_chord(unique)
    bass_pc = unique[0] % 12
    bass_name = PITCH_NAMES[bass_pc]

    for quality, pattern in CHORD_PATTERNS:
        if intervals == list(pattern):
            return bass_name + quality

    for quality, pattern in CHORD_PATTERNS:
        if len(pattern) != len(intervals):
            continue
        for inversion in range(1, len(pattern)):
            inverted, bass_offset = invert_pattern(pattern, inversion)
            if inverted == intervals:
                root_name = PITCH_NAMES[(bass_pc - bass_offset) % 12]
                return f"{root_name}{quality}/{bass_name}"

    return f"{bass_name} ({format_notes(unique)})"


class ChordDetector:
    """Detect chords from tick-timed notes.

    Notes are clustered greedily in start order. A cluster keeps the start tick
    of the note that opened it as its anchor and is never re-centered, so
    neighbouring clusters can sit up to twice the tolerance apart from the
    notes they hold.
    """

    def __init__(self, time_tolerance: int = DEFAULT_TIME_TOLERANCE):
        """
        Initialize ChordDetector.

        Args:
            time_tolerance: Maximum tick distance from a cluster's anchor
        """
        self.time_tolerance = time_tolerance

    def group(self, notes: Sequence[Note]) -> List[NoteCluster]:
        """
        Group notes by onset.

        Args:
            notes: Notes in any order

        Returns:
            Clusters ordered by anchor tick
        """
        clusters: List[NoteCluster] = []
        for note in sorted(notes, key=lambda n: n.start):
            for cluster in clusters:
                if abs(note.start - cluster.anchor) <= self.time_tolerance:
                    cluster.notes.append(note)
                    break
            else:
                clusters.append(NoteCluster(anchor=note.start, notes=[note]))

        clusters.sort(key=lambda c: c.anchor)
        return clusters

    def detect(self, notes: Sequence[Note]) -> List[Chord]:
        """
        Detect chords from notes.

        Clusters with fewer than three distinct pitches are dropped. Each chord
        lasts until the next chord starts; the last chord lasts as long as the
        longest note within tolerance of its start.

        Args:
            notes: Notes to analyze

        Returns:
            Chords in start order
        """
        if not notes:
            return []

        clusters = [
            c for c in self.group(notes) if len(c.pitches) >= MIN_CHORD_NOTES
        ]

        chords = []
        for i, cluster in enumerate(clusters):
            if i + 1 < len(clusters):
                duration = clusters[i + 1].anchor - cluster.anchor
            else:
                duration = max(
                    (n.duration for n in notes
                     if abs(n.start - cluster.anchor) <= self.time_tolerance),
                    default=0,
                )

            pitches = cluster.pitches
            chords.append(Chord(
                pitches=tuple(pitches),
                name=identify_chord(pitches),
                start=cluster.anchor,
                duration=duration,
            ))

        return chords

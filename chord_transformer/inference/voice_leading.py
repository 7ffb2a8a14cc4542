"""Voice leading - Place a target chord close to the chord it replaces.

This module provides voicing search and chord transformation:
- Octave-window enumeration of target voicings
- Parallel fifth/octave rejection
- Movement cost with large-leap and voice-count penalties
- Standard, inversion, percentage-blend and tonality-switch transformations
- Per-voice movement analysis
"""

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from ..core import MIDI_MAX, MIDI_MIN
from ..core.chord_names import (
    chord_notes_from_name,
    note_name_to_pitch_class,
    parse_chord_name,
    split_bass,
)
from ..core.constants import FALLBACK_OCTAVE, MAX_OCTAVE

# Cost weights
LEAP_PENALTY = 10  # Per semitone beyond max_voice_movement
VOICE_COUNT_PENALTY = 1000


class TransformationType(Enum):
    """How a target chord replaces an existing one."""
    STANDARD = "standard"
    INVERSION = "inversion"
    PERCENTAGE = "percentage"
    SWITCH_TONALITY = "switch"


@dataclass
class VoiceLeadingOptions:
    """Configuration for voicing search.

    Attributes:
        minimize_movement: Double the movement cost (default: True)
        avoid_parallels: Reject voicings with parallel fifths/octaves (default: True)
        maintain_voice_count: Penalize voicings with a different size (default: True)
        max_voice_movement: Semitones a voice may move before the leap penalty
            applies (default: 7)
        voice_priority: Indices of existing voices, lowest voice first, whose
            movement counts double (default: ())
    """

    minimize_movement: bool = True
    avoid_parallels: bool = True
    maintain_voice_count: bool = True
    max_voice_movement: int = 7
    voice_priority: Tuple[int, ...] = ()


@dataclass
class TransformationOptions:
    """Per-chord transformation settings.

    Attributes:
        type: Transformation type (default: STANDARD)
        inversion: Inversion number for INVERSION, 0 = root position (default: 0)
        percentage: Blend amount for PERCENTAGE, 0-100 (default: 100.0)
        preserve_root: Put the target root in the bass when the existing bass
            cannot be kept (default: True)
        preserve_bass: Keep the existing bass pitch class lowest when the
            target contains it (default: True)
        use_voice_leading: Search voicings instead of shifting octaves (default: True)
    """

    type: TransformationType = TransformationType.STANDARD
    inversion: int = 0
    percentage: float = 100.0
    preserve_root: bool = True
    preserve_bass: bool = True
    use_voice_leading: bool = True


@dataclass
class VoiceMovement:
    """Movement of one voice between two chords."""
    original_pitch: int  # 0 for a voice with no counterpart
    new_pitch: int
    movement: int  # Semitones, signed
    is_smallest_possible_move: bool = field(default=True)


def _nearest(pitch: int, candidates: Sequence[int]) -> int:
    """First pitch in ``candidates`` closest to ``pitch``."""
    return min(candidates, key=lambda c: abs(c - pitch))


def _fold_into_range(pitch: int) -> int:
    """Move a pitch by octaves until it lies within MIDI range."""
    while pitch > MIDI_MAX:
        pitch -= 12
    while pitch < MIDI_MIN:
        pitch += 12
    return pitch


def _raise_to_bass(voicing: Sequence[int], bass_pc: int) -> List[int]:
    """Raise notes below the lowest ``bass_pc`` note by octaves, where range allows."""
    voiced = sorted(voicing)
    bass = next((p for p in voiced if p % 12 == bass_pc), None)
    if bass is None:
        return voiced
    result = []
    for pitch in voiced:
        while pitch < bass and pitch + 12 <= MIDI_MAX:
            pitch += 12
        result.append(pitch)
    return result


class VoiceLeadingEngine:
    """Find voicings that move as little as possible from an existing chord."""

    def __init__(self, options: Optional[VoiceLeadingOptions] = None):
        """
        Initialize VoiceLeadingEngine.

        Args:
            options: Voicing search configuration
        """
        self.options = options or VoiceLeadingOptions()

    def candidate_voicings(
        self,
        target_pitches: Sequence[int],
        existing_pitches: Sequence[int],
    ) -> Iterator[List[int]]:
        """
        Enumerate voicings of the target pitch classes.

        Each target pitch class is tried in every octave from one below the
        existing chord's lowest octave to one above its highest, lowest octave
        first. Pitches above 127 are skipped.

        Yields:
            Voicings in target order (not sorted)
        """
        pitch_classes = [p % 12 for p in target_pitches]
        if not pitch_classes or not existing_pitches:
            return

        min_octave = max(0, min(existing_pitches) // 12 - 1)
        max_octave = min(MAX_OCTAVE, max(existing_pitches) // 12 + 1)
        octaves = range(min_octave, max_octave + 1)

        choices = [
            [pc + octave * 12 for octave in octaves if pc + octave * 12 <= MIDI_MAX]
            for pc in pitch_classes
        ]
        for voicing in itertools.product(*choices):
            yield list(voicing)

    def re_voice(
        self,
        target_pitches: Sequence[int],
        existing_pitches: Sequence[int],
    ) -> List[int]:
        """
        Voice the target chord close to an existing chord.

        Args:
            target_pitches: Target chord pitches (only pitch classes are used)
            existing_pitches: Pitches of the chord being replaced

        Returns:
            Lowest-cost voicing; ties keep the first one found
        """
        existing = sorted(existing_pitches)
        best = None
        best_cost = None
        first = None

        for voicing in self.candidate_voicings(target_pitches, existing):
            if first is None:
                first = voicing
            if self.options.avoid_parallels and self.has_parallel_fifths_or_octaves(existing, voicing):
                continue
            cost = self.movement_cost(existing, voicing)
            if best_cost is None or cost < best_cost:
                best, best_cost = voicing, cost

        if best is not None:
            return best
        if first is not None:
            return first
        return [p % 12 + FALLBACK_OCTAVE * 12 for p in target_pitches]

    def has_parallel_fifths_or_octaves(
        self,
        existing_pitches: Sequence[int],
        new_pitches: Sequence[int],
    ) -> bool:
        """
        Check for parallel fifths or octaves between two chords.

        Voices are matched by index. Indices beyond the new chord map to its
        first voice (for the lower voice) or last voice (for the upper voice).
        """
        if len(existing_pitches) < 2 or len(new_pitches) < 2:
            return False

        for i, j in itertools.combinations(range(len(existing_pitches)), 2):
            interval = abs(existing_pitches[i] - existing_pitches[j]) % 12
            if interval not in (0, 7):
                continue

            new_i = i if i < len(new_pitches) else 0
            new_j = j if j < len(new_pitches) else len(new_pitches) - 1
            if abs(new_pitches[new_i] - new_pitches[new_j]) % 12 != interval:
                continue

            move_i = new_pitches[new_i] - existing_pitches[i]
            move_j = new_pitches[new_j] - existing_pitches[j]
            if move_i and move_j and (move_i > 0) == (move_j > 0):
                return True

        return False

    def movement_cost(
        self,
        existing_pitches: Sequence[int],
        new_pitches: Sequence[int],
    ) -> int:
        """
        Cost of moving from one chord to another.

        Every existing pitch moves to its nearest new pitch. Moves beyond
        ``max_voice_movement`` cost extra per semitone. Voices listed in
        ``voice_priority`` count double. A change in voice count adds a flat
        penalty, and ``minimize_movement`` doubles the total.
        """
        cost = 0
        if self.options.maintain_voice_count and len(existing_pitches) != len(new_pitches):
            cost += VOICE_COUNT_PENALTY

        limit = self.options.max_voice_movement
        for index, pitch in enumerate(existing_pitches):
            distance = min(abs(n - pitch) for n in new_pitches)
            voice_cost = distance
            if distance > limit:
                voice_cost += (distance - limit) * LEAP_PENALTY
            if index in self.options.voice_priority:
                voice_cost *= 2
            cost += voice_cost

        if self.options.minimize_movement:
            cost *= 2
        return cost

    def transform_chord(
        self,
        existing_pitches: Sequence[int],
        target_name: str,
        transform_options: Optional[TransformationOptions] = None,
    ) -> List[int]:
        """
        Build the pitches that replace an existing chord.

        Args:
            existing_pitches: Pitches of the chord being replaced
            target_name: Target chord name (e.g., "Am7", "G/B")
            transform_options: Transformation settings

        Returns:
            New pitches (unsorted; callers normalize)
        """
        options = transform_options or TransformationOptions()
        existing = sorted(existing_pitches)
        target = chord_notes_from_name(target_name)

        if options.type == TransformationType.INVERSION:
            return self._invert(existing, sorted(target), options)
        if options.type == TransformationType.PERCENTAGE:
            return self._blend(existing, target, options.percentage)
        if options.type == TransformationType.STANDARD and not options.use_voice_leading:
            return self._shift_octave(existing, target)

        voiced = self.re_voice(target, existing)
        bass_pc = self._bass_pitch_class(existing, voiced, target_name, options)
        if bass_pc is None:
            return voiced
        return _raise_to_bass(voiced, bass_pc)

    def _bass_pitch_class(
        self,
        existing: Sequence[int],
        voiced: Sequence[int],
        target_name: str,
        options: TransformationOptions,
    ) -> Optional[int]:
        """Pitch class to put lowest: slash bass, then existing bass, then root."""
        slash = split_bass(target_name)
        if slash is not None:
            return note_name_to_pitch_class(slash)

        target_pcs = {p % 12 for p in voiced}
        if options.preserve_bass and existing and existing[0] % 12 in target_pcs:
            return existing[0] % 12
        if options.preserve_root:
            root, _ = parse_chord_name(target_name)
            return note_name_to_pitch_class(root)
        return None

    def _shift_octave(self, existing: Sequence[int], target: Sequence[int]) -> List[int]:
        """Move the target by whole octaves so both chords share a lowest octave.

        Pitches pushed outside MIDI range fold back by octaves.
        """
        shift = min(existing) // 12 - min(target) // 12
        return [_fold_into_range(p + shift * 12) for p in target]

    def _invert(
        self,
        existing: Sequence[int],
        template: List[int],
        options: TransformationOptions,
    ) -> List[int]:
        inversion = max(0, min(options.inversion, len(template) - 1))
        inverted = sorted(
            [p + 12 for p in template[:inversion]] + template[inversion:]
        )
        bass_pc = inverted[0] % 12

        if not options.use_voice_leading:
            return self._shift_octave(existing, inverted)

        # Notes below the inversion's bass go up by octaves
        return _raise_to_bass(self.re_voice(inverted, existing), bass_pc)

    def _blend(
        self,
        existing: List[int],
        target: Sequence[int],
        percentage: float,
    ) -> List[int]:
        percentage = max(0.0, min(100.0, percentage))
        voiced = sorted(self.re_voice(target, existing))

        if len(existing) == len(voiced):
            pairs = list(zip(existing, voiced))
        else:
            pairs = [(orig, _nearest(orig, voiced)) for orig in existing]
            matched = {t for _, t in pairs}
            pairs += [
                (_nearest(t, existing), t) for t in voiced if t not in matched
            ]

        return [
            orig + int((new - orig) * percentage / 100.0)
            for orig, new in pairs
        ]

    def analyze_voice_movement(
        self,
        existing_pitches: Sequence[int],
        new_pitches: Sequence[int],
    ) -> List[VoiceMovement]:
        """
        Describe how each voice moves between two chords.

        Every existing pitch is matched with its nearest new pitch; new pitches
        left unmatched are reported with an original pitch of 0 and no movement.
        """
        movements = []
        if not new_pitches:
            return movements

        limit = self.options.max_voice_movement
        for pitch in existing_pitches:
            nearest = _nearest(pitch, new_pitches)
            movements.append(VoiceMovement(
                original_pitch=pitch,
                new_pitch=nearest,
                movement=nearest - pitch,
                is_smallest_possible_move=abs(nearest - pitch) <= limit,
            ))

        matched = {m.new_pitch for m in movements}
        for pitch in new_pitches:
            if pitch not in matched:
                movements.append(VoiceMovement(0, pitch, 0, True))

        return movements

"""Key detection - Identify the tonal center of a chord sequence.

Implements template-based key detection with:
- 30 major/minor key templates (15 spellings each)
- Pitch-class coverage scoring
- Tonic/dominant/subdominant presence boosts
- Functional-chord boosts (tonic, dominant and subdominant chords)
- A confidence cutoff below which no key is reported
"""

import numpy as np
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from ..core import PITCH_NAMES
from ..core.chord_names import note_name_to_pitch_class, parse_chord_name
from ..core.constants import KEY_CONFIDENCE_THRESHOLD
from .chords import Chord


MAJOR_ROOTS = ("C", "G", "D", "A", "E", "B", "F#", "C#", "F", "Bb", "Eb", "Ab", "Db", "Gb", "Cb")
MINOR_ROOTS = ("A", "E", "B", "F#", "C#", "G#", "D#", "A#", "D", "G", "C", "F", "Bb", "Eb", "Ab")

MAJOR_SCALE = (0, 2, 4, 5, 7, 9, 11)
NATURAL_MINOR_SCALE = (0, 2, 3, 5, 7, 8, 10)
HARMONIC_MINOR_SCALE = (0, 2, 3, 5, 7, 8, 11)
MELODIC_MINOR_SCALE = (0, 2, 3, 5, 7, 9, 11)

# Scale degree -> chord quality suffix
DIATONIC_CHORDS_MAJOR = MappingProxyType({1: "", 2: "m", 3: "m", 4: "", 5: "", 6: "m", 7: "dim"})
DIATONIC_CHORDS_MINOR = MappingProxyType({1: "m", 2: "dim", 3: "", 4: "m", 5: "m", 6: "", 7: ""})

# Presence boosts for tonic, dominant and subdominant pitch classes
TONIC_BOOST = 1.2
DOMINANT_BOOST = 1.1
SUBDOMINANT_BOOST = 1.05

# Boosts for chords that fill each function
TONIC_CHORD_BOOST = 1.3
DOMINANT_CHORD_BOOST = 1.2
SUBDOMINANT_CHORD_BOOST = 1.1


@dataclass(frozen=True)
class KeySignature:
    """A major or minor key."""

    root: str  # Key root as spelled (e.g., "Bb")
    is_major: bool
    scale_degrees: Tuple[int, ...]  # Pitch classes of degrees 1-7
    diatonic_chords: Mapping[int, str] = field(compare=False)  # Degree -> quality

    @property
    def root_pitch_class(self) -> int:
        return self.scale_degrees[0]

    @property
    def mode(self) -> str:
        return "major" if self.is_major else "minor"

    @property
    def key_name(self) -> str:
        """Lookup name ("C" for C major, "Am" for A minor)."""
        return self.root if self.is_major else f"{self.root}m"

    @property
    def name(self) -> str:
        """Display name (e.g., "C major")."""
        return f"{self.root} {self.mode}"

    @property
    def dominant(self) -> int:
        return (self.root_pitch_class + 7) % 12

    @property
    def subdominant(self) -> int:
        return (self.root_pitch_class + 5) % 12

    def chord_for_degree(self, degree: int) -> str:
        """Diatonic chord name on a scale degree (1-7)."""
        root_pc = self.scale_degrees[degree - 1]
        return PITCH_NAMES[root_pc] + self.diatonic_chords[degree]


@dataclass
class ScaleConstraint:
    """Notes and chords allowed by a scale, for scale-aware substitutions."""
    scale_type: str
    root: int  # Pitch class
    allowed_notes: List[int]
    allowed_chords: List[str] = field(default_factory=list)


@dataclass
class KeyCandidate:
    """A key with its score from one detection call."""
    key: KeySignature
    score: float

    @property
    def name(self) -> str:
        return self.key.name


def _build_key(root: str, is_major: bool) -> KeySignature:
    root_pc = note_name_to_pitch_class(root)
    scale = MAJOR_SCALE if is_major else NATURAL_MINOR_SCALE
    return KeySignature(
        root=root,
        is_major=is_major,
        scale_degrees=tuple((root_pc + i) % 12 for i in scale),
        diatonic_chords=DIATONIC_CHORDS_MAJOR if is_major else DIATONIC_CHORDS_MINOR,
    )


def _build_key_signatures() -> Mapping[str, KeySignature]:
    keys: Dict[str, KeySignature] = {}
    for root in MAJOR_ROOTS:
        key = _build_key(root, True)
        keys[key.key_name] = key
    for root in MINOR_ROOTS:
        key = _build_key(root, False)
        keys[key.key_name] = key
    return MappingProxyType(keys)


KEY_SIGNATURES = _build_key_signatures()


class KeyDetector:
    """Detect the key of a chord sequence.

    Scores are products of unnormalized boosts, so they only rank keys against
    each other within a single call.
    """

    def __init__(self, confidence_threshold: float = KEY_CONFIDENCE_THRESHOLD):
        """
        Initialize KeyDetector.

        Args:
            confidence_threshold: Minimum best score for a key to be reported
        """
        self.confidence_threshold = confidence_threshold
        self.key_signatures = KEY_SIGNATURES

    def _build_pitch_class_counts(self, chords: Sequence[Chord]) -> np.ndarray:
        """Count sounded pitches per pitch class (12-element array)."""
        counts = np.zeros(12, dtype=int)
        for chord in chords:
            for pitch in chord.pitches:
                counts[pitch % 12] += 1
        return counts

    def _functional_chords(
        self, key: KeySignature, chords: Sequence[Chord]
    ) -> Tuple[bool, bool, bool]:
        """Whether the sequence holds tonic, dominant and subdominant chords."""
        has_tonic = has_dominant = has_subdominant = False

        for chord in chords:
            root, quality = parse_chord_name(chord.name)
            root_pc = note_name_to_pitch_class(root)

            if root_pc == key.root_pitch_class:
                if key.is_major and quality in ("", "maj7", "6"):
                    has_tonic = True
                elif not key.is_major and quality in ("m", "m7"):
                    has_tonic = True
            elif root_pc == key.dominant:
                if quality in ("", "7"):
                    has_dominant = True
            elif root_pc == key.subdominant:
                if key.is_major and quality in ("", "maj7"):
                    has_subdominant = True
                elif not key.is_major and quality in ("m", "m7"):
                    has_subdominant = True

        return has_tonic, has_dominant, has_subdominant

    def score_key(
        self,
        key: KeySignature,
        chords: Sequence[Chord],
        counts: Optional[np.ndarray] = None,
    ) -> float:
        """
        Score one key against a chord sequence.

        Args:
            key: Key template
            chords: Chords to analyze
            counts: Precomputed pitch-class counts

        Returns:
            Score (fraction of notes in scale, times boosts)
        """
        if counts is None:
            counts = self._build_pitch_class_counts(chords)

        total = int(counts.sum())
        if total == 0:
            return 0.0

        in_scale = int(counts[list(key.scale_degrees)].sum())
        score = in_scale / total

        if counts[key.root_pitch_class] > 0:
            score *= TONIC_BOOST
        if counts[key.dominant] > 0:
            score *= DOMINANT_BOOST
        if counts[key.subdominant] > 0:
            score *= SUBDOMINANT_BOOST

        has_tonic, has_dominant, has_subdominant = self._functional_chords(key, chords)
        if has_tonic:
            score *= TONIC_CHORD_BOOST
        if has_dominant:
            score *= DOMINANT_CHORD_BOOST
        if has_subdominant:
            score *= SUBDOMINANT_CHORD_BOOST

        return score

    def score_keys(self, chords: Sequence[Chord]) -> List[KeyCandidate]:
        """Score every key template, in template order."""
        counts = self._build_pitch_class_counts(chords)
        return [
            KeyCandidate(key, self.score_key(key, chords, counts))
            for key in self.key_signatures.values()
        ]

    def detect_key(self, chords: Sequence[Chord]) -> Optional[KeySignature]:
        """
        Detect the key of a chord sequence.

        Ties go to the key listed first (major keys before minor keys).

        Args:
            chords: Chords to analyze

        Returns:
            Best KeySignature, or None if there are no chords or the best score
            is below the confidence threshold
        """
        if not chords:
            return None

        best: Optional[KeyCandidate] = None
        for candidate in self.score_keys(chords):
            if best is None or candidate.score > best.score:
                best = candidate

        if best is None or best.score < self.confidence_threshold:
            return None
        return best.key

    def get_key_signature(self, key_name: str) -> Optional[KeySignature]:
        """Look up a key by name ("C", "F#", "Am", "Bbm")."""
        return self.key_signatures.get(key_name)

    def all_key_names(self) -> List[str]:
        return list(self.key_signatures)

    def get_scale_constraints(self, key: Optional[KeySignature]) -> List[ScaleConstraint]:
        """
        Scales usable for substitutions in a key.

        Major keys add the parallel minor (borrowed chords); minor keys add the
        harmonic and melodic minor scales.

        Args:
            key: Key signature (None yields no constraints)

        Returns:
            List of ScaleConstraint, main scale first
        """
        if key is None:
            return []

        root = key.root_pitch_class
        name = lambda interval: PITCH_NAMES[(root + interval) % 12]  # noqa: E731

        constraints = [ScaleConstraint(
            scale_type=key.mode,
            root=root,
            allowed_notes=list(key.scale_degrees),
            allowed_chords=[key.chord_for_degree(d) for d in sorted(key.diatonic_chords)],
        )]

        if key.is_major:
            constraints.append(ScaleConstraint(
                scale_type="parallel minor",
                root=root,
                allowed_notes=[(root + i) % 12 for i in NATURAL_MINOR_SCALE],
                allowed_chords=[name(0) + "m", name(3), name(5) + "m", name(8), name(10)],
            ))
        else:
            constraints.append(ScaleConstraint(
                scale_type="harmonic minor",
                root=root,
                allowed_notes=[(root + i) % 12 for i in HARMONIC_MINOR_SCALE],
                allowed_chords=[name(0) + "m", name(7) + "7", name(11) + "dim7"],
            ))
            constraints.append(ScaleConstraint(
                scale_type="melodic minor",
                root=root,
                allowed_notes=[(root + i) % 12 for i in MELODIC_MINOR_SCALE],
                allowed_chords=[name(0) + "m6", name(7) + "7", name(9) + "m7b5"],
            ))

        return constraints

"""Tests for key detection over chord sequences."""

import pytest
from pathlib import Path
import sys

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chord_transformer.inference import Chord, KeyDetector, identify_chord


def create_chords(*pitch_lists, duration: int = 480) -> list:
    """Create back-to-back named chords from lists of pitches."""
    return [
        Chord(pitches=tuple(p), name=identify_chord(p), start=i * duration, duration=duration)
        for i, p in enumerate(pitch_lists)
    ]


C_CHORD = [60, 64, 67]
F_CHORD = [65, 69, 72]
G_CHORD = [67, 71, 74]


class TestKeyDetector:
    """Test key detection."""

    def test_one_four_five_in_c(self):
        """C, F and G imply C major."""
        chords = create_chords(C_CHORD, F_CHORD, G_CHORD)
        detector = KeyDetector()

        key = detector.detect_key(chords)

        assert key is not None
        assert key.name == "C major"
        assert key.is_major

        scores = {c.key.key_name: c.score for c in detector.score_keys(chords)}
        assert scores["C"] >= 0.6
        assert scores["C"] > scores["Am"]

    def test_minor_key(self):
        """Am, Dm and E imply A minor."""
        chords = create_chords([57, 60, 64], [62, 65, 69], [64, 68, 71])
        key = KeyDetector().detect_key(chords)

        assert key.name == "A minor"
        assert not key.is_major

    def test_empty(self):
        """No chords, no key."""
        assert KeyDetector().detect_key([]) is None

    def test_below_threshold(self):
        """Best scores under the confidence threshold yield no key."""
        chords = create_chords(C_CHORD, F_CHORD, G_CHORD)
        assert KeyDetector(confidence_threshold=100.0).detect_key(chords) is None

    def test_scores_every_key(self):
        """All 30 keys are scored, majors first."""
        candidates = KeyDetector().score_keys(create_chords(C_CHORD))

        assert len(candidates) == 30
        assert candidates[0].name == "C major"
        assert candidates[15].name == "A minor"


class TestKeySignatures:
    """Test key templates and lookups."""

    def test_lookup(self):
        """Keys are addressed as "C" or "Am"."""
        detector = KeyDetector()

        assert detector.get_key_signature("Am").scale_degrees == (9, 11, 0, 2, 4, 5, 7)
        assert detector.get_key_signature("Bb").root_pitch_class == 10
        assert detector.get_key_signature("Cb").root_pitch_class == 11
        assert detector.get_key_signature("H") is None

    def test_all_key_names(self):
        """Every key name resolves."""
        detector = KeyDetector()
        names = detector.all_key_names()

        assert len(names) == 30
        assert "F#" in names and "D#m" in names
        assert all(detector.get_key_signature(n) is not None for n in names)

    def test_diatonic_chords(self):
        """Degrees map to diatonic chord names."""
        key = KeyDetector().get_key_signature("G")

        assert key.chord_for_degree(1) == "G"
        assert key.chord_for_degree(2) == "Am"
        assert key.chord_for_degree(7) == "F#dim"


class TestScaleConstraints:
    """Test scale constraints for substitutions."""

    def test_major_key(self):
        """Major keys offer the main scale and the parallel minor."""
        detector = KeyDetector()
        constraints = detector.get_scale_constraints(detector.get_key_signature("C"))

        assert [c.scale_type for c in constraints] == ["major", "parallel minor"]
        assert constraints[0].allowed_notes == [0, 2, 4, 5, 7, 9, 11]
        assert constraints[0].allowed_chords == ["C", "Dm", "Em", "F", "G", "Am", "Bdim"]
        assert "G#" in constraints[1].allowed_chords

    def test_minor_key(self):
        """Minor keys add the harmonic and melodic minor."""
        detector = KeyDetector()
        constraints = detector.get_scale_constraints(detector.get_key_signature("Am"))

        assert [c.scale_type for c in constraints] == ["minor", "harmonic minor", "melodic minor"]
        assert 8 in constraints[1].allowed_notes
        assert "E7" in constraints[1].allowed_chords

    def test_no_key(self):
        """No key, no constraints."""
        assert KeyDetector().get_scale_constraints(None) == []

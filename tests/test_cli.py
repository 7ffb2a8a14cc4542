"""Tests for the command-line interface."""

import pytest
from pathlib import Path
import sys

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typer.testing import CliRunner

from chord_transformer.cli import app
from chord_transformer.session import ChordTransformerSession
from test_session import C_F_G, make_midi_bytes

runner = CliRunner()


@pytest.fixture
def midi_path(tmp_path):
    path = tmp_path / "song.mid"
    path.write_bytes(make_midi_bytes(C_F_G))
    return path


class TestAnalyze:
    """Test the analyze command."""

    def test_prints_key(self, midi_path):
        result = runner.invoke(app, ["analyze", str(midi_path)])

        assert result.exit_code == 0
        assert "C major" in result.output

    def test_writes_report(self, midi_path, tmp_path):
        report = tmp_path / "report.txt"
        result = runner.invoke(app, ["analyze", str(midi_path), "--report", str(report)])

        assert result.exit_code == 0
        assert "Number of chords: 3" in report.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.mid")])
        assert result.exit_code == 1


class TestTransform:
    """Test the transform command."""

    def test_writes_output(self, midi_path, tmp_path):
        output = tmp_path / "out.mid"
        result = runner.invoke(
            app, ["transform", str(midi_path), "-o", str(output), "-c", "1=Am"]
        )

        assert result.exit_code == 0
        assert "Transformed 1 of 1 chords" in result.output

        session = ChordTransformerSession()
        assert session.load_file(output)
        assert session.chords[0].pitches == (60, 64, 69)

    def test_switch_mode(self, midi_path, tmp_path):
        output = tmp_path / "out.mid"
        result = runner.invoke(
            app, ["transform", str(midi_path), "-o", str(output), "-c", "3=G", "-m", "switch"]
        )

        assert result.exit_code == 0
        session = ChordTransformerSession()
        session.load_file(output)
        assert session.chords[2].pitches == (67, 70, 74)

    def test_bad_chord_option(self, midi_path, tmp_path):
        result = runner.invoke(
            app, ["transform", str(midi_path), "-o", str(tmp_path / "out.mid"), "-c", "Am"]
        )
        assert result.exit_code != 0

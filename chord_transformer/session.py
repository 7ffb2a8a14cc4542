"""Chord transformer session - Load, analyze, transform and save MIDI files.

The session ties the layers together:
- Codec: bytes <-> MidiFile
- Transcription: MidiFile -> notes
- Inference: notes -> chords, key; voice leading for transformations
- Processing: undo/redo history, event rebuilding on save
- Output: plain-text analysis report

Chords are immutable. The session is the only writer of its chord list and
replaces chords in place by index.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .codec import MidiDecodeError, MidiFile, decode, encode
from .core import Note, TONALITY_SWITCH, chord_notes_from_name, content_hash, parse_chord_name
from .core.constants import DEFAULT_HISTORY_SIZE, DEFAULT_TEMPO, DEFAULT_TIME_TOLERANCE
from .inference import (
    Chord,
    ChordDetector,
    KeyDetector,
    KeySignature,
    TransformationOptions,
    TransformationType,
    VoiceLeadingEngine,
    VoiceLeadingOptions,
)
from .output import ChordSheetExporter, format_analysis
from .processing import ActionHistory, EventRebuilder
from .transcription import NoteExtractor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
OptionsArg = Union[None, TransformationOptions, Sequence[Optional[TransformationOptions]]]


@dataclass
class SessionConfig:
    """Configuration for a ChordTransformerSession.

    Attributes:
        time_tolerance: Onset tolerance for chord grouping in ticks (default: 120)
        history_size: Maximum number of undoable actions (default: 50)
        voice_leading: Voicing search options
    """

    time_tolerance: int = DEFAULT_TIME_TOLERANCE
    history_size: int = DEFAULT_HISTORY_SIZE
    voice_leading: VoiceLeadingOptions = field(default_factory=VoiceLeadingOptions)


class ChordTransformerSession:
    """Chord analysis and transformation of one MIDI file at a time."""

    def __init__(self, config: Optional[SessionConfig] = None):
        """
        Initialize ChordTransformerSession.

        Args:
            config: Session configuration
        """
        self.config = config or SessionConfig()

        self.extractor = NoteExtractor()
        self.key_detector = KeyDetector()
        self.voice_leading = VoiceLeadingEngine(self.config.voice_leading)
        self.history = ActionHistory(self.update_chord, max_size=self.config.history_size)

        self._midi_file: Optional[MidiFile] = None
        self._notes: Tuple[Note, ...] = ()
        self._chords: List[Chord] = []
        self._filename = ""
        self._detected_tolerance = self.config.time_tolerance
        # content hash -> (tolerance used, detected chords)
        self._cache: Dict[str, Tuple[int, Tuple[Chord, ...]]] = {}

    def load_file(self, path: PathLike) -> bool:
        """
        Load a MIDI file from disk.

        Returns:
            True on success; on failure the current state is kept
        """
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            return False
        return self.load_bytes(data, filename=str(path))

    def load_bytes(self, data: bytes, filename: str = "") -> bool:
        """
        Load a MIDI file from memory.

        Chord detection is skipped for content seen before; the cached chords
        are reused as they were first detected.

        Args:
            data: Complete file content
            filename: Name reported in the analysis

        Returns:
            True on success; on failure the current state is kept
        """
        file_hash = content_hash(data)

        try:
            midi_file = decode(data)
        except MidiDecodeError as e:
            logger.error("Could not decode %s: %s", filename or "MIDI data", e)
            return False

        notes = self.extractor.extract(midi_file)

        cached = self._cache.get(file_hash)
        if cached is not None:
            logger.debug("Using cached chords for %s (hash %s)", filename, file_hash)
            tolerance, chords = cached
        else:
            tolerance = self.config.time_tolerance
            chords = tuple(ChordDetector(tolerance).detect(notes))
            self._cache[file_hash] = (tolerance, chords)

        self._midi_file = midi_file
        self._notes = tuple(notes)
        self._chords = list(chords)
        self._filename = filename
        self._detected_tolerance = tolerance
        self.history.clear()

        logger.info(
            "Loaded %s: %d tracks, %d notes, %d chords",
            filename or "MIDI data", midi_file.num_tracks, len(notes), len(chords),
        )
        return True

    @property
    def midi_file(self) -> Optional[MidiFile]:
        return self._midi_file

    @property
    def is_loaded(self) -> bool:
        return self._midi_file is not None

    @property
    def notes(self) -> Tuple[Note, ...]:
        return self._notes

    @property
    def chords(self) -> Tuple[Chord, ...]:
        return tuple(self._chords)

    @property
    def current_filename(self) -> str:
        return self._filename

    @property
    def time_tolerance(self) -> int:
        """Onset tolerance used for the next detection."""
        return self.config.time_tolerance

    @time_tolerance.setter
    def time_tolerance(self, value: int):
        self.config.time_tolerance = value

    @property
    def voice_leading_options(self) -> VoiceLeadingOptions:
        return self.voice_leading.options

    @voice_leading_options.setter
    def voice_leading_options(self, options: VoiceLeadingOptions):
        self.config.voice_leading = options
        self.voice_leading.options = options

    def get_chord(self, index: int) -> Optional[Chord]:
        if 0 <= index < len(self._chords):
            return self._chords[index]
        return None

    def update_chord(self, index: int, chord: Chord) -> bool:
        """Replace the chord at ``index``. Out-of-range indices are ignored."""
        if not 0 <= index < len(self._chords):
            return False
        self._chords[index] = chord
        return True

    def transform_selected_chords(
        self,
        indices: Sequence[int],
        target_names: Sequence[str],
        options: OptionsArg = None,
    ) -> int:
        """
        Transform several chords as one undoable action.

        Args:
            indices: Chord indices to transform (out-of-range ones are skipped)
            target_names: Target chord name for each index
            options: One TransformationOptions for all chords, or one per index

        Returns:
            Number of chords transformed
        """
        if len(target_names) != len(indices):
            raise ValueError(
                f"Got {len(target_names)} target names for {len(indices)} chords"
            )
        if options is None or isinstance(options, TransformationOptions):
            options = [options] * len(indices)
        elif len(options) != len(indices):
            raise ValueError(f"Got {len(options)} options for {len(indices)} chords")

        applied, before, after = [], [], []
        for index, target_name, chord_options in zip(indices, target_names, options):
            chord = self.get_chord(index)
            if chord is None:
                logger.warning("Chord index %d out of range, skipping", index)
                continue

            new_chord = self._transform(chord, target_name, chord_options)
            self._chords[index] = new_chord
            applied.append(index)
            before.append(chord)
            after.append(new_chord)

        if applied:
            self.history.record(applied, before, after, f"Transform {len(applied)} chords")
        return len(applied)

    def transform_chord(
        self,
        index: int,
        target_name: str,
        options: Optional[TransformationOptions] = None,
    ) -> bool:
        """Transform a single chord. Returns False for an out-of-range index."""
        return self.transform_selected_chords([index], [target_name], options) == 1

    def switch_tonality(self, index: int) -> bool:
        """
        Swap a chord between its major and minor form (e.g., C <-> Cm).

        Returns:
            False if the index is out of range or the quality has no counterpart
        """
        chord = self.get_chord(index)
        if chord is None:
            return False

        root, quality = parse_chord_name(chord.name)
        switched = TONALITY_SWITCH.get(quality)
        if switched is None:
            logger.info("No tonality switch for chord %s", chord.name)
            return False

        options = TransformationOptions(type=TransformationType.SWITCH_TONALITY)
        new_chord = self._transform(chord, root + switched, options)
        self._chords[index] = new_chord
        self.history.record(
            [index], [chord], [new_chord], f"Switch tonality of chord {index}"
        )
        return True

    def _transform(
        self,
        chord: Chord,
        target_name: str,
        options: Optional[TransformationOptions],
    ) -> Chord:
        pitches = self.voice_leading.transform_chord(chord.pitches, target_name, options)
        try:
            return chord.transformed(pitches, target_name)
        except ValueError:
            # A partial blend can merge voices below three distinct pitches
            logger.warning(
                "Transforming %s to %s left fewer than 3 pitches, using full voicing",
                chord.name, target_name,
            )
            voiced = self.voice_leading.re_voice(
                chord_notes_from_name(target_name), chord.pitches
            )
            return chord.transformed(voiced, target_name)

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def detect_key(self) -> Optional[KeySignature]:
        return self.key_detector.detect_key(self._chords)

    def analysis_report(self) -> str:
        return format_analysis(self._chords, self._filename)

    def save_chord_analysis(self, path: PathLike) -> bool:
        """Write the plain-text analysis report. Returns False on I/O errors."""
        try:
            Path(path).write_text(self.analysis_report(), encoding="utf-8")
        except OSError as e:
            logger.error("Could not write analysis to %s: %s", path, e)
            return False
        return True

    def to_bytes(self) -> bytes:
        """
        Encode the loaded file with transformed chords written in.

        Raises:
            ValueError: No file is loaded
        """
        if self._midi_file is None:
            raise ValueError("No MIDI file loaded")
        rebuilder = EventRebuilder(self._detected_tolerance)
        return encode(rebuilder.rebuild(self._midi_file, self._chords))

    def write_file(self, path: PathLike) -> bool:
        """
        Write the loaded file, with transformations, to disk.

        The whole file is encoded before anything is written.

        Returns:
            False if nothing is loaded or the file cannot be written
        """
        try:
            data = self.to_bytes()
        except ValueError as e:
            logger.error("Could not encode MIDI file: %s", e)
            return False

        try:
            Path(path).write_bytes(data)
        except OSError as e:
            logger.error("Could not write %s: %s", path, e)
            return False

        logger.info("Wrote %d bytes to %s", len(data), path)
        return True

    def export_chord_sheet(self, path: PathLike, tempo: float = DEFAULT_TEMPO) -> bool:
        """
        Write the current chords as block chords to a new MIDI file.

        Returns:
            False if nothing is loaded or the file cannot be written
        """
        if self._midi_file is None:
            logger.error("No MIDI file loaded")
            return False

        exporter = ChordSheetExporter(tempo=tempo)
        try:
            exporter.export(self._chords, str(path), division=self._midi_file.division)
        except OSError as e:
            logger.error("Could not write chord sheet to %s: %s", path, e)
            return False
        return True

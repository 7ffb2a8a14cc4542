"""Transformation history - Bounded undo/redo of chord edits.

Each recorded action holds the chords it replaced and the chords that replaced
them. Undo and redo re-apply those snapshots through a callback, so the history
never touches the chord collection directly.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Sequence, Tuple

from ..core.constants import DEFAULT_HISTORY_SIZE
from ..inference.chords import Chord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformationAction:
    """One undoable edit of one or more chords."""
    indices: Tuple[int, ...]
    before: Tuple[Chord, ...]
    after: Tuple[Chord, ...]
    description: str
    timestamp: datetime = field(default_factory=datetime.now, compare=False)


class ActionHistory:
    """Linear undo/redo history with a capacity limit.

    ``position`` counts the actions currently applied. Recording a new action
    while some have been undone discards them.
    """

    def __init__(
        self,
        apply_chord: Callable[[int, Chord], object],
        max_size: int = DEFAULT_HISTORY_SIZE,
    ):
        """
        Initialize ActionHistory.

        Args:
            apply_chord: Callback that stores a chord at an index
            max_size: Maximum number of actions kept
        """
        self.apply_chord = apply_chord
        self.max_size = max_size
        self._actions: List[TransformationAction] = []
        self._position = 0

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def position(self) -> int:
        return self._position

    @property
    def actions(self) -> Tuple[TransformationAction, ...]:
        return tuple(self._actions)

    def record(
        self,
        indices: Sequence[int],
        before: Sequence[Chord],
        after: Sequence[Chord],
        description: str,
    ) -> TransformationAction:
        """
        Record an action that has already been applied.

        Args:
            indices: Chord indices the action changed
            before: Chords at those indices before the action
            after: Chords at those indices after the action
            description: Human-readable summary

        Returns:
            The recorded action
        """
        action = TransformationAction(
            indices=tuple(indices),
            before=tuple(before),
            after=tuple(after),
            description=description,
        )

        del self._actions[self._position:]
        self._actions.append(action)
        self._position += 1

        if len(self._actions) > self.max_size:
            self._actions.pop(0)
            self._position -= 1

        return action

    @property
    def can_undo(self) -> bool:
        return self._position > 0

    @property
    def can_redo(self) -> bool:
        return self._position < len(self._actions)

    @property
    def undo_description(self) -> str:
        if self.can_undo:
            return self._actions[self._position - 1].description
        return "Nothing to undo"

    @property
    def redo_description(self) -> str:
        if self.can_redo:
            return self._actions[self._position].description
        return "Nothing to redo"

    def undo(self) -> bool:
        """Restore the chords replaced by the most recent applied action."""
        if not self.can_undo:
            return False

        self._position -= 1
        action = self._actions[self._position]
        # Reverse order so repeated indices end at their earliest state
        for index, chord in reversed(list(zip(action.indices, action.before))):
            self.apply_chord(index, chord)

        logger.info("Undid: %s", action.description)
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone action."""
        if not self.can_redo:
            return False

        action = self._actions[self._position]
        self._position += 1
        for index, chord in zip(action.indices, action.after):
            self.apply_chord(index, chord)

        logger.info("Redid: %s", action.description)
        return True

    def clear(self):
        self._actions.clear()
        self._position = 0

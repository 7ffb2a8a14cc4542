"""Processing layer - Editing detected chords.

This layer applies and persists chord edits:
- Undo/redo history of transformations
- Rebuilding track note events from transformed chords
"""

from .history import ActionHistory, TransformationAction
from .rebuild import EventRebuilder

__all__ = [
    "ActionHistory",
    "TransformationAction",
    "EventRebuilder",
]

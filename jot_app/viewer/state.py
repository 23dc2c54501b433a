"""Viewer state machine and text rendering, independent of the terminal."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

HEADER = "Select a note"
FOOTER = "Press q to quit."

UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
SELECT_KEYS = frozenset({"enter", " "})
QUIT_KEYS = frozenset({"q", "ctrl+c"})


class Phase(Enum):
    BROWSING = "browsing"
    SELECTED = "selected"
    EXITED = "exited"


@dataclass(frozen=True)
class ViewerState:
    notes: Tuple[str, ...]
    cursor: int = 0
    selected: Optional[int] = None
    phase: Phase = Phase.BROWSING

    @classmethod
    def initial(cls, notes) -> "ViewerState":
        return cls(notes=tuple(notes))

    @property
    def exited(self) -> bool:
        return self.phase is Phase.EXITED

    def result(self) -> Optional[str]:
        """Body to emit on exit: the selected note, else the one under the cursor."""

        if not self.notes:
            return None
        index = self.selected if self.selected is not None else self.cursor
        if 0 <= index < len(self.notes):
            return self.notes[index]
        return None


def handle_key(state: ViewerState, key: str) -> ViewerState:
    """Return the state after ``key``; unknown keys and keys after exit are ignored."""

    if state.exited:
        return state

    if key in QUIT_KEYS:
        return replace(state, phase=Phase.EXITED)

    if key in UP_KEYS:
        return replace(state, cursor=max(0, state.cursor - 1))

    if key in DOWN_KEYS:
        return replace(state, cursor=max(0, min(len(state.notes) - 1, state.cursor + 1)))

    if key in SELECT_KEYS:
        if not state.notes:
            return state
        return replace(state, selected=state.cursor, phase=Phase.SELECTED)

    return state


def render(state: ViewerState) -> str:
    lines = [HEADER, ""]
    for index, note in enumerate(state.notes):
        cursor = ">" if index == state.cursor else " "
        checked = "X" if index == state.selected else " "
        lines.append(f"{cursor} [{checked}] {note}")
    lines.append("")
    lines.append(FOOTER)
    return "\n".join(lines) + "\n"


__all__ = ["Phase", "ViewerState", "handle_key", "render", "HEADER", "FOOTER"]

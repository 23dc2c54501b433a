"""Interactive terminal viewer for a group's notes."""

from .app import NoteViewer, run_viewer
from .state import Phase, ViewerState, handle_key, render

__all__ = ["NoteViewer", "run_viewer", "Phase", "ViewerState", "handle_key", "render"]

"""Prompt_toolkit front-end for browsing the notes of one group."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from prompt_toolkit import Application
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.input import Input
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.layout.containers import Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.output import Output
from prompt_toolkit.styles import Style

from ..errors import UIError
from ..groups import resolve_group
from ..store import Store
from .state import ViewerState, handle_key, render

logger = logging.getLogger(__name__)


class NoteViewer:
    """Cooperative single-threaded list view driven by key presses."""

    def __init__(
        self,
        notes: Sequence[str],
        *,
        input: Optional[Input] = None,
        output: Optional[Output] = None,
    ) -> None:
        self.state = ViewerState.initial(notes)

        self.list_control = FormattedTextControl(self._render_notes, focusable=True, show_cursor=False)
        self.list_window = Window(content=self.list_control, style="class:list")

        self.kb = self._build_key_bindings()
        self.style = Style.from_dict({"list": "#d1d5db"})
        self.app: Application[Optional[str]] = Application(
            layout=Layout(HSplit([self.list_window]), focused_element=self.list_window),
            key_bindings=self.kb,
            style=self.style,
            full_screen=False,
            mouse_support=False,
            input=input,
            output=output,
        )

    # ------------------------------------------------------------------
    def _build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("q")
        def _(event) -> None:
            self._dispatch(event, "q")

        @kb.add("c-c")
        def _(event) -> None:
            self._dispatch(event, "ctrl+c")

        @kb.add("k")
        @kb.add("up")
        def _(event) -> None:
            self._dispatch(event, "up")

        @kb.add("j")
        @kb.add("down")
        def _(event) -> None:
            self._dispatch(event, "down")

        @kb.add("enter")
        @kb.add(" ")
        def _(event) -> None:
            self._dispatch(event, "enter")

        return kb

    def _dispatch(self, event, key: str) -> None:
        self.state = handle_key(self.state, key)
        if self.state.exited:
            event.app.exit(result=self.state.result())
            return
        event.app.invalidate()

    def _render_notes(self) -> FormattedText:
        return FormattedText([("class:list", render(self.state))])

    def run(self) -> Optional[str]:
        """Run until the user quits and return the note to emit, if any."""

        try:
            return self.app.run()
        except Exception as exc:
            raise UIError(f"could not run the note viewer: {exc}") from exc


def run_viewer(
    store: Store,
    group: str = "",
    *,
    input: Optional[Input] = None,
    output: Optional[Output] = None,
) -> Optional[str]:
    """Load ``group`` from ``store`` and browse it interactively."""

    group = resolve_group(group)
    notes = store.read_group(group)
    logger.debug("viewing %d note(s) in %s", len(notes), group)
    try:
        viewer = NoteViewer(notes, input=input, output=output)
    except Exception as exc:
        raise UIError(f"could not start the note viewer: {exc}") from exc
    return viewer.run()


__all__ = ["NoteViewer", "run_viewer"]

"""Textual application: the terminal session and event loop.

Textual owns raw mode and the alternate screen, and restores both when
``run()`` returns or raises. Replies are written with the terminal handed
to the editor through ``App.suspend()``, which takes it back when the
editor exits, however it exits.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from textual import events
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.widgets import Static

from prthreads.controller import KEYMAP, MOUSE_SCROLL_STEP, Action, NavigationController
from prthreads.editor import EditorFailedError
from prthreads.render import Frame, render_frame
from prthreads.replies import ReplyQueue

if TYPE_CHECKING:
    from collections.abc import Iterator

    from prthreads.replies import Publisher
    from prthreads.skips import SkipStore
    from prthreads.store import ThreadStore

logger = logging.getLogger(__name__)


class ThreadReviewApp(App[None]):
    """Full-screen review of one pull request's threads."""

    TITLE = "prthreads"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        overflow: hidden;
    }
    #frame {
        width: 100%;
        height: 100%;
    }
    """

    BINDINGS = [
        Binding(key, f"dispatch('{action.value}')", action.value, show=False, priority=True)
        for key, action in KEYMAP.items()
    ]

    def __init__(  # noqa: PLR0913
        self,
        store: ThreadStore,
        skips: SkipStore,
        publisher: Publisher,
        *,
        pr_number: int,
        editor_command: list[str] | None = None,
        diff_visible: bool = True,
        wrap_width: int = 80,
        status: str | None = None,
    ) -> None:
        super().__init__()
        replies = ReplyQueue(
            store,
            publisher,
            editor_command=editor_command,
            suspend=self._suspend_for_editor,
        )
        self.controller = NavigationController(
            store,
            replies,
            skips,
            pr_number=pr_number,
            diff_visible=diff_visible,
            wrap_width=wrap_width,
            status=status,
        )
        self.last_frame: Frame | None = None

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    def on_mount(self) -> None:
        self._redraw()

    def on_resize(self, event: events.Resize) -> None:  # noqa: ARG002
        self._redraw()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:  # noqa: ARG002
        self._apply(Action.SCROLL_DOWN, MOUSE_SCROLL_STEP)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:  # noqa: ARG002
        self._apply(Action.SCROLL_UP, MOUSE_SCROLL_STEP)

    def action_dispatch(self, name: str) -> None:
        self._apply(Action(name))

    def _apply(self, action: Action, step: int = 1) -> None:
        changed = self.controller.dispatch(action, step)
        if self.controller.done:
            self.exit()
            return
        if changed:
            self._redraw()

    def _redraw(self) -> None:
        width, height = self.size
        frame = render_frame(self.controller.snapshot(), width, height)
        self.controller.update_viewport(frame.max_scroll, frame.body_rows)
        self.last_frame = frame
        self.query_one("#frame", Static).update(frame.text)

    @contextmanager
    def _suspend_for_editor(self) -> Iterator[None]:
        """Hand the terminal to the editor; Textual restores it on exit."""
        try:
            with self.suspend():
                yield
        except SuspendNotSupported as exc:
            raise EditorFailedError(str(exc)) from exc

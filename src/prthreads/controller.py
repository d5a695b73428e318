"""Navigation controller: maps input to store, skip-list and reply-queue operations.

States:

- ``BROWSING``: normal navigation.
- ``EDITING``: the external editor owns the terminal (a reply is being written).
- ``CONFIRMING_QUIT``: quit was requested with unpublished replies; ``q``
  again quits, any other action cancels.
- ``QUIT``: terminal; the event loop exits.

Every operation reports whether the screen needs redrawing. In-loop failures
never raise out of ``dispatch``; they become the status line.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from prthreads.editor import EditorFailedError, EmptyReplyError
from prthreads.models import PublishReport, ViewMode
from prthreads.render import FrameState

if TYPE_CHECKING:
    from prthreads.replies import ReplyQueue
    from prthreads.skips import SkipStore
    from prthreads.store import ThreadStore

logger = logging.getLogger(__name__)

MOUSE_SCROLL_STEP = 3


class Action(StrEnum):
    NEXT_THREAD = "next_thread"
    PREV_THREAD = "prev_thread"
    SCROLL_DOWN = "scroll_down"
    SCROLL_UP = "scroll_up"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"
    SCROLL_TOP = "scroll_top"
    SCROLL_BOTTOM = "scroll_bottom"
    NEXT_VIEW = "next_view"
    VIEW_UNRESOLVED = "view_unresolved"
    VIEW_UNSKIPPED = "view_unskipped"
    VIEW_SKIPPED = "view_skipped"
    TOGGLE_DIFF = "toggle_diff"
    TOGGLE_SKIP = "toggle_skip"
    REPLY = "reply"
    DISCARD_REPLY = "discard_reply"
    PUBLISH = "publish"
    QUIT = "quit"
    FORCE_QUIT = "force_quit"


class ControllerState(StrEnum):
    BROWSING = "browsing"
    EDITING = "editing"
    CONFIRMING_QUIT = "confirming_quit"
    QUIT = "quit"


# Textual key names.
KEYMAP: dict[str, Action] = {
    "j": Action.NEXT_THREAD,
    "right": Action.NEXT_THREAD,
    "k": Action.PREV_THREAD,
    "left": Action.PREV_THREAD,
    "down": Action.SCROLL_DOWN,
    "up": Action.SCROLL_UP,
    "pagedown": Action.PAGE_DOWN,
    "pageup": Action.PAGE_UP,
    "home": Action.SCROLL_TOP,
    "end": Action.SCROLL_BOTTOM,
    "tab": Action.NEXT_VIEW,
    "1": Action.VIEW_UNRESOLVED,
    "2": Action.VIEW_UNSKIPPED,
    "3": Action.VIEW_SKIPPED,
    "d": Action.TOGGLE_DIFF,
    "s": Action.TOGGLE_SKIP,
    "r": Action.REPLY,
    "x": Action.DISCARD_REPLY,
    "p": Action.PUBLISH,
    "q": Action.QUIT,
    "ctrl+c": Action.FORCE_QUIT,
}

_SCROLL_ACTIONS = frozenset({
    Action.SCROLL_DOWN,
    Action.SCROLL_UP,
    Action.PAGE_DOWN,
    Action.PAGE_UP,
    Action.SCROLL_TOP,
    Action.SCROLL_BOTTOM,
})

_VIEW_ACTIONS = {
    Action.VIEW_UNRESOLVED: ViewMode.UNRESOLVED,
    Action.VIEW_UNSKIPPED: ViewMode.UNSKIPPED,
    Action.VIEW_SKIPPED: ViewMode.SKIPPED,
}


def _plural(count: int, word: str = "reply") -> str:
    if count == 1:
        return f"1 {word}"
    return f"{count} {word[:-1]}ies" if word.endswith("y") else f"{count} {word}s"


class NavigationController:
    """State machine driving one review session."""

    def __init__(  # noqa: PLR0913
        self,
        store: ThreadStore,
        replies: ReplyQueue,
        skips: SkipStore,
        *,
        pr_number: int,
        diff_visible: bool = True,
        wrap_width: int = 80,
        status: str | None = None,
    ) -> None:
        self.store = store
        self.replies = replies
        self.skips = skips
        self.pr_number = pr_number
        self.diff_visible = diff_visible
        self.wrap_width = wrap_width
        self.status = status
        self.state = ControllerState.BROWSING
        self.scroll_offset = 0
        self.max_scroll = 0
        self.page_size = 10
        self.last_report: PublishReport | None = None

    @property
    def done(self) -> bool:
        return self.state is ControllerState.QUIT

    def update_viewport(self, max_scroll: int, page_size: int) -> None:
        """Record the scrollable extent of the last rendered frame."""
        self.max_scroll = max(0, max_scroll)
        self.page_size = max(1, page_size)
        self.scroll_offset = min(self.scroll_offset, self.max_scroll)

    def snapshot(self) -> FrameState:
        """Capture what the renderer needs."""
        position, total = self.store.position()
        return FrameState(
            pr_number=self.pr_number,
            mode=self.store.mode,
            counts=self.store.counts(),
            thread=self.store.focused,
            position=position,
            total=total,
            diff_visible=self.diff_visible,
            scroll=self.scroll_offset,
            status=self.status,
            pending_count=len(self.replies),
            wrap_width=self.wrap_width,
            confirming_quit=self.state is ControllerState.CONFIRMING_QUIT,
        )

    # -- input -----------------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Dispatch a key by its Textual name. Unmapped keys are ignored."""
        action = KEYMAP.get(key)
        if action is None:
            return False
        return self.dispatch(action)

    def dispatch(self, action: Action, step: int = 1) -> bool:
        """Apply *action*; returns True when the screen should be redrawn."""
        if self.state is ControllerState.QUIT:
            return False
        if action is Action.FORCE_QUIT:
            self.state = ControllerState.QUIT
            return True
        if self.state is ControllerState.CONFIRMING_QUIT:
            if action is Action.QUIT:
                self.state = ControllerState.QUIT
            else:
                self.state = ControllerState.BROWSING
                self.status = "Quit cancelled."
            return True
        if self.state is not ControllerState.BROWSING:
            return False

        if action in _SCROLL_ACTIONS:
            return self._scroll(action, step)
        had_status = self.status is not None
        self.status = None
        if action in _VIEW_ACTIONS:
            return self._switch_view(_VIEW_ACTIONS[action])

        if action is Action.NEXT_THREAD:
            return self._moved(self.store.focus_next()) or had_status
        if action is Action.PREV_THREAD:
            return self._moved(self.store.focus_previous()) or had_status
        if action is Action.NEXT_VIEW:
            return self._switch_view(self.store.mode.next())
        if action is Action.TOGGLE_DIFF:
            self.diff_visible = not self.diff_visible
            self.status = "Diff shown." if self.diff_visible else "Diff hidden."
        elif action is Action.TOGGLE_SKIP:
            self._toggle_skip()
        elif action is Action.REPLY:
            self._reply()
        elif action is Action.DISCARD_REPLY:
            self._discard()
        elif action is Action.PUBLISH:
            self._publish()
        elif action is Action.QUIT:
            self._quit()
        return True

    # -- handlers --------------------------------------------------------------

    def _moved(self, moved: bool) -> bool:
        if moved:
            self.scroll_offset = 0
        return moved

    def _scroll(self, action: Action, step: int) -> bool:
        deltas = {
            Action.SCROLL_DOWN: step,
            Action.SCROLL_UP: -step,
            Action.PAGE_DOWN: self.page_size,
            Action.PAGE_UP: -self.page_size,
            Action.SCROLL_TOP: -self.max_scroll,
            Action.SCROLL_BOTTOM: self.max_scroll,
        }
        target = min(max(0, self.scroll_offset + deltas[action]), self.max_scroll)
        if target == self.scroll_offset:
            return False
        self.scroll_offset = target
        return True

    def _switch_view(self, mode: ViewMode) -> bool:
        self.store.set_view_mode(mode)
        self.scroll_offset = 0
        self.status = f"Showing {mode.value} threads."
        return True

    def _toggle_skip(self) -> None:
        thread = self.store.focused
        if thread is None:
            self.status = "No thread selected."
            return
        # Persist first so a failed write leaves the session untouched.
        try:
            if thread.skipped:
                self.skips.remove(thread.id)
            else:
                self.skips.add(thread.id)
        except OSError as exc:
            logger.warning("Could not persist skip list: %s", exc)
            self.status = f"Failed to save skip list: {exc}"
            return
        skipped = self.store.toggle_skip(thread.id)
        focused = self.store.focused
        if focused is None or focused.id != thread.id:
            self.scroll_offset = 0
        self.status = "Thread skipped." if skipped else "Thread unskipped."

    def _reply(self) -> None:
        thread = self.store.focused
        if thread is None:
            self.status = "No thread selected."
            return
        self.state = ControllerState.EDITING
        try:
            text = self.replies.open_editor_for(thread.id)
        except EmptyReplyError:
            self.status = "Reply cancelled."
            return
        except EditorFailedError as exc:
            logger.warning("Editor failed for %s: %s", thread.id, exc)
            self.status = f"Editor failed: {exc}"
            return
        finally:
            self.state = ControllerState.BROWSING
        self.replies.queue(thread.id, text)
        self.status = f"Reply queued ({len(self.replies)} pending)."

    def _discard(self) -> None:
        thread = self.store.focused
        if thread is None or not self.replies.discard(thread.id):
            self.status = "No queued reply on this thread."
            return
        self.status = "Queued reply discarded."

    def _publish(self) -> None:
        if not len(self.replies):
            self.status = "No replies queued."
            return
        self.last_report = self.replies.publish_all()
        self.status = self.last_report.summary()

    def _quit(self) -> None:
        pending = len(self.replies)
        if not pending:
            self.state = ControllerState.QUIT
            return
        self.state = ControllerState.CONFIRMING_QUIT
        self.status = f"{_plural(pending)} not published and will be lost. Press q again to quit, any other key to stay."

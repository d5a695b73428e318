"""In-memory thread store: ordering, view filtering, focus and per-thread state.

The store owns every ``Thread`` for the session. GitHub's own ordering is not
trusted; threads are ordered once at load time:

- the earliest unresolved, unskipped thread (by originating comment) is the
  focus anchor and always sorts first,
- every other thread follows by originating-comment time, ties broken by ID.

Views are filtered subsequences of that order. Focus is tracked by thread ID
so it can never dangle after a view is recomputed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prthreads.models import Comment, Thread, ViewMode

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


class FetchEmptyError(Exception):
    """Raised when there are no review threads to load."""

    def __init__(self, message: str = "No review threads found for this pull request") -> None:
        super().__init__(message)


def _in_view(thread: Thread, mode: ViewMode) -> bool:
    if mode is ViewMode.UNRESOLVED:
        return not thread.resolved and not thread.skipped
    if mode is ViewMode.SKIPPED:
        return thread.skipped
    return not thread.skipped


class ThreadStore:
    """Ordered collection of threads plus the active view and focus."""

    def __init__(self, threads: Sequence[Thread], mode: ViewMode = ViewMode.UNRESOLVED) -> None:
        self._threads: dict[str, Thread] = {}
        for thread in threads:
            if thread.id in self._threads:
                logger.warning("Duplicate thread id %s ignored", thread.id)
                continue
            self._threads[thread.id] = thread

        chronological = sorted(self._threads.values(), key=lambda t: (t.created_at, t.id))
        anchor = next((t for t in chronological if _in_view(t, ViewMode.UNRESOLVED)), None)
        self._order: list[str] = [t.id for t in chronological]
        if anchor is not None:
            self._order.remove(anchor.id)
            self._order.insert(0, anchor.id)

        self._mode = mode
        self._focus: str | None = None
        self._focus_first()

    @classmethod
    def load(
        cls,
        threads: Sequence[Thread],
        skip_set: Iterable[str],
        mode: ViewMode = ViewMode.UNRESOLVED,
    ) -> ThreadStore:
        """Build a store from fetched threads, marking persisted skips.

        Raises:
            FetchEmptyError: If *threads* is empty.
        """
        if not threads:
            raise FetchEmptyError
        skipped = set(skip_set)
        for thread in threads:
            if thread.id in skipped:
                thread.skipped = True
        unknown = skipped - {t.id for t in threads}
        if unknown:
            logger.debug("%d persisted skip(s) do not belong to this pull request", len(unknown))
        return cls(threads, mode)

    # -- queries ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._threads)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._threads

    def get(self, thread_id: str) -> Thread:
        """Return the thread with *thread_id* (``KeyError`` if unknown)."""
        return self._threads[thread_id]

    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def focused(self) -> Thread | None:
        """The focused thread, or ``None`` when the active view is empty."""
        return self._threads[self._focus] if self._focus is not None else None

    def ordered_view(self, mode: ViewMode | None = None) -> list[Thread]:
        """Threads eligible for navigation in *mode* (default: the active view)."""
        mode = self._mode if mode is None else mode
        return [self._threads[tid] for tid in self._order if _in_view(self._threads[tid], mode)]

    def counts(self) -> dict[ViewMode, int]:
        """Number of threads in each view."""
        return {mode: len(self.ordered_view(mode)) for mode in ViewMode}

    def position(self) -> tuple[int | None, int]:
        """Return (zero-based index of the focused thread, view length)."""
        view = self.ordered_view()
        if self._focus is None:
            return None, len(view)
        ids = [t.id for t in view]
        return ids.index(self._focus), len(ids)

    @property
    def skip_set(self) -> frozenset[str]:
        """IDs of every skipped thread, the durable projection of the skip flags."""
        return frozenset(tid for tid, t in self._threads.items() if t.skipped)

    def pending(self) -> list[Thread]:
        """Threads with a queued reply, in store order."""
        return [self._threads[tid] for tid in self._order if self._threads[tid].pending_reply]

    # -- focus -----------------------------------------------------------------

    def _focus_first(self) -> None:
        view = self.ordered_view()
        self._focus = view[0].id if view else None

    def focus_next(self) -> bool:
        """Move focus forward; no-op at the end of the view. Returns True if focus moved."""
        return self._step(1)

    def focus_previous(self) -> bool:
        """Move focus backward; no-op at the start of the view. Returns True if focus moved."""
        return self._step(-1)

    def _step(self, delta: int) -> bool:
        index, length = self.position()
        if index is None:
            return False
        target = index + delta
        if not 0 <= target < length:
            return False
        self._focus = self.ordered_view()[target].id
        return True

    def set_view_mode(self, mode: ViewMode) -> None:
        """Switch the active view and focus its first thread."""
        self._mode = mode
        self._focus_first()

    # -- mutation --------------------------------------------------------------

    def toggle_skip(self, thread_id: str) -> bool:
        """Flip the skip flag of *thread_id* and repair focus. Returns the new flag."""
        thread = self._threads[thread_id]
        previous_index, _ = self.position()
        thread.skipped = not thread.skipped
        logger.debug("Thread %s skipped=%s", thread_id, thread.skipped)

        view = self.ordered_view()
        if self._focus is not None and any(t.id == self._focus for t in view):
            return thread.skipped
        if not view:
            self._focus = None
        elif previous_index is None:
            self._focus = view[0].id
        else:
            # The focused thread left the view; whatever slid into its slot is next.
            self._focus = view[min(previous_index, len(view) - 1)].id
        return thread.skipped

    def set_pending_reply(self, thread_id: str, text: str) -> None:
        self._threads[thread_id].pending_reply = text

    def clear_pending_reply(self, thread_id: str) -> None:
        self._threads[thread_id].pending_reply = None

    def append_comment(self, thread_id: str, comment: Comment) -> None:
        self._threads[thread_id].comments.append(comment)

"""Reply queue: compose replies in an editor, hold them, publish them in one pass."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING

from prthreads.editor import build_template, launch_editor, resolve_editor_command
from prthreads.models import Comment, PublishFailure, PublishReport

if TYPE_CHECKING:
    from prthreads.store import ThreadStore

logger = logging.getLogger(__name__)

Publisher = Callable[[str, str], Comment]
EditorRunner = Callable[[str, list[str]], str]
Suspender = Callable[[], AbstractContextManager[object]]


class ReplyQueue:
    """Pending replies, stored on the threads themselves.

    Args:
        store: The session's thread store.
        publisher: Posts ``(thread_id, body)`` and returns the created comment.
        editor_command: Editor argv; resolved from config/environment when omitted.
        suspend: Context manager factory that hands the terminal to a child
            process and takes it back on every exit path.
        run_editor: Editor invoker, ``launch_editor`` by default.
    """

    def __init__(
        self,
        store: ThreadStore,
        publisher: Publisher,
        *,
        editor_command: list[str] | None = None,
        suspend: Suspender = nullcontext,
        run_editor: EditorRunner = launch_editor,
    ) -> None:
        self.store = store
        self.publisher = publisher
        self.editor_command = editor_command or resolve_editor_command()
        self.suspend = suspend
        self.run_editor = run_editor

    def __len__(self) -> int:
        return len(self.store.pending())

    def open_editor_for(self, thread_id: str) -> str:
        """Let the operator write a reply to *thread_id* in the external editor.

        Raises:
            EditorFailedError: The editor could not run or exited non-zero.
            EmptyReplyError: The operator saved an empty reply.
        """
        seed = build_template(self.store.get(thread_id))
        with self.suspend():
            return self.run_editor(seed, self.editor_command)

    def queue(self, thread_id: str, text: str) -> None:
        self.store.set_pending_reply(thread_id, text)
        logger.debug("Queued reply for %s (%d pending)", thread_id, len(self))

    def discard(self, thread_id: str) -> bool:
        """Drop a queued reply. Returns False if there was none."""
        if not self.store.get(thread_id).pending_reply:
            return False
        self.store.clear_pending_reply(thread_id)
        return True

    def publish_all(self) -> PublishReport:
        """Post every queued reply.

        A failure is recorded and the remaining replies are still attempted.
        Posted replies are appended to their thread and dequeued; failed ones
        stay queued for a retry.
        """
        report = PublishReport()
        for thread in self.store.pending():
            text = thread.pending_reply or ""
            try:
                comment = self.publisher(thread.id, text)
            except Exception as exc:
                logger.warning("Publishing reply to %s failed: %s", thread.id, exc)
                report.failed.append(PublishFailure(thread_id=thread.id, reason=str(exc)))
                continue
            self.store.append_comment(thread.id, comment)
            self.store.clear_pending_reply(thread.id)
            report.succeeded.append(thread.id)
        logger.info("Published %d/%d replies", len(report.succeeded), report.attempted)
        return report

"""External editor invocation for composing replies.

The editor is seeded with a template: blank lines for the reply followed by
the thread as ``#``-prefixed context. Comment lines are dropped from what the
operator saves, and an empty result means "no reply".
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess  # noqa: S404
import tempfile
import textwrap
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from prthreads.render import humanize_relative

if TYPE_CHECKING:
    from prthreads.models import Thread

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"
_CONTEXT_WIDTH = 78


class EditorFailedError(Exception):
    """Raised when the editor cannot be spawned or exits non-zero."""


class EmptyReplyError(Exception):
    """Raised when the operator saved no reply text."""

    def __init__(self) -> None:
        super().__init__("Reply cancelled (empty message)")


def resolve_editor_command(configured: str | None = None) -> list[str]:
    """Pick the editor: config, then ``$VISUAL``, then ``$EDITOR``, then ``vi``."""
    command = configured or os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR
    return shlex.split(command) or [DEFAULT_EDITOR]


def build_template(thread: Thread, now: datetime | None = None) -> str:
    """Seed text for a reply to *thread*.

    A reply already queued for the thread is placed above the context so it
    can be revised.
    """
    now = now or datetime.now(UTC)
    status = "resolved" if thread.resolved else "open"
    location = thread.file_path or "the pull request"
    lines = [thread.pending_reply or "", ""]
    lines.append(f"# Reply to the thread on {location} ({status}).")
    lines.append("# Lines starting with '#' are ignored. Save an empty message to cancel.")
    lines.append("#")
    lines.append("# --- Thread comments ---")
    for comment in thread.comments:
        lines.append(f"# {comment.author} ({humanize_relative(now, comment.created_at)})")
        for line in comment.body.splitlines() or [""]:
            if not line.strip():
                lines.append("#")
                continue
            lines.extend(f"# {chunk}" for chunk in textwrap.wrap(line, _CONTEXT_WIDTH, break_long_words=False))
        lines.append("#")
    return "\n".join(lines) + "\n"


def sanitize(raw: str) -> str | None:
    """Drop ``#`` lines and surrounding whitespace; ``None`` when nothing is left."""
    kept = [line for line in raw.splitlines() if not line.lstrip().startswith("#")]
    text = "\n".join(kept).strip()
    return text or None


def launch_editor(seed: str, command: list[str]) -> str:
    """Open *command* on a temp file holding *seed* and return the authored reply.

    Raises:
        EditorFailedError: If the editor cannot be started, exits non-zero or
            leaves a file that is not UTF-8 text.
        EmptyReplyError: If nothing but comments and whitespace was saved.
    """
    fd, name = tempfile.mkstemp(prefix="prthreads-reply-", suffix=".md")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(seed)
        logger.debug("Running editor: %s %s", " ".join(command), path)
        try:
            result = subprocess.run([*command, str(path)], check=False)  # noqa: S603
        except OSError as exc:
            msg = f"Could not start editor {command[0]!r}: {exc}"
            raise EditorFailedError(msg) from exc
        if result.returncode != 0:
            msg = f"Editor {command[0]!r} exited with status {result.returncode}"
            raise EditorFailedError(msg)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Could not read the reply back from {path}: {exc}"
            raise EditorFailedError(msg) from exc
        body = sanitize(raw)
    finally:
        path.unlink(missing_ok=True)

    if body is None:
        raise EmptyReplyError
    return body

"""Frame rendering.

``render_frame`` is a pure projection from a ``FrameState`` snapshot and the
terminal size to a list of styled lines. The header (tabs, position, file)
stays at the top, the footer (queue, status, keys) at the bottom, and the
scroll offset selects the visible window of the body (diff hunk and
comments) in between. Every line has its tabs expanded and is truncated to
the terminal width.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.text import Text

from prthreads.models import ViewMode

if TYPE_CHECKING:
    from collections.abc import Mapping

    from prthreads.models import Comment, Thread

_MIN_WRAP = 10

_DIFF_STYLES = {"+": "green", "-": "red", "@": "dim cyan"}


@dataclass(frozen=True)
class FrameState:
    """Everything the renderer needs, captured by the controller."""

    pr_number: int
    mode: ViewMode
    counts: Mapping[ViewMode, int] = field(default_factory=dict)
    thread: Thread | None = None
    position: int | None = None
    total: int = 0
    diff_visible: bool = True
    scroll: int = 0
    status: str | None = None
    pending_count: int = 0
    wrap_width: int = 80
    confirming_quit: bool = False


@dataclass(frozen=True)
class Frame:
    lines: list[Text]
    max_scroll: int = 0
    scroll: int = 0
    body_rows: int = 0

    @property
    def text(self) -> Text:
        return Text("\n").join(self.lines)

    @property
    def plain(self) -> str:
        return "\n".join(line.plain for line in self.lines)


def humanize_relative(now: datetime, then: datetime) -> str:
    """Format the distance between *then* and *now*, e.g. ``3 hours ago``."""
    seconds = int((now - then).total_seconds())
    if seconds < 45:  # noqa: PLR2004
        return "just now"
    for unit, size in (("year", 365 * 86400), ("month", 30 * 86400), ("day", 86400), ("hour", 3600), ("minute", 60)):
        count = seconds // size
        if count >= 1:
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "1 minute ago"


def render_frame(state: FrameState, width: int, height: int, now: datetime | None = None) -> Frame:
    """Lay out one screen for *state* in a *width* x *height* terminal."""
    if width <= 0 or height <= 0:
        return Frame(lines=[])

    now = now or datetime.now(UTC)
    header = _header(state)
    footer = _footer(state)
    body = _body(state, max(_MIN_WRAP, min(state.wrap_width, width - 2)), now)

    room = max(0, height - len(header) - len(footer))
    max_scroll = max(0, len(body) - room)
    scroll = min(max(0, state.scroll), max_scroll)
    lines = [*header, *body[scroll : scroll + room], *footer][:height]
    for line in lines:
        line.expand_tabs()
        line.truncate(width, overflow="ellipsis")
    return Frame(lines=lines, max_scroll=max_scroll, scroll=scroll, body_rows=room)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _header(state: FrameState) -> list[Text]:
    tabs = Text()
    for mode in ViewMode:
        label = f" {mode.value} ({state.counts.get(mode, 0)}) "
        tabs.append(label, style="reverse bold" if mode is state.mode else "dim")
        tabs.append(" ")
    if state.position is None:
        tabs.append(" no threads", style="dim")
    else:
        tabs.append(f" thread {state.position + 1} of {state.total}", style="bold")
    tabs.append(f"   PR #{state.pr_number}", style="dim")

    thread = state.thread
    if thread is None:
        return [tabs, Text()]

    info = Text(thread.file_path or "(pull request)", style="bold cyan")
    info.append("  ")
    if thread.resolved:
        info.append("resolved", style="green")
    else:
        info.append("unresolved", style="yellow")
    if thread.skipped:
        info.append("  skipped", style="magenta")
    if thread.pending_reply:
        info.append("  reply queued", style="magenta")
    return [tabs, info, Text()]


def _footer(state: FrameState) -> list[Text]:
    lines: list[Text] = []
    if state.pending_count:
        noun = "reply" if state.pending_count == 1 else "replies"
        lines.append(Text(f"{state.pending_count} {noun} queued – press p to publish", style="magenta"))
    if state.status:
        lines.append(Text(state.status, style="bold yellow" if state.confirming_quit else "dim"))
    skip_label = "s unskip" if state.mode is ViewMode.SKIPPED else "s skip"
    lines.append(
        Text(
            f"←/→ thread  ↑/↓ scroll  tab view  d diff  r reply  x discard  p publish  {skip_label}  q quit",
            style="dim",
        )
    )
    return lines


def _body(state: FrameState, wrap: int, now: datetime) -> list[Text]:
    thread = state.thread
    if thread is None:
        return [
            Text(f"No {state.mode.value} threads to display.", style="bold"),
            Text("Press tab to switch views or q to quit.", style="dim"),
        ]

    lines: list[Text] = []
    if state.diff_visible and thread.diff_hunk:
        diff = [Text(line, style=_DIFF_STYLES.get(line[:1], "")) for line in thread.diff_hunk.splitlines()]
        lines.extend(_block(diff))
        lines.append(Text())

    for index, comment in enumerate(thread.comments):
        lines.extend(_comment_block(comment, wrap, now, reply=index > 0))
        lines.append(Text())

    if thread.pending_reply:
        title = Text("you", style="bold magenta")
        title.append("  queued, not yet published", style="magenta")
        lines.extend(_block([title, *_wrap(thread.pending_reply, wrap - 2)], indent="  "))
        lines.append(Text())
    return lines


def _comment_block(comment: Comment, wrap: int, now: datetime, *, reply: bool) -> list[Text]:
    title = Text()
    if reply:
        title.append("↳ ", style="dim")
    title.append(comment.author, style="bold bright_cyan")
    title.append(f"  {humanize_relative(now, comment.created_at)}", style="dim")
    indent = "  " if reply else ""
    return _block([title, *_wrap(comment.body, wrap - len(indent))], indent=indent)


def _wrap(body: str, width: int) -> list[Text]:
    width = max(_MIN_WRAP, width)
    out: list[Text] = []
    for line in body.splitlines():
        if not line.strip():
            out.append(Text())
            continue
        out.extend(Text(chunk) for chunk in textwrap.wrap(line, width, break_long_words=False))
    return out


def _block(lines: list[Text], indent: str = "") -> list[Text]:
    """Prefix *lines* with a box-drawing gutter."""
    if len(lines) == 1:
        return [Text.assemble(indent, ("╶ ", "dim"), lines[0])]
    out = []
    for i, line in enumerate(lines):
        if i == 0:
            mark = "╭"
        elif i == len(lines) - 1:
            mark = "╰"
        else:
            mark = "│"
        out.append(Text.assemble(indent, (f"{mark} ", "dim"), line))
    return out

"""End-to-end tests of the terminal session through Textual's test pilot."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from textual import events

from prthreads.app import ThreadReviewApp
from prthreads.controller import MOUSE_SCROLL_STEP
from prthreads.models import Comment, ViewMode
from prthreads.skips import SkipStore
from prthreads.store import ThreadStore

if TYPE_CHECKING:
    from pathlib import Path


class Publisher:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def __call__(self, thread_id: str, body: str) -> Comment:
        self.calls.append((thread_id, body))
        return Comment(author="me", body=body, created_at=datetime(2026, 3, 1, tzinfo=UTC))


@pytest.fixture
def store(make_thread):
    return ThreadStore([
        make_thread("A", minutes=0),
        make_thread("B", minutes=1, file_path="src/models.py"),
        make_thread("C", minutes=2, resolved=True),
    ])


def _app(store: ThreadStore, tmp_path: Path, publisher: Publisher | None = None, **kwargs) -> ThreadReviewApp:
    return ThreadReviewApp(
        store,
        SkipStore(tmp_path / "skipped.json"),
        publisher or Publisher(),
        pr_number=99,
        **kwargs,
    )


async def test_first_frame(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.pause()
        plain = app.last_frame.plain
        assert "thread 1 of 2" in plain
        assert "PR #99" in plain
        assert "src/app.py" in plain


async def test_navigation_keys(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("j")
        assert store.focused.id == "B"
        assert "thread 2 of 2" in app.last_frame.plain
        await pilot.press("right")
        assert store.focused.id == "B"
        await pilot.press("left")
        assert store.focused.id == "A"


async def test_tab_switches_view(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("tab")
        assert store.mode is ViewMode.UNSKIPPED
        assert "thread 1 of 3" in app.last_frame.plain


async def test_skip_persists(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("s")
        assert store.focused.id == "B"
        assert "Thread skipped." in app.last_frame.plain
    assert SkipStore(tmp_path / "skipped.json").load() == {"A"}


async def test_diff_toggle(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.pause()
        assert "validate(request)" in app.last_frame.plain
        await pilot.press("d")
        assert "validate(request)" not in app.last_frame.plain


async def test_reply_without_terminal_reports_editor_failure(store, tmp_path: Path):
    app = _app(store, tmp_path, editor_command=["true"])
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("r")
        assert app.controller.status.startswith("Editor failed")
        assert store.pending() == []
        assert not app.controller.done


async def test_publish(store, tmp_path: Path):
    publisher = Publisher()
    store.set_pending_reply("B", "Renamed it.")
    app = _app(store, tmp_path, publisher)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.pause()
        assert "1 reply queued – press p to publish" in app.last_frame.plain
        await pilot.press("p")
        assert publisher.calls == [("B", "Renamed it.")]
        assert "Published 1 reply" in app.last_frame.plain


async def test_quit(store, tmp_path: Path):
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("q")
        await pilot.pause()
        assert app.controller.done


async def test_quit_with_pending_needs_confirmation(store, tmp_path: Path):
    store.set_pending_reply("A", "draft")
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.press("q")
        assert not app.controller.done
        assert "Press q again to quit" in app.last_frame.plain
        await pilot.press("j")
        assert "Quit cancelled." in app.last_frame.plain
        await pilot.press("q", "q")
        await pilot.pause()
        assert app.controller.done


async def test_initial_status_shown(store, tmp_path: Path):
    app = _app(store, tmp_path, status="Skip list is unreadable")
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.pause()
        assert "Skip list is unreadable" in app.last_frame.plain


def _wheel(event_cls: type[events.MouseEvent]) -> events.MouseEvent:
    return event_cls(widget=None, x=10, y=10, delta_x=0, delta_y=1, button=0, shift=False, meta=False, ctrl=False)


async def test_mouse_wheel_scrolls_body(make_thread, tmp_path: Path):
    store = ThreadStore([make_thread("A", body="\n".join(f"line {i}" for i in range(100)))])
    app = _app(store, tmp_path)
    async with app.run_test(size=(100, 30)) as pilot:
        await pilot.pause()
        assert "line 0" in app.last_frame.plain
        app.post_message(_wheel(events.MouseScrollDown))
        await pilot.pause()
        assert app.controller.scroll_offset == MOUSE_SCROLL_STEP
        app.post_message(_wheel(events.MouseScrollDown))
        await pilot.pause()
        assert app.controller.scroll_offset == 2 * MOUSE_SCROLL_STEP
        app.post_message(_wheel(events.MouseScrollUp))
        await pilot.pause()
        assert app.controller.scroll_offset == MOUSE_SCROLL_STEP
        assert app.last_frame.scroll == MOUSE_SCROLL_STEP

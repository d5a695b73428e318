"""Global test fixtures for prthreads."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from prthreads.models import Comment, Thread

BASE_TIME = datetime(2026, 2, 6, 10, 0, tzinfo=UTC)

DEFAULT_HUNK = "@@ -10,3 +10,4 @@ def handler():\n     request = parse()\n-    return request\n+    validate(request)\n+    return request"


def build_thread(  # noqa: PLR0913
    thread_id: str,
    *,
    minutes: int = 0,
    resolved: bool = False,
    skipped: bool = False,
    file_path: str = "src/app.py",
    body: str = "Please add validation here.",
    replies: int = 0,
    diff_hunk: str = DEFAULT_HUNK,
) -> Thread:
    """Build a thread whose originating comment is *minutes* after BASE_TIME."""
    created = BASE_TIME + timedelta(minutes=minutes)
    comments = [Comment(author="reviewer", body=body, created_at=created)]
    comments.extend(
        Comment(author="author", body=f"Reply {i + 1}", created_at=created + timedelta(minutes=i + 1)) for i in range(replies)
    )
    return Thread(
        id=thread_id,
        file_path=file_path,
        diff_hunk=diff_hunk,
        comments=comments,
        resolved=resolved,
        skipped=skipped,
    )


@pytest.fixture
def make_thread():
    """Factory for review threads; see ``build_thread``."""
    return build_thread


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path, monkeypatch):
    """Keep every test away from the real XDG state directory and editor settings."""
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)


@pytest.fixture
def base_time() -> datetime:
    """Creation time of the earliest thread built by ``make_thread``."""
    return BASE_TIME

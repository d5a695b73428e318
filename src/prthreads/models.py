"""Pydantic models for prthreads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from enum import StrEnum

from pydantic import BaseModel, Field


class ViewMode(StrEnum):
    """Tab selection that decides which threads are navigable."""

    UNRESOLVED = "unresolved"
    UNSKIPPED = "unskipped"
    SKIPPED = "skipped"

    def next(self) -> ViewMode:
        """Return the tab that follows this one, wrapping at the end."""
        modes = list(ViewMode)
        return modes[(modes.index(self) + 1) % len(modes)]


class Comment(BaseModel):
    """A single comment within a review thread."""

    author: str = Field(description="GitHub login of the comment author")
    body: str = Field(description="Comment body text")
    created_at: datetime = Field(description="When the comment was posted")


class Thread(BaseModel):
    """A review conversation anchored to a file and line."""

    id: str = Field(description="GraphQL node ID (PRRT_...) assigned by GitHub")
    file_path: str = Field(default="", description="File the thread is on; empty for file-level threads")
    diff_hunk: str = Field(default="", description="Diff context shown when the diff is toggled on")
    comments: list[Comment] = Field(min_length=1, description="Chronological comments; index 0 opened the thread")
    resolved: bool = Field(default=False, description="Resolution flag as reported by GitHub")
    skipped: bool = Field(default=False, description="Locally owned skip flag, persisted across runs")
    pending_reply: str | None = Field(default=None, description="Queued reply text not yet published")

    @property
    def created_at(self) -> datetime:
        """Creation time of the originating comment."""
        return self.comments[0].created_at

    @property
    def replies(self) -> list[Comment]:
        return self.comments[1:]


class PublishFailure(BaseModel):
    """A reply that could not be posted."""

    thread_id: str = Field(description="Thread whose reply failed")
    reason: str = Field(description="Error message from the publisher, verbatim")


class PublishReport(BaseModel):
    """Outcome of flushing the reply queue."""

    succeeded: list[str] = Field(default_factory=list, description="Thread IDs whose reply was posted")
    failed: list[PublishFailure] = Field(default_factory=list, description="Replies that stayed queued")

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def summary(self) -> str:
        """One-line human-readable outcome."""
        if not self.attempted:
            return "No replies queued."
        if not self.failed:
            noun = "reply" if len(self.succeeded) == 1 else "replies"
            return f"Published {len(self.succeeded)} {noun} ✓"
        first = self.failed[0]
        return (
            f"Published {len(self.succeeded)} of {self.attempted}; "
            f"{len(self.failed)} failed and stay queued ({first.thread_id}: {first.reason})"
        )

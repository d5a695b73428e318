"""Durable skip list.

The set of skipped thread IDs is stored as a JSON array in
``$XDG_STATE_HOME/prthreads/skipped.json`` (falling back to
``~/.local/state/prthreads/skipped.json``). Writes go to a temp file in the
same directory and are moved into place with ``os.replace``, so an
interrupted write leaves the previous list intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

STATE_DIR_NAME = "prthreads"
SKIP_FILENAME = "skipped.json"


class CorruptStateError(Exception):
    """Raised when the skip file exists but cannot be parsed."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Skip list {path} is unreadable ({detail}); starting with an empty skip list")
        self.path = path


def default_state_dir() -> Path:
    """Resolve the per-user state directory for prthreads."""
    xdg = os.environ.get("XDG_STATE_HOME", "")
    if xdg:
        return Path(xdg) / STATE_DIR_NAME
    return Path.home() / ".local" / "state" / STATE_DIR_NAME


def default_skip_path() -> Path:
    return default_state_dir() / SKIP_FILENAME


class SkipStore:
    """Loads and saves the skip list file.

    The file is shared by every PR, so the store remembers the full set it
    last read or wrote. ``add`` and ``remove`` change one ID against that
    set and leave IDs from other PRs in place.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_skip_path()
        self._persisted: set[str] | None = None

    @property
    def persisted(self) -> frozenset[str]:
        """Every ID currently on disk, as far as this store knows."""
        if self._persisted is None:
            try:
                self.load()
            except CorruptStateError as exc:
                logger.warning("%s", exc)
        return frozenset(self._persisted or ())

    def load(self) -> set[str]:
        """Read the skip list.

        Returns:
            The persisted IDs; an empty set if the file does not exist.

        Raises:
            CorruptStateError: If the file cannot be read as a JSON array of strings.
        """
        self._persisted = set()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No skip list at %s", self.path)
            return set()
        except UnicodeDecodeError as exc:
            raise CorruptStateError(self.path, "not UTF-8 text") from exc
        except OSError as exc:
            raise CorruptStateError(self.path, exc.strerror or str(exc)) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptStateError(self.path, f"invalid JSON: {exc.msg}") from exc
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise CorruptStateError(self.path, "expected a JSON array of thread IDs")

        logger.debug("Loaded %d skipped thread(s) from %s", len(data), self.path)
        self._persisted = set(data)
        return set(data)

    def add(self, thread_id: str) -> None:
        self.save(self.persisted | {thread_id})

    def remove(self, thread_id: str) -> None:
        self.save(self.persisted - {thread_id})

    def save(self, ids: Iterable[str]) -> None:
        """Atomically replace the skip list with *ids*."""
        ids = set(ids)
        payload = json.dumps(sorted(ids), indent=2) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        self._persisted = ids
        logger.debug("Saved skip list to %s", self.path)

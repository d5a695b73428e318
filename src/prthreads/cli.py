"""Command line entry points for prthreads, built on cyclopts."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, NoReturn

import cyclopts
from rich.console import Console

from prthreads import gh, remote
from prthreads.config import Config, load_config
from prthreads.editor import resolve_editor_command
from prthreads.render import FrameState, render_frame
from prthreads.skips import CorruptStateError, SkipStore
from prthreads.store import FetchEmptyError, ThreadStore

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

app = cyclopts.App(
    name="prthreads",
    help="Review GitHub pull request threads from your terminal.",
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DUMP_HEIGHT = 1_000_000


@app.default
def review(
    pr_number: int | None = None,
    /,
    *,
    repo: str | None = None,
    dump: bool = False,
    verbose: bool = False,
) -> None:
    """Review the threads of a pull request (default command).

    Parameters
    ----------
    pr_number
        Pull request number. Detected from the current branch when omitted.
    repo
        Repository as owner/repo. Detected with ``gh repo view`` when omitted.
    dump
        Print the first thread once and exit instead of starting the interactive view.
    verbose
        Write DEBUG-level logs.
    """
    config = _load_config_or_exit()
    _configure_logging(config, verbose=verbose)

    try:
        owner, repo_name = gh.parse_repo(repo) if repo else gh.get_repo_info()
    except gh.GhError as exc:
        _fail(f"Unable to determine repository: {exc}")

    try:
        number = remote.resolve_pr_number(pr_number)
    except (remote.NoPullRequestFoundError, gh.GhError) as exc:
        _fail(str(exc))

    skips = SkipStore(config.state.resolved_skip_file)
    status = None
    try:
        skipped = skips.load()
    except CorruptStateError as exc:
        logger.warning("%s", exc)
        print(f"⚠️  {exc}", file=sys.stderr)
        skipped, status = set(), str(exc)

    try:
        threads = remote.fetch_threads(owner, repo_name, number)
    except gh.GhError as exc:
        _fail(f"Failed to fetch review threads for PR #{number}: {exc}")

    try:
        store = ThreadStore.load(threads, skipped, config.display.initial_view)
    except FetchEmptyError:
        _fail(f"PR #{number} in {owner}/{repo_name} has no review threads.")

    if dump:
        _dump(store, number, config)
        return

    from prthreads.app import ThreadReviewApp  # noqa: PLC0415

    tui = ThreadReviewApp(
        store,
        skips,
        remote.publish_reply,
        pr_number=number,
        editor_command=resolve_editor_command(config.editor.command),
        diff_visible=config.display.show_diff,
        wrap_width=config.display.wrap_width,
        status=status,
    )
    try:
        tui.run()
    except Exception as exc:
        logger.exception("Terminal session failed")
        _fail(f"Terminal error: {exc}")
    if tui.return_code:
        sys.exit(tui.return_code)


@app.command(name="check")
def check() -> None:
    """Print the active configuration, the skip list location and gh CLI status."""
    print("prthreads check")
    print("=" * 40)

    try:
        config, config_path = load_config()
    except ValueError as exc:
        print(f"❌ Configuration error: {exc}")
        sys.exit(1)

    print(f"\n  Config file: {config_path or 'none (using defaults)'}")
    _print_config_summary(config)

    skips = SkipStore(config.state.resolved_skip_file)
    try:
        count = len(skips.load())
    except CorruptStateError as exc:
        print(f"  ⚠️  {exc}")
    else:
        print(f"  Skip list: {skips.path} ({count} skipped)")

    print("-" * 40)
    print("Checking gh CLI...\n")
    try:
        username = gh.check_auth()
        print(f"  ✅ gh CLI authenticated as: {username}")
    except gh.GhError as exc:
        print(f"  ❌ gh CLI error: {exc}")

    print()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> NoReturn:
    """Report a startup failure and exit non-zero."""
    logger.error(message)
    print(message, file=sys.stderr)
    sys.exit(1)


def _load_config_or_exit() -> Config:
    try:
        config, _ = load_config()
    except ValueError as exc:
        _fail(f"Configuration error: {exc}")
    return config


def _configure_logging(config: Config, *, verbose: bool) -> None:
    """Send logs to the log file; the terminal belongs to the UI."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level)
    log_file: Path = config.logging.resolved_file
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(filename=log_file, level=level, format=_LOG_FORMAT, force=True)
    except OSError as exc:
        print(f"⚠️  Cannot write log file {log_file}: {exc}", file=sys.stderr)
        logging.basicConfig(handlers=[logging.NullHandler()], level=level, force=True)


def _dump(store: ThreadStore, pr_number: int, config: Config) -> None:
    """Render the focused thread once, without entering the terminal session."""
    position, total = store.position()
    state = FrameState(
        pr_number=pr_number,
        mode=store.mode,
        counts=store.counts(),
        thread=store.focused,
        position=position,
        total=total,
        diff_visible=config.display.show_diff,
        wrap_width=config.display.wrap_width,
    )
    console = Console()
    frame = render_frame(state, console.width, _DUMP_HEIGHT)
    console.print(frame.text)


def _print_config_summary(config: Config) -> None:
    """Print a human-readable config summary."""
    editor = " ".join(resolve_editor_command(config.editor.command))
    print(f"  Editor: {editor}")
    print(f"  Wrap width: {config.display.wrap_width}")
    print(f"  Diff shown at start: {'yes' if config.display.show_diff else 'no'}")
    print(f"  Initial view: {config.display.initial_view.value}")
    print(f"  Log file: {config.logging.resolved_file} ({config.logging.level})")

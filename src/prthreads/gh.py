"""Thin layer over the GitHub CLI.

prthreads never handles tokens itself: reading review threads, posting
replies and working out which repository and pull request the checkout
belongs to are all delegated to ``gh``, which reuses whatever login
``gh auth login`` stored.
"""

from __future__ import annotations

import json
import logging
import subprocess  # noqa: S404
import time
from typing import Any

logger = logging.getLogger(__name__)

INSTALL_HINT = "Install it from https://cli.github.com/ and run: gh auth login"


def _command_label(args: tuple[str, ...]) -> str:
    """Name a gh invocation by its subcommands, leaving out flags and values."""
    # ("api", "graphql", "-f", "query=...") -> "api graphql"
    words = []
    for arg in args[:2]:
        if arg.startswith("-") or "=" in arg:
            break
        words.append(arg)
    return " ".join(words) or "(no subcommand)"


class GhError(Exception):
    """A gh invocation failed or returned something prthreads cannot use."""

    def __init__(self, message: str, stderr: str = "", returncode: int = 1) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode


class GhNotFoundError(GhError):
    def __init__(self) -> None:
        super().__init__(f"prthreads needs the GitHub CLI (gh) on PATH to read review threads. {INSTALL_HINT}")


class GhNotAuthenticatedError(GhError):
    def __init__(self, stderr: str = "") -> None:
        super().__init__("The GitHub CLI is installed but has no usable login. Run: gh auth login", stderr=stderr)


def run_gh(*args: str, cwd: str | None = None) -> str:
    """Run ``gh *args`` and return its stdout.

    Raises:
        GhNotFoundError: If there is no ``gh`` executable.
        GhError: If gh exits non-zero; the message is gh's own stderr.
    """
    label = _command_label(args)
    start = time.perf_counter()
    try:
        result = subprocess.run(["gh", *args], capture_output=True, text=True, check=False, cwd=cwd)  # noqa: S603
    except FileNotFoundError:
        raise GhNotFoundError from None
    elapsed_ms = round((time.perf_counter() - start) * 1000)
    logger.debug("gh %s exited %d in %dms", label, result.returncode, elapsed_ms)

    if result.returncode != 0:
        logger.debug("gh %s stderr: %s", label, result.stderr)
        message = result.stderr.strip() or f"gh {label} failed with exit status {result.returncode}"
        raise GhError(message, stderr=result.stderr, returncode=result.returncode)
    return result.stdout


def graphql(query: str, variables: dict[str, Any] | None = None, cwd: str | None = None) -> dict[str, Any]:
    """POST *query* through ``gh api graphql`` and decode the response.

    Numbers and booleans are sent as typed fields (``-F``), strings as raw
    fields (``-f``). Variables set to ``None`` are left out so optional
    arguments such as a pagination cursor take their GraphQL default.
    """
    args = ["api", "graphql", "-f", f"query={query}"]
    for name, value in (variables or {}).items():
        if value is None:
            continue
        flag = "-F" if isinstance(value, int | bool) else "-f"
        args.extend([flag, f"{name}={value}"])

    raw = run_gh(*args, cwd=cwd)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Could not decode the GitHub GraphQL response ({exc.msg})"
        raise GhError(msg) from exc


def check_graphql_errors(result: dict[str, Any], context: str) -> None:
    """Raise GhError for the first entry of a GraphQL ``errors`` list."""
    errors = result.get("errors")
    if not errors:
        return
    first = errors[0]
    detail = first.get("message", first) if isinstance(first, dict) else first
    msg = f"GraphQL error in {context}: {detail}"
    raise GhError(msg)


def check_auth(cwd: str | None = None) -> str:
    """Return the login gh is authenticated as.

    Raises:
        GhNotFoundError: If gh is missing.
        GhNotAuthenticatedError: If gh cannot make an authenticated API call.
    """
    try:
        login = run_gh("api", "user", "--jq", ".login", cwd=cwd).strip()
    except GhNotFoundError:
        raise
    except GhError as exc:
        raise GhNotAuthenticatedError(stderr=exc.stderr) from exc
    return login or "authenticated"


def get_current_pr_number(cwd: str | None = None) -> int:
    """Number of the open PR for the checked-out branch, via ``gh pr view``."""
    raw = run_gh("pr", "view", "--json", "number", "--jq", ".number", cwd=cwd).strip()
    if not raw.isdigit():
        msg = f"Unexpected output from gh pr view: {raw!r}"
        raise GhError(msg)
    return int(raw)


def get_repo_info(cwd: str | None = None) -> tuple[str, str]:
    raw = run_gh("repo", "view", "--json", "nameWithOwner", "--jq", ".nameWithOwner", cwd=cwd)
    return parse_repo(raw.strip())


def parse_repo(repo: str) -> tuple[str, str]:
    """Split ``owner/name``; anything else raises GhError."""
    owner, _, name = repo.partition("/")
    if not owner or not name or "/" in name:
        msg = f"Invalid repo format {repo!r}. Expected 'owner/repo'."
        raise GhError(msg)
    return owner, name

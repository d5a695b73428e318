"""GitHub collaborators: PR resolution, review-thread fetch, reply publishing."""

from __future__ import annotations

import logging
from typing import Any

from prthreads import gh
from prthreads.models import Comment, Thread

logger = logging.getLogger(__name__)

_GHOST_LOGIN = "ghost"

# GraphQL query to fetch review threads for a PR (paginated)
_THREADS_QUERY = """
query($owner: String!, $repo: String!, $pr: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          path
          comments(first: 100) {
            nodes {
              author { login }
              body
              createdAt
              diffHunk
              path
            }
          }
        }
      }
    }
  }
}
"""

_REPLY_TO_THREAD_MUTATION = """
mutation($threadId: ID!, $body: String!) {
  addPullRequestReviewThreadReply(input: {
    pullRequestReviewThreadId: $threadId,
    body: $body
  }) {
    comment { author { login } body createdAt }
  }
}
"""


class NoPullRequestFoundError(Exception):
    """Raised when no pull request can be resolved for the current branch."""


def resolve_pr_number(pr_number: int | None = None, cwd: str | None = None) -> int:
    """Return *pr_number*, or detect the PR for the current branch.

    Raises:
        NoPullRequestFoundError: If no PR is associated with the current branch.
        GhNotFoundError: If gh is not installed.
    """
    if pr_number is not None:
        return pr_number
    try:
        return gh.get_current_pr_number(cwd=cwd)
    except gh.GhNotFoundError:
        raise
    except gh.GhError as exc:
        msg = f"No pull request associated with the current branch: {exc}"
        raise NoPullRequestFoundError(msg) from exc


def _parse_comment(raw: dict[str, Any]) -> Comment:
    return Comment(
        author=(raw.get("author") or {}).get("login", _GHOST_LOGIN),
        body=raw.get("body") or "",
        created_at=raw["createdAt"],
    )


def _parse_threads(raw_threads: list[dict[str, Any]]) -> list[Thread]:
    """Parse raw GraphQL thread nodes into Thread models."""
    threads = []
    for node in raw_threads:
        comments_raw = (node.get("comments") or {}).get("nodes") or []
        if not comments_raw:
            logger.debug("Dropping thread %s without comments", node.get("id"))
            continue

        diff_hunk = next((c["diffHunk"] for c in comments_raw if c.get("diffHunk")), "")
        file_path = node.get("path") or comments_raw[0].get("path") or ""
        threads.append(
            Thread(
                id=node["id"],
                file_path=file_path,
                diff_hunk=diff_hunk,
                comments=[_parse_comment(c) for c in comments_raw],
                resolved=bool(node.get("isResolved")),
            )
        )
    return threads


def fetch_threads(owner: str, repo_name: str, pr_number: int, cwd: str | None = None) -> list[Thread]:
    """Paginate through all review threads for a PR via GraphQL.

    Raises:
        GhError: On transport failures, GraphQL errors, or a missing PR.
    """
    raw_threads: list[dict[str, Any]] = []
    cursor = None
    page = 0

    while True:
        page += 1
        logger.info("Fetching review threads for %s/%s#%d (page %d)", owner, repo_name, pr_number, page)
        variables = {"owner": owner, "repo": repo_name, "pr": pr_number, "cursor": cursor}

        result = gh.graphql(_THREADS_QUERY, variables=variables, cwd=cwd)
        gh.check_graphql_errors(result, f"fetch review threads for PR #{pr_number} (page {page})")
        pr_data = ((result.get("data") or {}).get("repository") or {}).get("pullRequest")
        if pr_data is None:
            msg = f"Pull request #{pr_number} not found in {owner}/{repo_name}"
            raise gh.GhError(msg)
        threads_data = pr_data.get("reviewThreads") or {}
        raw_threads.extend(threads_data.get("nodes") or [])

        page_info = threads_data.get("pageInfo") or {}
        if page_info.get("hasNextPage") and page_info.get("endCursor"):
            cursor = page_info["endCursor"]
        else:
            break

    return _parse_threads(raw_threads)


def publish_reply(thread_id: str, body: str, cwd: str | None = None) -> Comment:
    """Reply to an inline review thread via the addPullRequestReviewThreadReply mutation.

    Returns:
        The comment GitHub created.
    """
    result = gh.graphql(
        _REPLY_TO_THREAD_MUTATION,
        variables={"threadId": thread_id, "body": body},
        cwd=cwd,
    )
    gh.check_graphql_errors(result, f"reply to thread {thread_id}")
    payload = ((result.get("data") or {}).get("addPullRequestReviewThreadReply") or {}).get("comment")
    if not payload:
        msg = f"GitHub returned no comment for the reply to {thread_id}"
        raise gh.GhError(msg)
    return _parse_comment(payload)

"""GitHub compare API client: the commits between two revisions."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..config import GITHUB_API
from ..errors import CompareError
from ..remote import DEFAULT_TIMEOUT, json_body, segment, send
from .app import InstallationAccessToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Commit:
    """One commit of a compare range."""

    sha: str
    author_id: int | None  # None when the commit email has no GitHub account
    author_login: str
    html_url: str
    message: str
    authored_at: str  # raw RFC3339 string from commit.author.date


@dataclass(frozen=True)
class CommitRange:
    """Result of comparing two revisions, in GitHub's native order."""

    compare_url: str
    html_compare_url: str
    commits: tuple[Commit, ...]


def _object(value, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{what} is not an object")
    return value


def _string(value, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} is not a string")
    return value


def _parse_commit(node: dict) -> Commit:
    if not isinstance(node, dict):
        raise TypeError("commit entry is not an object")
    git_commit = node["commit"]
    if not isinstance(git_commit, dict):
        raise TypeError("commit is not an object")
    git_author = _object(git_commit.get("author"), "commit.author")
    account = _object(node.get("author"), "author")
    author_id = account.get("id")
    return Commit(
        sha=_string(node["sha"], "sha"),
        author_id=int(author_id) if author_id is not None else None,
        author_login=account.get("login") or git_author.get("name") or "",
        html_url=node.get("html_url") or "",
        message=_string(git_commit["message"], "commit.message"),
        authored_at=_string(git_author.get("date"), "commit.author.date"),
    )


def parse_comparison(resp: httpx.Response) -> CommitRange:
    """Build a CommitRange from a compare API response.

    Raises:
        CompareError: If required fields are missing or have the wrong type.
    """
    data = json_body(resp, CompareError)
    try:
        commits = tuple(_parse_commit(node) for node in data["commits"])
        return CommitRange(
            compare_url=data.get("url", ""),
            html_compare_url=_string(data["html_url"], "html_url"),
            commits=commits,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise CompareError(resp.status_code, f"malformed compare response ({e!r}): {resp.text}") from e


async def fetch_commit_range(
    org: str,
    repo: str,
    base: str,
    head: str,
    token: InstallationAccessToken,
    api_url: str = GITHUB_API,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommitRange:
    """Fetch the commits reachable from ``head`` but not from ``base``.

    Args:
        org: Repository owner.
        repo: Repository name.
        base: Base revision (previous deploy).
        head: Head revision (this deploy).
        token: Installation access token.
        api_url: GitHub API root.
        timeout: Request timeout in seconds.

    Returns:
        The compare range. An empty commit list is valid.

    Raises:
        CompareError: On a non-success status or malformed body.
        TransportError: On network failure.
    """
    resp = await send(
        "GET",
        f"{api_url.rstrip('/')}/repos/{segment(org)}/{segment(repo)}"
        f"/compare/{segment(base)}...{segment(head)}",
        CompareError,
        headers={
            "Authorization": f"Bearer {token.token}",
            "Accept": "application/vnd.github.v3+json",
        },
        timeout=timeout,
    )
    commit_range = parse_comparison(resp)
    logger.info(
        "Fetched %d commits for %s/%s %s...%s",
        len(commit_range.commits),
        org,
        repo,
        base,
        head,
    )
    return commit_range

"""Deploy notification pipeline.

Orchestrates one deploy event end to end:
1. Sign a GitHub App JWT
2. Exchange it for an installation access token
3. Fetch the compare range for the deployed revisions
4. Group the commits per author
5. Render and send one Slack message per mapped author
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from .aggregate import AuthorBucket, CommitLine, aggregate_commits
from .config import Config
from .errors import NotifierError, PipelineError, SigningError
from .github.app import GitHubApp
from .github.compare import fetch_commit_range
from .slack.client import post_message
from .slack.message import render_deploy_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployEvent:
    """A completed deploy, as handed over by the webhook layer."""

    app_name: str
    org: str
    repo: str
    base_revision: str
    head_revision: str
    release_id: str


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful pipeline run."""

    commit_count: int
    author_count: int
    notified: tuple[str, ...] = ()
    skipped: tuple[int | None, ...] = ()


async def _dispatch_all(
    event: DeployEvent,
    config: Config,
    buckets: AuthorBucket,
    compare_url: str,
) -> tuple[list[str], list[int | None]]:
    """Send one message per mapped author, best-effort.

    Every author is attempted even when an earlier delivery fails; failures
    are reported together once all deliveries have finished.
    """
    directory = config.user_directory
    semaphore = asyncio.Semaphore(config.dispatch_concurrency)

    targets: list[tuple[str, list[CommitLine]]] = []
    skipped: list[int | None] = []
    for author_id, lines in buckets.items():
        recipient = directory.get(author_id) if author_id is not None else None
        if recipient is None:
            logger.debug("No Slack user mapped for GitHub user %s, skipping", author_id)
            skipped.append(author_id)
            continue
        targets.append((recipient, lines))

    async def _send(recipient: str, lines: list[CommitLine]) -> None:
        blocks = render_deploy_message(
            app_name=event.app_name,
            commits=lines,
            release=event.release_id,
            compare_url=compare_url,
        )
        async with semaphore:
            await post_message(
                config.slack_oauth_token,
                recipient,
                blocks,
                api_url=config.slack_api,
                timeout=config.http_timeout,
            )
        logger.info("Notified %s of %d commits", recipient, len(lines))

    results = await asyncio.gather(
        *(_send(recipient, lines) for recipient, lines in targets),
        return_exceptions=True,
    )

    notified: list[str] = []
    failures: list[NotifierError] = []
    for (recipient, _), result in zip(targets, results):
        if isinstance(result, NotifierError):
            logger.warning("Failed to notify %s: %s", recipient, result)
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            notified.append(recipient)

    if failures:
        raise PipelineError("dispatch", failures[0], failures=tuple(failures))
    return notified, skipped


async def run_pipeline(
    event: DeployEvent,
    config: Config,
    now: datetime | None = None,
) -> PipelineResult:
    """Notify every mapped author of their commits in a deploy.

    Args:
        event: The deploy to announce.
        config: Credentials, user directory and Slack token.
        now: Reference time for relative commit ages. Defaults to current UTC.

    Returns:
        PipelineResult with counts, notified recipients and skipped authors.

    Raises:
        PipelineError: For the first failing step. Dispatch failures are
            collected across all authors before raising.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    # Step 1: Sign
    try:
        try:
            credential = config.credential
        except OSError as e:
            raise SigningError(f"could not read private key: {e}") from e
        github = GitHubApp(
            credential,
            api_url=config.github_api,
            accept_header=config.github_accept_header,
            timeout=config.http_timeout,
        )
        assertion = github.generate_jwt()
    except NotifierError as e:
        raise PipelineError("sign", e) from e

    # Step 2: Authenticate
    try:
        token = await github.get_installation_token(assertion)
    except NotifierError as e:
        raise PipelineError("authenticate", e) from e

    # Step 3: Fetch
    try:
        commit_range = await fetch_commit_range(
            event.org,
            event.repo,
            event.base_revision,
            event.head_revision,
            token,
            api_url=config.github_api,
            timeout=config.http_timeout,
        )
    except NotifierError as e:
        raise PipelineError("fetch", e) from e

    # Step 4: Aggregate
    try:
        buckets = aggregate_commits(commit_range, now=now)
    except NotifierError as e:
        raise PipelineError("aggregate", e) from e
    logger.info(
        "Deploy %s of %s: %d commits from %d authors",
        event.release_id,
        event.app_name,
        len(commit_range.commits),
        len(buckets),
    )

    # Step 5: Render and dispatch
    notified, skipped = await _dispatch_all(
        event, config, buckets, commit_range.html_compare_url
    )

    return PipelineResult(
        commit_count=len(commit_range.commits),
        author_count=len(buckets),
        notified=tuple(notified),
        skipped=tuple(skipped),
    )

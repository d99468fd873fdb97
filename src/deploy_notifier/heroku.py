"""Heroku Platform API lookups used to find the previously deployed commit."""
from __future__ import annotations

import logging

from .config import HEROKU_API
from .errors import HerokuError
from .remote import DEFAULT_TIMEOUT, json_body, segment, send

logger = logging.getLogger(__name__)


def _headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.heroku+json; version=3",
    }


async def get_release(
    app: str,
    version: int,
    token: str,
    api_url: str = HEROKU_API,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    """Fetch one release of an app by version number."""
    resp = await send(
        "GET",
        f"{api_url.rstrip('/')}/apps/{segment(app)}/releases/{version}",
        HerokuError,
        headers=_headers(token),
        timeout=timeout,
    )
    return json_body(resp, HerokuError)


async def get_slug(
    app: str,
    slug_id: str,
    token: str,
    api_url: str = HEROKU_API,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    """Fetch one slug of an app."""
    resp = await send(
        "GET",
        f"{api_url.rstrip('/')}/apps/{segment(app)}/slugs/{segment(slug_id)}",
        HerokuError,
        headers=_headers(token),
        timeout=timeout,
    )
    return json_body(resp, HerokuError)


async def resolve_base_revision(
    app: str,
    version: int,
    token: str,
    api_url: str = HEROKU_API,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Return the commit deployed by the release before ``version``.

    Raises:
        HerokuError: On API failures, or if the previous release has no slug
            or the slug has no commit.
        TransportError: On network failure.
    """
    previous = version - 1
    if previous < 1:
        raise HerokuError(None, f"release v{version} of {app} has no previous release")

    release = await get_release(app, previous, token, api_url=api_url, timeout=timeout)
    release_slug = release.get("slug")
    slug_id = release_slug.get("id") if isinstance(release_slug, dict) else None
    if not isinstance(slug_id, str) or not slug_id:
        raise HerokuError(None, f"release v{previous} of {app} has no slug")

    slug = await get_slug(app, slug_id, token, api_url=api_url, timeout=timeout)
    commit = slug.get("commit")
    if not isinstance(commit, str) or not commit:
        raise HerokuError(None, f"slug {slug_id} of {app} has no commit")

    logger.debug("Previous release v%d of %s deployed %s", previous, app, commit)
    return commit

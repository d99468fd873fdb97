"""Slack Web API client for delivering notifications."""
from __future__ import annotations

import logging

from ..config import SLACK_API
from ..errors import DispatchError
from ..remote import DEFAULT_TIMEOUT, send

logger = logging.getLogger(__name__)


async def post_message(
    token: str,
    channel: str,
    blocks: list[dict],
    api_url: str = SLACK_API,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Post a Block Kit message via chat.postMessage.

    Only the HTTP status decides success. Slack also reports application
    errors as ``{"ok": false}`` with a 200; those are logged, not raised.

    Args:
        token: Slack bot OAuth token.
        channel: Recipient user or channel id.
        blocks: Block Kit payload.
        api_url: Slack Web API root.
        timeout: Request timeout in seconds.

    Raises:
        DispatchError: On a non-success HTTP status.
        TransportError: On network failure.
    """
    resp = await send(
        "POST",
        f"{api_url.rstrip('/')}/chat.postMessage",
        DispatchError,
        headers={"Authorization": f"Bearer {token}"},
        json={"channel": channel, "blocks": blocks},
        timeout=timeout,
    )
    try:
        data = resp.json()
    except ValueError:
        return
    if isinstance(data, dict) and data.get("ok") is False:
        logger.warning(
            "Slack accepted the request for %s but reported ok=false: %s",
            channel,
            data.get("error", "unknown error"),
        )

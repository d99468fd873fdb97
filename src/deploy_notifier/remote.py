"""Shared async HTTP call used by every remote API client."""
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from .errors import HTTPStatusError, TransportError

USER_AGENT = "heroku-deploy-notifier"
DEFAULT_TIMEOUT = 10.0


def segment(value: object) -> str:
    """Percent-encode one URL path segment, slashes included."""
    return quote(str(value), safe="")


async def send(
    method: str,
    url: str,
    error_cls: type[HTTPStatusError],
    *,
    headers: dict[str, str] | None = None,
    json: Any = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    """Perform one request and map failures into the error taxonomy.

    Args:
        method: HTTP method.
        url: Absolute URL.
        error_cls: Error raised for non-2xx responses.
        headers: Extra request headers.
        json: Optional JSON body.
        timeout: Per-request timeout in seconds.

    Returns:
        The successful response.

    Raises:
        TransportError: On any ``httpx.RequestError``, e.g. a timeout.
        HTTPStatusError: ``error_cls`` with status and body on non-2xx.
    """
    request_headers = {"User-Agent": USER_AGENT}
    request_headers.update(headers or {})
    try:
        async with httpx.AsyncClient(headers=request_headers, timeout=timeout) as client:
            resp = await client.request(method, url, json=json)
    except httpx.RequestError as e:
        raise TransportError(f"{method} {url}: {e!r}") from e

    if not resp.is_success:
        raise error_cls(resp.status_code, resp.text)
    return resp


def json_body(resp: httpx.Response, error_cls: type[HTTPStatusError]) -> dict:
    """Decode a JSON object body, raising ``error_cls`` if it is not one."""
    try:
        data = resp.json()
    except ValueError as e:
        raise error_cls(resp.status_code, resp.text) from e
    if not isinstance(data, dict):
        raise error_cls(resp.status_code, resp.text)
    return data

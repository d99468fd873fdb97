"""Error taxonomy for the deploy notification pipeline.

Every failure the pipeline can surface is one of the classes below. Errors
compare equal when they have the same type and the same arguments, so tests
(and callers) can match on them directly.
"""
from __future__ import annotations

MAX_BODY_CHARS = 500


def _truncate(body: str, limit: int = MAX_BODY_CHARS) -> str:
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


class NotifierError(Exception):
    """Base class for all deploy-notifier errors."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args  # type: ignore[union-attr]

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class SigningError(NotifierError):
    """The GitHub App JWT could not be created (bad key material or app id)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"could not sign app JWT: {self.message}"


class TransportError(NotifierError):
    """A network-level failure: timeout, DNS, refused or reset connection."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"transport error: {self.message}"


class HTTPStatusError(NotifierError):
    """A remote API answered with a non-success status."""

    service = "remote API"

    def __init__(self, status: int | None, body: str) -> None:
        body = _truncate(body)
        super().__init__(status, body)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return f"{self.service} returned {self.status}: {self.body}"


class AuthExchangeError(HTTPStatusError):
    """Exchanging the app JWT for an installation token failed."""

    service = "GitHub installation token exchange"


class CompareError(HTTPStatusError):
    """Fetching the commit comparison failed."""

    service = "GitHub compare"


class DispatchError(HTTPStatusError):
    """Posting the Slack message failed."""

    service = "Slack chat.postMessage"


class HerokuError(HTTPStatusError):
    """Looking up a Heroku release or slug failed."""

    service = "Heroku"


class MalformedShaError(NotifierError):
    """A commit sha is too short to abbreviate."""

    def __init__(self, sha: str) -> None:
        super().__init__(sha)
        self.sha = sha

    def __str__(self) -> str:
        return f"commit sha {self.sha!r} is shorter than 7 characters"


class TimestampParseError(NotifierError):
    """A commit timestamp is not a valid RFC3339 string."""

    def __init__(self, raw: str) -> None:
        super().__init__(raw)
        self.raw = raw

    def __str__(self) -> str:
        return f"could not parse date from commit author information: {self.raw!r}"


class PipelineError(NotifierError):
    """A pipeline run failed.

    ``step`` names the stage that failed (sign, authenticate, fetch,
    aggregate, dispatch) and ``cause`` is the first underlying error. For the
    dispatch stage ``failures`` holds every delivery error of the run.
    """

    def __init__(
        self,
        step: str,
        cause: NotifierError,
        failures: tuple[NotifierError, ...] = (),
    ) -> None:
        super().__init__(step, cause, failures)
        self.step = step
        self.cause = cause
        self.failures = failures

    def __str__(self) -> str:
        if len(self.failures) > 1:
            return f"{self.step} failed for {len(self.failures)} recipients; first: {self.cause}"
        return f"{self.step} failed: {self.cause}"

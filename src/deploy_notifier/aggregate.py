"""Group compare-range commits per author and derive their display lines."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .errors import MalformedShaError, TimestampParseError
from .github.compare import CommitRange

SHORT_SHA_LENGTH = 7

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


@dataclass(frozen=True)
class CommitLine:
    """What a notification shows for one commit."""

    author_login: str
    title: str
    url: str
    sha: str
    short_sha: str
    relative_time: str


AuthorBucket = dict[int | None, list[CommitLine]]


def commit_title(message: str) -> str:
    """Return the first line of a commit message."""
    return message.split("\n", 1)[0]


def short_sha(sha: str) -> str:
    """Abbreviate a sha to 7 characters."""
    if len(sha) < SHORT_SHA_LENGTH:
        raise MalformedShaError(sha)
    return sha[:SHORT_SHA_LENGTH]


def parse_rfc3339(raw: str) -> datetime:
    """Parse a strict RFC3339 timestamp into an aware datetime.

    Raises:
        TimestampParseError: If ``raw`` is not RFC3339 (including a missing
            UTC offset) or names an impossible date or time.
    """
    match = _RFC3339.match(raw)
    if match is None:
        raise TimestampParseError(raw)
    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = match.groups()
    try:
        if zulu:
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(off_h), minutes=int(off_m))
            tz = timezone(-offset if sign == "-" else offset)
        microsecond = int((frac or "0")[:6].ljust(6, "0"))
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), microsecond,
            tzinfo=tz,
        )
    except ValueError as e:
        raise TimestampParseError(raw) from e


MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 2_628_000  # a twelfth of a 365-day year
YEAR = 365 * DAY

# Exclusive lower bound in seconds, then the phrase, or the plural unit and its size.
_BUCKETS = (
    (547 * DAY, "year", YEAR),
    (345 * DAY, "a year", None),
    (45 * DAY, "month", MONTH),
    (29 * DAY, "a month", None),
    (10 * DAY + 12 * HOUR, "week", WEEK),
    (6 * DAY + 12 * HOUR, "a week", None),
    (36 * HOUR, "day", DAY),
    (22 * HOUR, "a day", None),
    (90 * MINUTE, "hour", HOUR),
    (45 * MINUTE, "an hour", None),
    (90, "minute", MINUTE),
    (45, "a minute", None),
)


def _phrase(seconds: int) -> str:
    for bound, label, unit in _BUCKETS:
        if seconds > bound:
            if unit is None:
                return label
            return f"{max(2, seconds // unit)} {label}s"
    return "a few seconds"


def humanize_delta(then: datetime, now: datetime) -> str:
    """Describe ``then`` relative to ``now``, e.g. ``"3 hours ago"``.

    Counts are truncated, never rounded: 2h50m is ``"2 hours"``.
    """
    seconds = int((now - then).total_seconds())
    if abs(seconds) <= 10:
        return "now"
    phrase = _phrase(abs(seconds))
    return f"{phrase} ago" if seconds > 0 else f"in {phrase}"


def aggregate_commits(commit_range: CommitRange, now: datetime | None = None) -> AuthorBucket:
    """Group commits by author id, keeping fetched order within each author.

    Args:
        commit_range: Commits in the host's native order.
        now: Reference time for relative phrases. Defaults to current UTC.

    Returns:
        Mapping of author id to commit lines, keyed in first-seen order.

    Raises:
        MalformedShaError: If a sha is shorter than 7 characters.
        TimestampParseError: If an authored date is not RFC3339.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    buckets: AuthorBucket = {}
    for commit in commit_range.commits:
        line = CommitLine(
            author_login=commit.author_login,
            title=commit_title(commit.message),
            url=commit.html_url,
            sha=commit.sha,
            short_sha=short_sha(commit.sha),
            relative_time=humanize_delta(parse_rfc3339(commit.authored_at), now),
        )
        buckets.setdefault(commit.author_id, []).append(line)
    return buckets

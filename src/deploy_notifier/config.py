"""Configuration and environment management."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

GITHUB_API = "https://api.github.com"
SLACK_API = "https://slack.com/api"
HEROKU_API = "https://api.heroku.com"

# GitHub Apps installation tokens were a preview API when this was written;
# the header is configurable so it can be moved to application/vnd.github+json.
DEFAULT_GITHUB_ACCEPT = "application/vnd.github.machine-man-preview+json"


@dataclass(frozen=True)
class AppCredential:
    """GitHub App identity used to mint installation tokens."""

    app_id: str
    private_key: str
    installation_id: str


def parse_user_ids(value: str) -> dict[int, str]:
    """Parse GitHub-to-Slack user id mappings.

    The format is whitespace separated ``github_id=slack_id`` pairs, e.g.
    ``"1929960=UAXQFKA3C 7340772=UAYMB3CNS"``.

    Raises:
        ValueError: If a pair is missing ``=``, the GitHub id is not an
            integer, or the Slack id is empty.
    """
    users: dict[int, str] = {}
    for mapping in value.split():
        github_part, sep, slack_part = mapping.partition("=")
        if not sep:
            raise ValueError(f"invalid KEY=value: no `=` found in `{value}`")
        try:
            github_id = int(github_part)
        except ValueError:
            raise ValueError(f"could not parse GitHub ID from `{github_part}`") from None
        if not slack_part:
            raise ValueError(f"could not parse Slack ID from `{mapping}`")
        users[github_id] = slack_part
    return users


def parse_bool(value: str) -> bool:
    """Parse a boolean flag from the environment."""
    normalized = value.strip().lower()
    if normalized in ("true", "1"):
        return True
    if normalized in ("false", "0", ""):
        return False
    raise ValueError("expected `true`, `1`, `false` or `0`")


def _private_key_from_env() -> str:
    # Hosting dashboards usually flatten the PEM onto one line.
    return os.getenv("GITHUB_APP_PRIVATE_KEY", "").replace("\\n", "\n")


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment."""

    # Webhook
    secret: str = field(default_factory=lambda: os.getenv("SECRET", ""))

    # GitHub App
    github_app_id: str = field(default_factory=lambda: os.getenv("GITHUB_APP_ID", ""))
    github_app_private_key: str = field(default_factory=_private_key_from_env)
    github_private_key_path: str = field(
        default_factory=lambda: os.getenv("GITHUB_PRIVATE_KEY_PATH", "")
    )
    github_app_install_id: str = field(
        default_factory=lambda: os.getenv("GITHUB_APP_INSTALL_ID", "")
    )
    github_accept_header: str = field(
        default_factory=lambda: os.getenv("GITHUB_ACCEPT_HEADER", DEFAULT_GITHUB_ACCEPT)
    )

    # Heroku
    heroku_token: str = field(default_factory=lambda: os.getenv("HEROKU_TOKEN", ""))

    # Slack
    slack_oauth_token: str = field(
        default_factory=lambda: os.getenv("SLACK_OAUTH_TOKEN", "")
    )
    github_slack_user_ids: dict[int, str] = field(
        default_factory=lambda: parse_user_ids(os.getenv("GITHUB_SLACK_USER_IDS", ""))
    )

    # HTTP server
    debug: bool = field(default_factory=lambda: parse_bool(os.getenv("DEBUG", "")))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Outbound calls
    http_timeout: float = field(
        default_factory=lambda: float(os.getenv("HTTP_TIMEOUT", "10.0"))
    )
    dispatch_concurrency: int = field(
        default_factory=lambda: int(os.getenv("DISPATCH_CONCURRENCY", "4"))
    )
    github_api: str = field(default_factory=lambda: os.getenv("GITHUB_API_URL", GITHUB_API))
    slack_api: str = field(default_factory=lambda: os.getenv("SLACK_API_URL", SLACK_API))
    heroku_api: str = field(default_factory=lambda: os.getenv("HEROKU_API_URL", HEROKU_API))

    def __post_init__(self) -> None:
        # Zero permits would block every Slack delivery.
        if self.dispatch_concurrency < 1:
            raise ValueError(
                f"DISPATCH_CONCURRENCY must be at least 1, got {self.dispatch_concurrency}"
            )
        if self.http_timeout <= 0:
            raise ValueError(f"HTTP_TIMEOUT must be positive, got {self.http_timeout}")

    @property
    def private_key(self) -> str:
        """PEM private key, read from GITHUB_PRIVATE_KEY_PATH when set."""
        if self.github_private_key_path:
            return Path(self.github_private_key_path).read_text()
        return self.github_app_private_key

    @property
    def credential(self) -> AppCredential:
        return AppCredential(
            app_id=self.github_app_id,
            private_key=self.private_key,
            installation_id=self.github_app_install_id,
        )

    @property
    def user_directory(self) -> dict[int, str]:
        return self.github_slack_user_ids

    def validate(self) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []
        if not self.secret:
            issues.append("SECRET is required to authenticate webhook requests")
        if not self.github_app_id:
            issues.append("GITHUB_APP_ID is required for GitHub App authentication")
        if self.github_private_key_path:
            if not Path(self.github_private_key_path).exists():
                issues.append(
                    f"GitHub App private key not found at: {self.github_private_key_path}"
                )
        elif not self.github_app_private_key:
            issues.append(
                "GITHUB_APP_PRIVATE_KEY or GITHUB_PRIVATE_KEY_PATH is required"
            )
        if not self.github_app_install_id:
            issues.append("GITHUB_APP_INSTALL_ID is required")
        if not self.heroku_token:
            issues.append("HEROKU_TOKEN is required to look up previous releases")
        if not self.slack_oauth_token:
            issues.append("SLACK_OAUTH_TOKEN is required to send Slack messages")
        if not self.github_slack_user_ids:
            issues.append("GITHUB_SLACK_USER_IDS is empty; nobody will be notified")
        return issues

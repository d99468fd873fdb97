"""Shared pytest fixtures for deploy-notifier test suite."""

from __future__ import annotations

from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from deploy_notifier.config import Config

GITHUB_API = "https://api.github.test"
SLACK_API = "https://slack.test/api"
HEROKU_API = "https://heroku.test"

_ENV_VARS = [
    "SECRET",
    "GITHUB_APP_ID",
    "GITHUB_APP_PRIVATE_KEY",
    "GITHUB_PRIVATE_KEY_PATH",
    "GITHUB_APP_INSTALL_ID",
    "GITHUB_ACCEPT_HEADER",
    "HEROKU_TOKEN",
    "SLACK_OAUTH_TOKEN",
    "GITHUB_SLACK_USER_IDS",
    "DEBUG",
    "PORT",
    "LOG_LEVEL",
    "HTTP_TIMEOUT",
    "DISPATCH_CONCURRENCY",
    "GITHUB_API_URL",
    "SLACK_API_URL",
    "HEROKU_API_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of Config defaults."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """A freshly generated PEM-encoded RSA private key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()).decode()


@pytest.fixture()
def make_config(private_key_pem: str) -> callable:
    """Factory fixture that returns Config objects with test defaults."""

    def _factory(**overrides: Any) -> Config:
        defaults: dict[str, Any] = {
            "secret": "webhook-secret",
            "github_app_id": "12345",
            "github_app_private_key": private_key_pem,
            "github_app_install_id": "999",
            "heroku_token": "heroku-token",
            "slack_oauth_token": "xoxb-test",
            "github_slack_user_ids": {42: "U123"},
            "github_api": GITHUB_API,
            "slack_api": SLACK_API,
            "heroku_api": HEROKU_API,
        }
        defaults.update(overrides)
        return Config(**defaults)

    return _factory


def commit_node(
    sha: str = "56b515000c090c0ba5f285c6e19f9451788413f1",
    author_id: int | None = 42,
    login: str = "ghost",
    message: str = "Fix <Foo/> & some other thing",
    date: str = "2015-12-19T16:39:57-08:00",
    html_url: str = "https://example.org",
) -> dict[str, Any]:
    """One entry of a GitHub compare response's ``commits`` array."""
    return {
        "sha": sha,
        "html_url": html_url,
        "commit": {
            "message": message,
            "url": f"https://api.github.com/git/commits/{sha}",
            "author": {"name": login.title(), "date": date},
        },
        "author": (
            {"id": author_id, "login": login} if author_id is not None else None
        ),
    }


def compare_body(commits: list[dict[str, Any]]) -> dict[str, Any]:
    """A GitHub compare response."""
    return {
        "url": "https://api.github.com/repos/ghost/repo/compare/7c68a71...master",
        "html_url": "https://github.com/repos/ghost/repo/compare/7c68a71...master",
        "permalink_url": "https://github.com/ghost/repo/compare/ghost:7c68a71...ghost:56b5150",
        "commits": commits,
    }


@pytest.fixture()
def compare_payload() -> callable:
    """Factory for compare responses from commit-node keyword dicts."""

    def _factory(*nodes: dict[str, Any]) -> dict[str, Any]:
        return compare_body([commit_node(**node) for node in nodes])

    return _factory

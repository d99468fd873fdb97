"""GitHub App integration: JWT signing, installation tokens and commit comparison."""
from __future__ import annotations

from .app import GitHubApp, InstallationAccessToken, SignedAssertion, sign_app_jwt
from .compare import Commit, CommitRange, fetch_commit_range

__all__ = [
    "GitHubApp",
    "InstallationAccessToken",
    "SignedAssertion",
    "sign_app_jwt",
    "Commit",
    "CommitRange",
    "fetch_commit_range",
]

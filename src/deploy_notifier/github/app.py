"""GitHub App JWT signing and installation token exchange."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from ..config import DEFAULT_GITHUB_ACCEPT, GITHUB_API, AppCredential
from ..errors import AuthExchangeError, SigningError
from ..remote import DEFAULT_TIMEOUT, json_body, send

logger = logging.getLogger(__name__)

JWT_LIFETIME = 10 * 60


@dataclass(frozen=True)
class SignedAssertion:
    """A short-lived JWT asserting the app's identity."""

    token: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class InstallationAccessToken:
    """Installation-scoped access token returned by GitHub."""

    token: str
    expires_at: str = ""
    permissions: dict[str, Any] = field(default_factory=dict)
    repository_selection: str = ""


def sign_app_jwt(private_key: str, app_id: str, now: int | None = None) -> SignedAssertion:
    """Create a JWT for GitHub App authentication.

    The JWT uses RS256, expires 10 minutes after ``now`` and carries the
    app id as the issuer claim.

    Args:
        private_key: PEM-encoded RSA private key.
        app_id: GitHub App identifier.
        now: Unix time to sign at. Defaults to the current time.

    Returns:
        The signed assertion.

    Raises:
        SigningError: If the app id is empty or the key cannot be used.
    """
    if not app_id:
        raise SigningError("GITHUB_APP_ID is required to generate a JWT")

    try:
        key = load_pem_private_key(private_key.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"invalid private key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise SigningError("private key is not an RSA key")

    issued_at = int(time.time()) if now is None else now
    payload = {
        "iat": issued_at,
        "exp": issued_at + JWT_LIFETIME,
        "iss": app_id,
    }
    try:
        token = jwt.encode(payload, key, algorithm="RS256")
    except jwt.PyJWTError as e:
        raise SigningError(str(e)) from e
    return SignedAssertion(token=token, issued_at=issued_at, expires_at=issued_at + JWT_LIFETIME)


class GitHubApp:
    """GitHub App authentication manager.

    Signs app JWTs and exchanges them for installation access tokens. Tokens
    are not cached: every pipeline run signs a fresh JWT and requests a fresh
    installation token.
    """

    def __init__(
        self,
        credential: AppCredential,
        api_url: str = GITHUB_API,
        accept_header: str = DEFAULT_GITHUB_ACCEPT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.credential = credential
        self.api_url = api_url.rstrip("/")
        self.accept_header = accept_header
        self.timeout = timeout

    def generate_jwt(self, now: int | None = None) -> SignedAssertion:
        return sign_app_jwt(self.credential.private_key, self.credential.app_id, now=now)

    async def get_installation_token(
        self, assertion: SignedAssertion | None = None
    ) -> InstallationAccessToken:
        """Exchange a JWT for an installation access token.

        Args:
            assertion: A signed app JWT. A new one is signed when omitted.

        Returns:
            The installation access token.

        Raises:
            SigningError: If a JWT had to be signed and signing failed.
            AuthExchangeError: If GitHub rejects the exchange.
            TransportError: On network failure.
        """
        if assertion is None:
            assertion = self.generate_jwt()

        installation_id = self.credential.installation_id
        resp = await send(
            "POST",
            f"{self.api_url}/app/installations/{installation_id}/access_tokens",
            AuthExchangeError,
            headers={
                "Authorization": f"Bearer {assertion.token}",
                "Accept": self.accept_header,
            },
            timeout=self.timeout,
        )
        data = json_body(resp, AuthExchangeError)
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise AuthExchangeError(resp.status_code, resp.text)

        logger.debug(
            "Obtained installation token for %s (expires %s)",
            installation_id,
            data.get("expires_at", "?"),
        )
        return InstallationAccessToken(
            token=token,
            expires_at=data.get("expires_at", ""),
            permissions=data.get("permissions") or {},
            repository_selection=data.get("repository_selection", ""),
        )

"""
GitHub App authentication.

The app private key never leaves the process. It only signs short-lived app
assertions, and an assertion is only ever sent to the installation endpoints
to trade it for an installation token. Every API call made while handling an
event is authenticated with that installation token.
"""
import time
from datetime import datetime
from typing import Optional, Union

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from reviewers_court import settings
from reviewers_court.errors import SigningError, TokenExchangeError
from reviewers_court.github.api import GitHubClient, github_headers
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.github.auth")

_SIGNING_KEY: Optional[rsa.RSAPrivateKey] = None


def _read_configured_pem() -> str:
    if settings.GITHUB_PRIVATE_KEY:
        # Single-line env values commonly carry escaped newlines
        return settings.GITHUB_PRIVATE_KEY.replace("\\n", "\n")

    if not settings.GITHUB_PRIVATE_KEY_PATH:
        raise SigningError(
            "GITHUB_PRIVATE_KEY or GITHUB_PRIVATE_KEY_PATH must be set"
        )

    try:
        with open(settings.GITHUB_PRIVATE_KEY_PATH, "r") as f:
            return f.read()
    except OSError as exc:
        raise SigningError(
            f"Failed to read GitHub private key at {settings.GITHUB_PRIVATE_KEY_PATH}"
        ) from exc


def init_signing_key(pem: Optional[Union[str, bytes]] = None) -> None:
    """
    Parse the app private key once, at startup.

    Uses the configured key when no PEM is given. Any failure is fatal for
    the process, so it is raised as SigningError rather than logged.
    """
    global _SIGNING_KEY

    if pem is None:
        pem = _read_configured_pem()

    if isinstance(pem, str):
        pem = pem.encode()

    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningError(f"Invalid PEM content- unable to parse: {exc}") from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise SigningError("GitHub App private key must be an RSA key")

    _SIGNING_KEY = key
    logger.info("Initialized private key")


def create_app_jwt() -> str:
    """
    Sign a fresh app assertion: iss = app id, iat = now, exp = now + 5 minutes.
    """
    if _SIGNING_KEY is None:
        raise SigningError("Signing key has not been initialized")

    if not settings.GITHUB_APP_ID:
        raise SigningError("GITHUB_APP_ID is not set")

    now = int(time.time())
    payload = {
        "iat": now,
        "exp": now + settings.APP_JWT_TTL_SECONDS,
        "iss": str(settings.GITHUB_APP_ID),
    }

    try:
        return jwt.encode(payload, _SIGNING_KEY, algorithm="RS256")
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise SigningError(f"Unable to sign app assertion: {exc}") from exc


def _parse_expiry(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    # GitHub returns e.g. 2016-07-11T22:14:10Z
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()


class InstallationTokenSource:
    """
    Hands out the installation token, exchanging an app assertion for it
    on first use and again shortly before GitHub expires it.
    """

    def __init__(self, http: httpx.AsyncClient, access_tokens_url: str):
        self._http = http
        self.access_tokens_url = access_tokens_url
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None

    def _is_fresh(self) -> bool:
        if not self._token:
            return False
        if self._expires_at is None:
            return True
        margin = settings.INSTALLATION_TOKEN_REFRESH_MARGIN_SECONDS
        return time.time() < self._expires_at - margin

    async def token(self) -> str:
        if self._is_fresh():
            return self._token

        response = await self._http.post(
            self.access_tokens_url,
            headers=github_headers(create_app_jwt()),
        )

        if not response.is_success:
            logger.warning(
                "Installation token exchange failed (%s): %s",
                response.status_code,
                self.access_tokens_url,
            )
            raise TokenExchangeError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise TokenExchangeError(response.status_code, response.text) from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise TokenExchangeError(
                response.status_code,
                response.text,
                message="Access token url returned no token",
            )

        try:
            expires_at = _parse_expiry(data.get("expires_at"))
        except ValueError as exc:
            raise TokenExchangeError(
                response.status_code,
                response.text,
                message="Access token url returned an unreadable expiry",
            ) from exc

        self._token = token
        self._expires_at = expires_at

        logger.info("GitHub installation token obtained")

        return self._token


async def resolve_installation_client(
    installation_id: int,
    http: httpx.AsyncClient,
) -> GitHubClient:
    """
    Build a client that acts as the given installation.

    Costs one round trip to discover the installation's token url.
    """
    response = await http.get(
        f"{settings.GITHUB_API_URL}/app/installations/{installation_id}",
        headers=github_headers(create_app_jwt()),
    )

    if not response.is_success:
        raise TokenExchangeError(
            response.status_code,
            response.text,
            message=f"Unable to fetch installation {installation_id}",
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise TokenExchangeError(
            response.status_code,
            response.text,
            message=f"Installation {installation_id} returned no JSON",
        ) from exc

    if not isinstance(data, dict):
        raise TokenExchangeError(
            response.status_code,
            response.text,
            message=f"Installation {installation_id} returned an unexpected body",
        )

    access_tokens_url = data.get("access_tokens_url")
    if not access_tokens_url:
        access_tokens_url = (
            f"{settings.GITHUB_API_URL}/app/installations/{installation_id}/access_tokens"
        )

    source = InstallationTokenSource(http, access_tokens_url)
    return GitHubClient(http, source)

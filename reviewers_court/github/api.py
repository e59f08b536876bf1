import httpx
from typing import Any, Optional, Protocol
from urllib.parse import quote

from reviewers_court import settings
from reviewers_court.logger import get_logger


logger = get_logger("reviewers_court.github.api")


class GitHubAPIError(Exception):
    """
    Raised for any non-2xx GitHub response that is not handled more specifically.
    """

    def __init__(self, status_code: int, endpoint: str, body: str):
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        super().__init__(f"GitHub API error {status_code} for {endpoint}: {body}")


class GitHubNotFound(GitHubAPIError):
    """
    Raised on 404, so callers can treat a missing resource as a signal.
    """
    pass


class GitHubConflict(GitHubAPIError):
    """
    Raised on 422 when GitHub reports that the resource already exists.
    """
    pass


class GitHubBadResponse(GitHubAPIError):
    """
    Raised when a successful response carries a body that is not JSON.
    """
    pass


class TokenSource(Protocol):
    async def token(self) -> str:
        ...


def new_http_client() -> httpx.AsyncClient:
    """
    HTTP client for one webhook delivery, with an explicit per-call deadline.
    """
    return httpx.AsyncClient(
        timeout=settings.GITHUB_HTTP_TIMEOUT_SECONDS,
        follow_redirects=True,
    )


def github_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": settings.GITHUB_API_VERSION,
    }


def _is_already_exists(response: httpx.Response) -> bool:
    try:
        errors = response.json().get("errors") or []
    except ValueError:
        return False

    return any(
        isinstance(e, dict) and e.get("code") == "already_exists"
        for e in errors
    )


class GitHubClient:
    """
    REST client whose every call is authenticated by an installation token.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        token_source: TokenSource,
        base_url: Optional[str] = None,
    ):
        self._http = http
        self._token_source = token_source
        self._base_url = base_url or settings.GITHUB_API_URL

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
    ) -> Any:
        token = await self._token_source.token()
        url = f"{self._base_url}{endpoint}"

        response = await self._http.request(
            method,
            url,
            headers=github_headers(token),
            json=json,
        )

        status = response.status_code

        if status == 404:
            logger.info("Not found (%s): %s %s", status, method, endpoint)
            raise GitHubNotFound(status, endpoint, response.text)

        if status == 422 and _is_already_exists(response):
            logger.info("Already exists (%s): %s %s", status, method, endpoint)
            raise GitHubConflict(status, endpoint, response.text)

        if status >= 400:
            logger.warning("GitHub API error %s for %s %s", status, method, endpoint)
            raise GitHubAPIError(status, endpoint, response.text)

        if status == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            logger.exception("Failed to decode JSON response from %s", endpoint)
            raise GitHubBadResponse(status, endpoint, response.text) from exc

    # =========================================================
    # Labels
    # =========================================================

    async def get_label(self, owner: str, repo: str, name: str) -> dict:
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/labels/{quote(name, safe='')}",
        )

    async def create_label(
        self,
        owner: str,
        repo: str,
        name: str,
        color: str,
        description: str = "",
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/labels",
            {"name": name, "color": color, "description": description},
        )

    async def add_labels(
        self,
        owner: str,
        repo: str,
        number: int,
        names: list[str],
    ) -> list[dict]:
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/labels",
            {"labels": names},
        )

    async def remove_label(
        self,
        owner: str,
        repo: str,
        number: int,
        name: str,
    ) -> None:
        await self._request(
            "DELETE",
            f"/repos/{owner}/{repo}/issues/{number}/labels/{quote(name, safe='')}",
        )

"""GitHub API wrapper and auth helpers."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote

import httpx
from dotenv import load_dotenv

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_DIFF_MEDIA_TYPE = "application/vnd.github.diff"
DEFAULT_TIMEOUT_SECONDS = 20.0


class GitHubAuthError(RuntimeError):
    """Raised when required GitHub authentication is missing."""


class GitHubInputError(ValueError):
    """Raised when repository or PR input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, *, status_code: int | None, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class GitHubNotFoundError(GitHubApiError):
    """Raised when the repository or pull request does not exist or is hidden."""


class GitHubRateLimitError(GitHubApiError):
    """Raised when GitHub API rate limiting prevents request completion."""


class GitHubUnavailableError(GitHubApiError):
    """Raised when GitHub could not be reached at all."""


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success GitHub API response."""
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'."
    if response.status_code == 404:
        raise GitHubNotFoundError(
            message,
            status_code=response.status_code,
            endpoint=endpoint,
        )
    if response.status_code == 429:
        raise GitHubRateLimitError(
            message,
            status_code=response.status_code,
            endpoint=endpoint,
        )
    raise GitHubApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
    )


async def _request(
    client: httpx.AsyncClient,
    endpoint: str,
    *,
    accept_header: str,
) -> httpx.Response:
    """Perform a single GET request; failures are raised, never retried."""
    try:
        response = await client.get(endpoint, headers={"Accept": accept_header})
    except httpx.HTTPError as error:
        raise GitHubUnavailableError(
            f"GitHub API request to '{endpoint}' failed: {error}",
            status_code=None,
            endpoint=endpoint,
        ) from error
    if response.status_code >= 400:
        _raise_http_error(response, endpoint)
    return response


def validate_repo_part(value: str, *, name: str) -> str:
    """Validate a single owner or repository path segment."""
    if not value.strip() or "/" in value or value in {".", ".."}:
        raise GitHubInputError(f"Invalid {name} '{value}'. Expected a single path segment.")
    return value


def validate_pr_number(pr_number: int) -> int:
    """Validate and normalize pull request number input."""
    if isinstance(pr_number, bool) or pr_number <= 0:
        raise GitHubInputError(f"Invalid PR number '{pr_number}'. Expected a positive integer.")
    return pr_number


def pull_request_endpoint(owner: str, repo: str, pr_number: int) -> str:
    """Build the REST path for one pull request."""
    normalized_owner = validate_repo_part(owner, name="owner")
    normalized_repo = validate_repo_part(repo, name="repo")
    normalized_pr_number = validate_pr_number(pr_number)
    return (
        f"/repos/{quote(normalized_owner, safe='')}/{quote(normalized_repo, safe='')}"
        f"/pulls/{normalized_pr_number}"
    )


async def fetch_pull_request_diff(
    *,
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    pr_number: int,
) -> str:
    """Fetch full raw diff for a pull request."""
    endpoint = pull_request_endpoint(owner, repo, pr_number)
    response = await _request(client, endpoint, accept_header=GITHUB_DIFF_MEDIA_TYPE)
    return response.text


async def fetch_authenticated_user_login(*, client: httpx.AsyncClient) -> str:
    """Fetch authenticated GitHub user login for token validation."""
    endpoint = "/user"
    response = await _request(client, endpoint, accept_header=GITHUB_JSON_MEDIA_TYPE)
    payload = response.json()
    login = payload.get("login") if isinstance(payload, dict) else None
    if not isinstance(login, str):
        raise GitHubApiError(
            f"Expected 'login' to be a string in GitHub response for '{endpoint}'.",
            status_code=response.status_code,
            endpoint=endpoint,
        )
    return login


def get_github_token_with_source() -> tuple[str, str]:
    """Read GitHub token and return token value with environment source key."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    github_token = os.getenv("GITHUB_TOKEN", "").strip()
    if github_token:
        return github_token, "GITHUB_TOKEN"

    gh_token = os.getenv("GH_TOKEN", "").strip()
    if gh_token:
        return gh_token, "GH_TOKEN"

    message = "Missing GitHub token. Set GITHUB_TOKEN (preferred) or GH_TOKEN."
    raise GitHubAuthError(message)


def build_github_client(
    token: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    trust_env: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build an authenticated GitHub HTTP client."""
    if not token:
        raise GitHubAuthError("Missing GitHub token. Set GITHUB_TOKEN (preferred) or GH_TOKEN.")
    headers = {
        "Accept": GITHUB_JSON_MEDIA_TYPE,
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.AsyncClient(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
        transport=transport,
    )

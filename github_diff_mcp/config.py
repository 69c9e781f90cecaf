"""Process-scoped server configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from github_diff_mcp.github_client import DEFAULT_TIMEOUT_SECONDS, get_github_token_with_source


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """Settings read once at startup and shared read-only afterwards."""

    github_token: str = field(repr=False)
    token_source: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    trust_env: bool = True


def load_settings(
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    trust_env: bool = True,
) -> ServerSettings:
    """Load settings from the environment.

    Raises ``GitHubAuthError`` when no token is configured; callers treat
    that as fatal and never start serving.
    """
    token, token_source = get_github_token_with_source()
    return ServerSettings(
        github_token=token,
        token_source=token_source,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
    )

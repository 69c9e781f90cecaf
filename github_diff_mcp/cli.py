"""Typer CLI for the GitHub diff MCP server."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Annotated

import typer

from github_diff_mcp.config import load_settings
from github_diff_mcp.github_client import (
    DEFAULT_TIMEOUT_SECONDS,
    GitHubApiError,
    GitHubAuthError,
    GitHubInputError,
    GitHubUnavailableError,
    build_github_client,
    fetch_authenticated_user_login,
    fetch_pull_request_diff,
)
from github_diff_mcp.server import GitHubDiffServer

app = typer.Typer(help="MCP server that returns GitHub pull request diffs.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout belongs to the protocol."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@app.command("serve")
def serve_command(
    timeout_seconds: Annotated[
        float, typer.Option(help="GitHub API timeout in seconds for each diff request.")
    ] = DEFAULT_TIMEOUT_SECONDS,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
    log_level: Annotated[str, typer.Option(help="Logging level written to stderr.")] = "INFO",
) -> None:
    """Run the MCP server on stdin/stdout."""
    configure_logging(log_level)
    try:
        settings = load_settings(timeout_seconds=timeout_seconds, trust_env=trust_env)
    except GitHubAuthError as error:
        typer.echo(f"Cannot start server: {error}", err=True)
        raise typer.Exit(code=1) from error

    server = GitHubDiffServer.from_settings(settings)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted, shutting down.")
        raise typer.Exit(code=0) from None


async def _check_access(
    token: str,
    *,
    owner: str | None,
    repo: str | None,
    pr: int | None,
    timeout_seconds: float,
    trust_env: bool,
) -> tuple[str, int | None]:
    async with build_github_client(token, timeout_seconds, trust_env=trust_env) as client:
        login = await fetch_authenticated_user_login(client=client)
        diff_size = None
        if owner is not None and repo is not None and pr is not None:
            diff = await fetch_pull_request_diff(
                client=client,
                owner=owner,
                repo=repo,
                pr_number=pr,
            )
            diff_size = len(diff)
    return login, diff_size


@app.command("auth-check")
def auth_check_command(
    owner: Annotated[
        str | None, typer.Option(help="Optional repository owner for a diff access check.")
    ] = None,
    repo: Annotated[
        str | None, typer.Option(help="Optional repository name for a diff access check.")
    ] = None,
    pr: Annotated[
        int | None, typer.Option(help="Optional pull request number for a diff access check.")
    ] = None,
    timeout_seconds: Annotated[
        float, typer.Option(help="GitHub API timeout in seconds for the validation call.")
    ] = DEFAULT_TIMEOUT_SECONDS,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Validate GitHub token setup and optional PR diff access."""
    target = (owner, repo, pr)
    if any(value is not None for value in target) and any(value is None for value in target):
        raise typer.BadParameter("Provide --owner, --repo and --pr together, or none of them.")

    try:
        settings = load_settings(timeout_seconds=timeout_seconds, trust_env=trust_env)
    except GitHubAuthError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Token detected in {settings.token_source}.")

    try:
        login, diff_size = asyncio.run(
            _check_access(
                settings.github_token,
                owner=owner,
                repo=repo,
                pr=pr,
                timeout_seconds=settings.timeout_seconds,
                trust_env=settings.trust_env,
            )
        )
    except GitHubInputError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error
    except GitHubUnavailableError as error:
        typer.echo(f"GitHub auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error
    except GitHubApiError as error:
        typer.echo(
            "GitHub auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except ImportError as error:
        typer.echo(
            "GitHub auth check failed: proxy transport dependency is missing. "
            "Try `github-diff-mcp auth-check --no-trust-env`, or install `httpx[socks]`."
        )
        raise typer.Exit(code=1) from error

    typer.echo(f"Authenticated as GitHub user '{login}'.")
    if diff_size is not None:
        typer.echo(f"Diff access check passed for {owner}/{repo}#{pr} ({diff_size} characters).")
    typer.echo("GitHub token setup is valid.")

"""MCP server exposing the pull request diff tool over stdio."""

from __future__ import annotations

import logging
from typing import Any

import httpx
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from github_diff_mcp.config import ServerSettings
from github_diff_mcp.github_client import (
    DEFAULT_TIMEOUT_SECONDS,
    GitHubApiError,
    GitHubAuthError,
    build_github_client,
    fetch_pull_request_diff,
)
from github_diff_mcp.schema import (
    GET_PR_DIFF_INPUT_SCHEMA,
    GET_PR_DIFF_TOOL_DESCRIPTION,
    GET_PR_DIFF_TOOL_NAME,
    ArgumentsInvalid,
    PullRequestDiffArgs,
    validate_tool_arguments,
)

SERVER_NAME = "github-server"
SERVER_VERSION = "0.0.1"

logger = logging.getLogger(__name__)


def get_pr_diff_tool() -> types.Tool:
    """Return a fresh descriptor for the diff tool."""
    return types.Tool(
        name=GET_PR_DIFF_TOOL_NAME,
        description=GET_PR_DIFF_TOOL_DESCRIPTION,
        inputSchema=GET_PR_DIFF_INPUT_SCHEMA,
    )


class GitHubDiffServer:
    """Routes MCP tool calls to the GitHub pull request diff endpoint."""

    def __init__(
        self,
        token: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        trust_env: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token:
            raise GitHubAuthError("Missing GitHub token. Set GITHUB_TOKEN (preferred) or GH_TOKEN.")
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._trust_env = trust_env
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: ServerSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GitHubDiffServer:
        return cls(
            settings.github_token,
            timeout_seconds=settings.timeout_seconds,
            trust_env=settings.trust_env,
            transport=transport,
        )

    def list_tools(self) -> list[types.Tool]:
        """Return the single tool this server registers."""
        return [get_pr_diff_tool()]

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None,
    ) -> list[types.TextContent]:
        """Validate and dispatch one tool call.

        Unknown tools and bad arguments raise ``McpError`` before any
        request is sent to GitHub. Upstream failures propagate as
        ``GitHubApiError``.
        """
        if name != GET_PR_DIFF_TOOL_NAME:
            raise McpError(
                types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown tool: {name}")
            )

        result = validate_tool_arguments(arguments if arguments is not None else {})
        if isinstance(result, ArgumentsInvalid):
            logger.debug("Rejected %s call: %s", name, result.message)
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=result.message))

        diff = await self.fetch_diff(result.args)
        return [types.TextContent(type="text", text=diff)]

    async def fetch_diff(self, args: PullRequestDiffArgs) -> str:
        """Fetch the raw diff using the credential held by this server."""
        logger.debug("Fetching diff for %s/%s#%d", args.owner, args.repo, args.pull_number)
        async with build_github_client(
            self._token,
            self._timeout_seconds,
            trust_env=self._trust_env,
            transport=self._transport,
        ) as client:
            try:
                return await fetch_pull_request_diff(
                    client=client,
                    owner=args.owner,
                    repo=args.repo,
                    pr_number=args.pull_number,
                )
            except GitHubApiError as error:
                logger.error(
                    "GitHub diff request failed: status=%s endpoint=%s",
                    error.status_code,
                    error.endpoint,
                )
                raise

    def build_mcp_server(self) -> Server:
        """Register this router's handlers on a low-level MCP server."""
        server = Server(SERVER_NAME, version=SERVER_VERSION)

        @server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return self.list_tools()

        async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
            content = await self.call_tool(request.params.name, request.params.arguments)
            return types.ServerResult(types.CallToolResult(content=content))

        # Registered without the call_tool() decorator, which turns every
        # exception into an isError result instead of a JSON-RPC error.
        server.request_handlers[types.CallToolRequest] = handle_call_tool
        return server

    async def run(self) -> None:
        """Serve over stdin/stdout until the client disconnects."""
        server = self.build_mcp_server()
        options = server.create_initialization_options()
        async with stdio_server() as (read_stream, write_stream):
            logger.info("GitHub MCP server running on stdio")
            await server.run(read_stream, write_stream, options)

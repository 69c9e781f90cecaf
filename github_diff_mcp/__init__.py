"""MCP server that returns GitHub pull request diffs."""

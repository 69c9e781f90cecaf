from github_diff_mcp.cli import app

app()

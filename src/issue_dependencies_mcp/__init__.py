"""Issue Dependencies MCP Server.

A Model Context Protocol server that exposes GitHub issue dependency
("blocked by" / "blocking") relationships as tools.

Features:
- List the issues blocking an issue, or blocked by it
- Add or remove a blocked-by dependency, including across repositories
- Read-only mode and repository allowlist guardrails
- Structured audit events for every tool call

Run with: uvx python -m issue_dependencies_mcp
"""

__version__ = "1.0.0"

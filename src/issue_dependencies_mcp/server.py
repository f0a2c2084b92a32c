"""MCP server wiring for issue-dependencies-mcp.

Lists the dependency tools and the status resources, and turns tool results into
MCP `CallToolResult`s.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

try:
    from mcp.server import Server
    from mcp.types import CallToolResult, Resource, Tool, ToolAnnotations
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .errors import ConfigError, MarshalError
from .tools import OPERATIONS, Runtime, dispatch_tool, initialize_runtime_from_env, tool_metadata
from .translations import TranslationHelper

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "issue-dependencies-mcp"
STATUS_URI = "issue-dependencies-mcp://server-status"
CAPABILITIES_URI = "issue-dependencies-mcp://capabilities"

server = Server(SERVER_NAME)


def _runtime_or_none() -> Runtime | None:
    try:
        return initialize_runtime_from_env()
    except ConfigError:
        return None


def build_tools(translations: TranslationHelper, *, read_only: bool = False) -> list[Tool]:
    """Build Tool descriptors; read-only mode leaves out the mutation tools."""
    tools: list[Tool] = []
    for name, metadata in tool_metadata(translations).items():
        if read_only and not OPERATIONS[name].read_only:
            continue
        tools.append(
            Tool(
                name=name,
                title=metadata["title"],
                description=metadata["description"],
                inputSchema=metadata["inputSchema"],
                annotations=ToolAnnotations(**metadata["annotations"]),
            )
        )
    return tools


def build_resources() -> list[Resource]:
    return [
        Resource(
            uri=STATUS_URI,
            name="Server Status",
            description="Non-secret server configuration and limits",
        ),
        Resource(
            uri=CAPABILITIES_URI,
            name="Capabilities",
            description="Available dependency tools and their accepted status codes",
        ),
    ]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    runtime = _runtime_or_none()
    if runtime is None:
        tools = build_tools(TranslationHelper())
    else:
        tools = build_tools(runtime.translations, read_only=runtime.policy.read_only)

    logger.info("Listed %s tools", len(tools))
    return tools


@server.call_tool(validate_input=False)
async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
    """Execute a tool and return an MCP CallToolResult."""
    if not isinstance(arguments, dict):
        arguments = {}

    logger.info("Tool called: %s", name)

    try:
        result = await dispatch_tool(name, arguments)
    except MarshalError:
        logger.exception("Tool %s failed to marshal its response", name)
        raise

    if result.is_error:
        logger.info("Tool %s returned an error result", name)
    return result.to_call_tool_result()


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return build_resources()


def _capabilities() -> dict[str, Any]:
    return {
        "server": SERVER_NAME,
        "version": __version__,
        "tools": {
            name: {
                "read_only": op.read_only,
                "accepted_status_codes": sorted(op.accepted_statuses),
            }
            for name, op in OPERATIONS.items()
        },
        "retries": False,
    }


def _server_status() -> dict[str, Any]:
    status: dict[str, Any] = {
        "server": SERVER_NAME,
        "version": __version__,
        "tools_available": len(OPERATIONS),
        "tool_names": sorted(OPERATIONS),
        "configured": False,
    }
    runtime = _runtime_or_none()
    if runtime is None:
        return status

    status["configured"] = True
    status["api_base_url"] = runtime.github.api_base_url
    status["limits"] = {
        "total_timeout_s": runtime.config.limits.total_timeout_s,
        "connect_timeout_s": runtime.config.limits.connect_timeout_s,
        "read_timeout_s": runtime.config.limits.read_timeout_s,
    }
    status["policy"] = {
        "read_only": runtime.policy.read_only,
        "repo_allowlist_enabled": runtime.policy.allowlist_size > 0,
        "repo_allowlist_count": runtime.policy.allowlist_size,
    }
    status["audit"] = {"file_sink_enabled": runtime.audit.file_sink_enabled}
    return status


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)

    if uri_s == CAPABILITIES_URI:
        return json.dumps(_capabilities(), indent=2)

    if uri_s == STATUS_URI:
        return json.dumps(_server_status(), indent=2)

    return json.dumps({"ok": False, "code": "NotFound", "message": "Unknown resource"}, indent=2)


async def run_server() -> None:
    """Run the server over stdio."""
    # Fail fast on invalid/missing host configuration.
    try:
        runtime = initialize_runtime_from_env()
    except ConfigError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    logging.getLogger().setLevel(runtime.config.log_level)
    logger.info("Starting %s %s (read_only=%s)", SERVER_NAME, __version__, runtime.policy.read_only)

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works."""
    # Avoid calling decorated handlers directly; just validate we can construct
    # Tool/Resource objects.
    tools = build_tools(TranslationHelper())
    resources = build_resources()
    logger.info("Self-test OK: %s tools, %s resources", len(tools), len(resources))


def export_translations(path: Path, translations: TranslationHelper | None = None) -> dict[str, str]:
    """Resolve every tool string and write the key/value table to `path`."""
    helper = translations or TranslationHelper()
    _ = tool_metadata(helper)
    helper.export(path)
    return helper.as_dict()

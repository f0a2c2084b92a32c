"""Server smoke tests: tool and resource listing, call_tool wiring, CLI."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import issue_dependencies_mcp.tools as tools
import pytest
from issue_dependencies_mcp.__main__ import parse_args
from issue_dependencies_mcp.config import AppConfig, PolicyConfig
from issue_dependencies_mcp.errors import MarshalError
from issue_dependencies_mcp.server import (
    CAPABILITIES_URI,
    STATUS_URI,
    call_tool,
    export_translations,
    list_resources,
    list_tools,
    read_resource,
)
from mcp.types import CallToolResult

ALL_TOOLS = {"list_blocked_by", "list_blocking", "add_blocked_by", "remove_blocked_by"}


@pytest.fixture
def unconfigured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(tools, "_RUNTIME", None)


def _install(monkeypatch: pytest.MonkeyPatch, handler=None, *, read_only: bool = False) -> None:
    def _default(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("GitHub should not be called")

    cfg = AppConfig(token="ghp_secret", policy=PolicyConfig(read_only=read_only))
    runtime = tools.build_runtime(cfg, transport=httpx.MockTransport(handler or _default))
    monkeypatch.setattr(tools, "_RUNTIME", runtime)


@pytest.mark.asyncio
async def test_server_lists_all_tools_when_unconfigured(unconfigured: None) -> None:
    listed = await list_tools()

    assert {t.name for t in listed} == ALL_TOOLS


@pytest.mark.asyncio
async def test_tool_metadata_carries_schema_and_annotations(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch)

    by_name = {t.name: t for t in await list_tools()}

    listed = by_name["list_blocked_by"]
    assert listed.title == "List blocking issues"
    assert listed.annotations is not None
    assert listed.annotations.readOnlyHint is True
    assert listed.inputSchema["required"] == ["owner", "repo", "issue_number"]
    assert listed.inputSchema["properties"]["per_page"]["maximum"] == 100

    add = by_name["add_blocked_by"]
    assert add.annotations is not None
    assert add.annotations.readOnlyHint is False
    assert "blocked_by_issue_number" in add.inputSchema["required"]
    assert "blocked_by_owner" not in add.inputSchema["required"]


@pytest.mark.asyncio
async def test_read_only_mode_hides_mutation_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, read_only=True)

    listed = await list_tools()

    assert {t.name for t in listed} == {"list_blocked_by", "list_blocking"}


@pytest.mark.asyncio
async def test_tools_do_not_emit_secrets_in_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch)

    listed = await list_tools()
    as_json = json.dumps([t.model_dump() for t in listed], sort_keys=True)

    assert "ghp_secret" not in as_json
    assert "Bearer " not in as_json


@pytest.mark.asyncio
async def test_server_lists_resources_ok() -> None:
    resources = await list_resources()

    assert {str(r.uri) for r in resources} == {STATUS_URI, CAPABILITIES_URI}


@pytest.mark.asyncio
async def test_capabilities_resource_lists_accepted_statuses() -> None:
    data = json.loads(await read_resource(CAPABILITIES_URI))

    assert set(data["tools"]) == ALL_TOOLS
    assert data["tools"]["add_blocked_by"]["accepted_status_codes"] == [200, 201]
    assert data["tools"]["remove_blocked_by"]["accepted_status_codes"] == [200, 204]
    assert data["tools"]["list_blocking"]["read_only"] is True
    assert data["retries"] is False


@pytest.mark.asyncio
async def test_status_resource_when_unconfigured(unconfigured: None) -> None:
    data = json.loads(await read_resource(STATUS_URI))

    assert data["configured"] is False
    assert data["tools_available"] == 4


@pytest.mark.asyncio
async def test_status_resource_is_non_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, read_only=True)

    raw = await read_resource(STATUS_URI)
    data = json.loads(raw)

    assert data["configured"] is True
    assert data["api_base_url"] == "https://api.github.com"
    assert data["policy"]["read_only"] is True
    assert data["policy"]["repo_allowlist_enabled"] is False
    assert "ghp_secret" not in raw


@pytest.mark.asyncio
async def test_unknown_resource_is_not_found() -> None:
    data = json.loads(await read_resource("issue-dependencies-mcp://nope"))

    assert data["ok"] is False
    assert data["code"] == "NotFound"


@pytest.mark.asyncio
async def test_call_tool_returns_call_tool_result(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"dependencies": []})

    _install(monkeypatch, handler)

    out = await call_tool("list_blocking", {"owner": "octo", "repo": "repo", "issue_number": 1})

    assert isinstance(out, CallToolResult)
    assert out.isError is False
    assert out.content[0].text == "[]"


@pytest.mark.asyncio
async def test_call_tool_flags_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch)

    out = await call_tool("list_blocking", {"owner": "octo"})

    assert out.isError is True
    assert out.content[0].text == "missing required parameter: repo"


@pytest.mark.asyncio
async def test_call_tool_propagates_marshal_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, content=b"{broken")

    _install(monkeypatch, handler)

    with pytest.raises(MarshalError):
        _ = await call_tool(
            "add_blocked_by",
            {"owner": "octo", "repo": "repo", "issue_number": 1, "blocked_by_issue_number": 2},
        )


def test_export_translations_writes_every_tool_string(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ISSUE_DEPS_MCP_TOOL_LIST_BLOCKING_TITLE", raising=False)
    out = tmp_path / "translations.json"

    table = export_translations(out)

    assert json.loads(out.read_text(encoding="utf-8")) == table
    assert len(table) == 8
    assert table["TOOL_LIST_BLOCKING_TITLE"] == "List blocked issues"


def test_cli_parses_flags(tmp_path: Path) -> None:
    assert parse_args(["--test"]).test is True
    args = parse_args(["--export-translations", str(tmp_path / "t.json")])
    assert args.export_translations == tmp_path / "t.json"
    assert args.test is False

"""Tool registry and dispatch layer.

This module:
- defines the four issue-dependency tools (public contract surface)
- builds a per-server runtime from host-provided config
- runs every tool through one validate -> build -> send -> translate pipeline
- creates a correlation_id per call and writes exactly one audit event
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

import httpx

from .audit import AuditLogger, build_event, new_correlation_id
from .config import AppConfig, load_config_from_env
from .dependencies import (
    BLOCKED_BY,
    BLOCKING,
    BlockedByMutationRequest,
    ListDependenciesRequest,
    build_add_request,
    build_list_request,
    build_remove_request,
    translate_dependency_list,
    translate_passthrough,
)
from .errors import PolicyError, ToolError, ToolResult, TransportError, error_result, text_result, tool_error_to_result
from .github_client import ApiRequest, ApiResponse, GitHubClient, RequestBudget
from .params import MAX_PER_PAGE
from .policy import Policy
from .translations import TranslationHelper

logger = logging.getLogger(__name__)

Translator = Callable[[str, str], str]

_OWNER = {"type": "string", "description": "Repository owner (username or organization)"}
_REPO = {"type": "string", "description": "Repository name"}
_PAGINATION = {
    "page": {"type": "number", "minimum": 1, "description": "Page number for pagination (min 1)"},
    "per_page": {
        "type": "number",
        "minimum": 1,
        "maximum": MAX_PER_PAGE,
        "description": f"Results per page for pagination (min 1, max {MAX_PER_PAGE})",
    },
}


def _list_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["owner", "repo", "issue_number"],
        "properties": {
            "owner": dict(_OWNER),
            "repo": dict(_REPO),
            "issue_number": {"type": "number", "description": "The number of the issue"},
            **{k: dict(v) for k, v in _PAGINATION.items()},
        },
    }


def _mutation_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["owner", "repo", "issue_number", "blocked_by_issue_number"],
        "properties": {
            "owner": dict(_OWNER),
            "repo": dict(_REPO),
            "issue_number": {"type": "number", "description": "The number of the issue that is blocked"},
            "blocked_by_owner": {
                "type": "string",
                "description": "Repository owner of the blocking issue (defaults to same owner)",
            },
            "blocked_by_repo": {
                "type": "string",
                "description": "Repository name of the blocking issue (defaults to same repo)",
            },
            "blocked_by_issue_number": {"type": "number", "description": "The number of the issue that is blocking"},
        },
    }


@dataclass(frozen=True, slots=True)
class Operation:
    """Everything that distinguishes one tool from another.

    `parse` turns raw arguments into a typed request (raising ParameterError),
    `build` turns that request into an ApiRequest, and `translate` turns an
    accepted response into the result text.
    """

    name: str
    title: tuple[str, str]
    description: tuple[str, str]
    read_only: bool
    input_schema: Callable[[], dict[str, Any]]
    parse: Callable[[dict[str, Any]], Any]
    build: Callable[[Any], ApiRequest]
    accepted_statuses: frozenset[int]
    translate: Callable[[ApiResponse], str]
    transport_failure: str
    status_failure: str


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation(
            name="list_blocked_by",
            title=("TOOL_LIST_BLOCKED_BY_TITLE", "List blocking issues"),
            description=("TOOL_LIST_BLOCKED_BY_DESCRIPTION", "List issues that a given issue is blocked by."),
            read_only=True,
            input_schema=_list_schema,
            parse=partial(ListDependenciesRequest.from_arguments, kind=BLOCKED_BY),
            build=build_list_request,
            accepted_statuses=frozenset({200}),
            translate=translate_dependency_list,
            transport_failure="failed to list blocked_by dependencies",
            status_failure="failed to list dependencies",
        ),
        Operation(
            name="list_blocking",
            title=("TOOL_LIST_BLOCKING_TITLE", "List blocked issues"),
            description=("TOOL_LIST_BLOCKING_DESCRIPTION", "List issues that a given issue is blocking."),
            read_only=True,
            input_schema=_list_schema,
            parse=partial(ListDependenciesRequest.from_arguments, kind=BLOCKING),
            build=build_list_request,
            accepted_statuses=frozenset({200}),
            translate=translate_dependency_list,
            transport_failure="failed to list blocking dependencies",
            status_failure="failed to list dependencies",
        ),
        Operation(
            name="add_blocked_by",
            title=("TOOL_ADD_BLOCKED_BY_TITLE", "Add blocking dependency"),
            description=("TOOL_ADD_BLOCKED_BY_DESCRIPTION", "Add a blocked-by dependency to an issue."),
            read_only=False,
            input_schema=_mutation_schema,
            parse=BlockedByMutationRequest.from_arguments,
            build=build_add_request,
            # 200 when the edge already exists, 201 when it was created.
            accepted_statuses=frozenset({200, 201}),
            translate=translate_passthrough,
            transport_failure="failed to add blocked_by dependency",
            status_failure="failed to add dependency",
        ),
        Operation(
            name="remove_blocked_by",
            title=("TOOL_REMOVE_BLOCKED_BY_TITLE", "Remove blocking dependency"),
            description=("TOOL_REMOVE_BLOCKED_BY_DESCRIPTION", "Remove a blocked-by dependency from an issue."),
            read_only=False,
            input_schema=_mutation_schema,
            parse=BlockedByMutationRequest.from_arguments,
            build=build_remove_request,
            # 204 carries no body.
            accepted_statuses=frozenset({200, 204}),
            translate=translate_passthrough,
            transport_failure="failed to remove blocked_by dependency",
            status_failure="failed to remove dependency",
        ),
    )
}


def tool_metadata(t: Translator) -> dict[str, dict[str, Any]]:
    """Describe every tool: title, description, annotations and input schema."""
    out: dict[str, dict[str, Any]] = {}
    for name, op in OPERATIONS.items():
        out[name] = {
            "title": t(*op.title),
            "description": t(*op.description),
            "annotations": {"title": t(*op.title), "readOnlyHint": op.read_only},
            "inputSchema": op.input_schema(),
        }
    return out


@dataclass(frozen=True, slots=True)
class Runtime:
    """Per-server runtime dependencies shared across tool calls."""

    config: AppConfig
    audit: AuditLogger
    policy: Policy
    github: GitHubClient
    translations: TranslationHelper


_RUNTIME: Runtime | None = None


def initialize_runtime_from_env() -> Runtime:
    """Initialize and cache runtime from environment.

    Called at server startup (fail-fast), and can also be used lazily.
    """
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is not None:
        return _RUNTIME

    config = load_config_from_env()
    _RUNTIME = build_runtime(config)
    return _RUNTIME


def build_runtime(config: AppConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> Runtime:
    """Wire the runtime for a given config; `transport` is an httpx transport for tests."""
    token = config.token

    async def token_provider() -> str:
        return token

    return Runtime(
        config=config,
        audit=AuditLogger(
            sink_path=config.audit_log_path,
            max_bytes=config.audit_max_bytes,
            max_backups=config.audit_max_backups,
        ),
        policy=Policy(read_only=config.policy.read_only, allowed_repos=config.policy.allowed_repos),
        github=GitHubClient(
            token_provider=token_provider,
            limits=config.limits,
            api_base_url=config.api_base_url,
            transport=transport,
        ),
        translations=TranslationHelper.from_file(config.translations_path),
    )


def _budget(runtime: Runtime) -> RequestBudget:
    return RequestBudget(total_timeout_s=runtime.config.limits.total_timeout_s)


async def run_operation(runtime: Runtime, op: Operation, arguments: dict[str, Any]) -> ToolResult:
    """Validate, build, send and translate one tool call.

    Transport failures and unexpected statuses come back as error results.

    Raises:
        ParameterError: If the arguments do not validate.
        PolicyError: If the target repository is not allowed.
        MarshalError: If an accepted response cannot be decoded or re-encoded.
    """
    request = op.parse(arguments)

    repo_decision = runtime.policy.check_repo_allowed(f"{request.owner}/{request.repo}")
    if not repo_decision.allowed:
        raise PolicyError(message=repo_decision.reason or "Repository is not allowed")

    api_request = op.build(request)
    logger.debug("%s -> %s %s", op.name, api_request.method, api_request.path)

    try:
        response = await runtime.github.request(api_request, budget=_budget(runtime))
    except TransportError as err:
        return error_result(f"{op.transport_failure} for {request.target}: {err.message}")

    if response.status_code not in op.accepted_statuses:
        logger.info("%s for %s returned unexpected status %s", op.name, request.target, response.status_code)
        return error_result(f"{op.status_failure} for {request.target} (status {response.status_code}): {response.text}")

    return text_result(op.translate(response))


def _target_from_args(arguments: dict[str, Any]) -> str:
    owner = arguments.get("owner")
    repo = arguments.get("repo")
    if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
        return f"{owner}/{repo}"
    return "<unknown>"


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
    """Dispatch a tool call.

    Always returns a ToolResult, except for local marshaling faults which propagate.
    """
    correlation_id = new_correlation_id()
    target = _target_from_args(arguments)

    runtime: Runtime | None = None
    start: float | None = None
    outcome = "failed"
    reason: str | None = "Internal error"

    try:
        runtime = initialize_runtime_from_env()
        start = runtime.audit.measure_start()

        op = OPERATIONS.get(name)
        if op is None:
            raise ToolError(
                code="UserInput",
                message=f"Unknown tool: {name}",
                hint=f"Available tools: {', '.join(sorted(OPERATIONS))}",
            )

        op_decision = runtime.policy.check_operation_allowed(operation=name, read_only_hint=op.read_only)
        if not op_decision.allowed:
            raise PolicyError(message=op_decision.reason or "Operation is not allowed")

        result = await run_operation(runtime, op, arguments)
        outcome = "failed" if result.is_error else "succeeded"
        reason = result.text.splitlines()[0][:200] if result.is_error and result.text else None
        return result

    except ToolError as err:
        outcome = "denied" if err.code in {"UserInput", "Forbidden", "Config"} else "failed"
        reason = err.message
        return tool_error_to_result(err)

    finally:
        # Runtime may be missing (e.g., Config failures); still emit an event to stderr.
        audit = runtime.audit if runtime is not None else AuditLogger()
        duration = audit.measure_duration_ms(start) if start is not None else None
        audit.write_event(
            build_event(
                correlation_id=correlation_id,
                operation=name,
                target=target,
                outcome=outcome,
                reason=reason,
                duration_ms=duration,
            )
        )


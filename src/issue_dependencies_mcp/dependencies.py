"""Issue dependency requests and responses.

Each tool call is decoded once into a typed request object, turned into an
`ApiRequest`, and its accepted response is re-serialized as canonical JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .errors import MarshalError
from .github_client import ApiRequest, ApiResponse
from .params import PaginationParams, optional_name, optional_pagination, require_int, require_name

BLOCKED_BY = "blocked_by"
BLOCKING = "blocking"
DEPENDENCY_KINDS = (BLOCKED_BY, BLOCKING)


def canonical_json(value: Any) -> str:
    """Serialize `value` as compact JSON with sorted keys."""
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise MarshalError(f"failed to marshal response: {exc}") from exc


def _decode_body(response: ApiResponse) -> Any:
    if not response.body.strip():
        return None
    try:
        return json.loads(response.body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MarshalError(f"failed to decode response body: {exc}") from exc


@dataclass(frozen=True, slots=True)
class DependencyReference:
    """One issue on the other end of a dependency edge, as reported by GitHub."""

    number: int
    title: str
    state: str
    html_url: str

    @classmethod
    def from_api(cls, data: Any) -> DependencyReference:
        if not isinstance(data, dict):
            raise MarshalError("failed to decode dependency: expected an object")
        number = data.get("number", 0)
        title = data.get("title") or ""
        state = data.get("state") or ""
        html_url = data.get("html_url") or ""
        if isinstance(number, bool) or not isinstance(number, int):
            raise MarshalError("failed to decode dependency: number is not an integer")
        if not isinstance(title, str) or not isinstance(state, str) or not isinstance(html_url, str):
            raise MarshalError("failed to decode dependency: unexpected field types")
        return cls(number=number, title=title, state=state.lower(), html_url=html_url)

    def to_dict(self) -> dict[str, Any]:
        return {"number": self.number, "title": self.title, "state": self.state, "html_url": self.html_url}


@dataclass(frozen=True, slots=True)
class DependencyRequestPayload:
    """Request body naming the blocking issue of a blocked-by edge."""

    owner: str
    repo: str
    issue_number: int

    def to_json(self) -> dict[str, Any]:
        return {"owner": self.owner, "repo": self.repo, "issue_number": self.issue_number}


@dataclass(frozen=True, slots=True)
class ListDependenciesRequest:
    """Arguments of `list_blocked_by` / `list_blocking`."""

    owner: str
    repo: str
    issue_number: int
    kind: str
    pagination: PaginationParams = PaginationParams()

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any], *, kind: str) -> ListDependenciesRequest:
        if kind not in DEPENDENCY_KINDS:
            raise ValueError(f"unknown dependency kind: {kind}")
        return cls(
            owner=require_name(arguments, "owner"),
            repo=require_name(arguments, "repo"),
            issue_number=require_int(arguments, "issue_number"),
            kind=kind,
            pagination=optional_pagination(arguments),
        )

    @property
    def target(self) -> str:
        return f"{self.owner}/{self.repo}#{self.issue_number}"


@dataclass(frozen=True, slots=True)
class BlockedByMutationRequest:
    """Arguments of `add_blocked_by` / `remove_blocked_by`."""

    owner: str
    repo: str
    issue_number: int
    blocked_by: DependencyRequestPayload

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any]) -> BlockedByMutationRequest:
        owner = require_name(arguments, "owner")
        repo = require_name(arguments, "repo")
        issue_number = require_int(arguments, "issue_number")
        blocked_by_issue_number = require_int(arguments, "blocked_by_issue_number")

        # The blocking issue may live in another repository; empty means "same as the blocked issue".
        blocked_by_owner = optional_name(arguments, "blocked_by_owner") or owner
        blocked_by_repo = optional_name(arguments, "blocked_by_repo") or repo

        return cls(
            owner=owner,
            repo=repo,
            issue_number=issue_number,
            blocked_by=DependencyRequestPayload(
                owner=blocked_by_owner,
                repo=blocked_by_repo,
                issue_number=blocked_by_issue_number,
            ),
        )

    @property
    def target(self) -> str:
        return f"{self.owner}/{self.repo}#{self.issue_number}"


def _dependencies_path(owner: str, repo: str, issue_number: int, kind: str) -> str:
    return f"/repos/{owner}/{repo}/issues/{issue_number}/dependencies/{kind}"


def build_list_request(request: ListDependenciesRequest) -> ApiRequest:
    """GET the dependencies of one kind, paginated only when asked to be."""
    params = request.pagination.as_query() or None
    return ApiRequest(
        method="GET",
        path=_dependencies_path(request.owner, request.repo, request.issue_number, request.kind),
        params=params,
    )


def build_add_request(request: BlockedByMutationRequest) -> ApiRequest:
    return ApiRequest(
        method="POST",
        path=_dependencies_path(request.owner, request.repo, request.issue_number, BLOCKED_BY),
        json_body=request.blocked_by.to_json(),
    )


def build_remove_request(request: BlockedByMutationRequest) -> ApiRequest:
    return ApiRequest(
        method="DELETE",
        path=_dependencies_path(request.owner, request.repo, request.issue_number, BLOCKED_BY),
        json_body=request.blocked_by.to_json(),
    )


def translate_dependency_list(response: ApiResponse) -> str:
    """Turn `{"dependencies": [...]}` into a JSON array of dependency records."""
    data = _decode_body(response)
    if data is None:
        return canonical_json([])
    if not isinstance(data, dict):
        raise MarshalError("failed to decode dependencies response: expected an object")
    raw = data.get("dependencies")
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise MarshalError("failed to decode dependencies response: dependencies is not an array")
    deps = [DependencyReference.from_api(item) for item in raw]
    return canonical_json([d.to_dict() for d in deps])


def translate_passthrough(response: ApiResponse) -> str:
    """Re-encode the decoded response object; an empty body becomes `null`."""
    data = _decode_body(response)
    if data is not None and not isinstance(data, dict):
        raise MarshalError("failed to decode response: expected an object")
    return canonical_json(data)

"""Error types and result serialization helpers.

Caller-input and remote-service failures are `ToolError`s and always end up as an
error-flagged tool result. `MarshalError` is the exception: it signals a local
encode/decode fault and is allowed to escape the tool handler.
"""

from __future__ import annotations

from dataclasses import dataclass

from mcp.types import CallToolResult, TextContent


@dataclass(frozen=True, slots=True)
class ToolError(Exception):
    """An error safe to report back to the calling agent.

    Messages are single-line and must never include the API token.
    """

    message: str
    code: str = "Internal"
    hint: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class ParameterError(ToolError):
    """Invalid tool arguments."""

    code: str = "UserInput"


@dataclass(frozen=True, slots=True)
class MissingParameterError(ParameterError):
    """A required parameter is absent (or holds its zero value)."""


@dataclass(frozen=True, slots=True)
class TypeMismatchError(ParameterError):
    """A parameter is present but not of the declared type."""


@dataclass(frozen=True, slots=True)
class TransportError(ToolError):
    """The request never produced an HTTP response (connect, TLS, timeout...)."""

    code: str = "Network"


@dataclass(frozen=True, slots=True)
class ConfigError(ToolError):
    """Host configuration is missing or invalid."""

    code: str = "Config"


@dataclass(frozen=True, slots=True)
class PolicyError(ToolError):
    """The call is refused by the server's guardrails."""

    code: str = "Forbidden"


class MarshalError(Exception):
    """JSON could not be encoded or decoded locally."""


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Text payload of a tool call plus its error flag."""

    text: str
    is_error: bool = False

    def to_call_tool_result(self) -> CallToolResult:
        """Convert into the MCP wire type."""
        return CallToolResult(content=[TextContent(type="text", text=self.text)], isError=self.is_error)


def text_result(text: str) -> ToolResult:
    """Successful result carrying `text` verbatim."""
    return ToolResult(text=text)


def error_result(message: str) -> ToolResult:
    """Error-flagged result carrying a plain-text message."""
    return ToolResult(text=message, is_error=True)


def tool_error_to_result(err: ToolError) -> ToolResult:
    """Convert a ToolError into an error-flagged result."""
    if err.hint:
        return error_result(f"{err.message} ({err.hint})")
    return error_result(err.message)

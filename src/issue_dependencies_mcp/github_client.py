"""GitHub REST client wrapper.

Provides:
- https-only base URL and no-redirect behavior
- finite timeouts taken from host configuration
- scoped response handling (the stream is always closed)
- translation of network failures into TransportError

There are no retries: a failed request is reported to the caller immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from . import __version__
from .config import LimitsConfig
from .errors import ConfigError, ParameterError, TransportError


@dataclass(frozen=True, slots=True)
class RequestBudget:
    """Budget for a single tool call."""

    total_timeout_s: float


@dataclass(frozen=True, slots=True)
class ApiRequest:
    """A transport-neutral description of one REST call."""

    method: str
    path: str
    params: dict[str, str] | None = None
    json_body: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Status code plus the fully-read response body."""

    status_code: int
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        token_provider,
        limits: LimitsConfig,
        api_base_url: str = "https://api.github.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            token_provider: Async callable that returns the API token.
            limits: Timeouts applied to every request.
            api_base_url: REST base URL; must use https.
            transport: Optional httpx transport for tests.
        """
        self._token_provider = token_provider
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._transport = transport

        if not self._api_base_url.startswith("https://"):
            raise ConfigError(message="GitHub API base URL must use https")

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"issue-dependencies-mcp/{__version__}",
        }

    async def request(self, api_request: ApiRequest, *, budget: RequestBudget) -> ApiResponse:
        """Send one request and return its status code and body.

        Any HTTP status is returned as-is; interpreting it is the caller's job.
        Cancellation of the calling task propagates out of this method.

        Raises:
            ParameterError: If the request URL cannot be built.
            TransportError: If no response could be obtained.
        """
        url = f"{self._api_base_url}{api_request.path}"
        token = await self._token_provider()

        timeout = httpx.Timeout(
            timeout=min(budget.total_timeout_s, self._limits.total_timeout_s),
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

        try:
            async with httpx.AsyncClient(
                follow_redirects=False,
                timeout=timeout,
                transport=self._transport,
            ) as client:
                async with client.stream(
                    api_request.method,
                    url,
                    headers=self._headers(token),
                    json=api_request.json_body,
                    params=api_request.params,
                ) as resp:
                    body = await resp.aread()
                    return ApiResponse(status_code=resp.status_code, body=body)
        except httpx.InvalidURL as exc:
            # Not an HTTPError subclass; raised while building the request.
            raise ParameterError(message=f"invalid request URL: {exc}") from exc
        except httpx.HTTPError as exc:
            detail = str(exc) or type(exc).__name__
            raise TransportError(message=detail) from exc

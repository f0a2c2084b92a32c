"""Configuration loading for issue-dependencies-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The API token is a secret and must never be emitted to agents, logs, or audit reasons.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_TOTAL_TIMEOUT_S = 60.0
DEFAULT_CONNECT_TIMEOUT_S = 5.0
DEFAULT_READ_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """Policy guardrails configuration."""

    read_only: bool = False
    allowed_repos: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Network limits handed to the HTTP client."""

    total_timeout_s: float = DEFAULT_TOTAL_TIMEOUT_S
    connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_S
    read_timeout_s: float = DEFAULT_READ_TIMEOUT_S


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration."""

    token: str = field(repr=False)
    api_base_url: str = DEFAULT_API_BASE_URL
    policy: PolicyConfig = PolicyConfig()
    audit_log_path: Path | None = None
    audit_max_bytes: int = 5 * 1024 * 1024
    audit_max_backups: int = 2
    limits: LimitsConfig = LimitsConfig()
    log_level: str = "INFO"
    translations_path: Path | None = None


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _parse_allowed_repos(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    parts = [p.strip() for p in value.split(",")]
    repos = [p for p in parts if p]
    for repo in repos:
        owner, sep, name = repo.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ConfigError(message="ISSUE_DEPS_MCP_ALLOWED_REPOS entries must look like owner/repo")
    return frozenset(repos)


def _parse_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_TOTAL_TIMEOUT_S
    try:
        timeout = float(value)
    except ValueError as exc:
        raise ConfigError(message="ISSUE_DEPS_MCP_TIMEOUT_S must be a number") from exc
    if timeout <= 0:
        raise ConfigError(message="ISSUE_DEPS_MCP_TIMEOUT_S must be > 0")
    return timeout


def _optional_absolute_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if not raw:
        return None
    p = Path(raw)
    if not p.is_absolute():
        raise ConfigError(message=f"{name} must be an absolute path when set")
    return p


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        ConfigError: If configuration is missing/invalid.
    """
    token = os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN") or os.getenv("GITHUB_TOKEN")
    if not token or not token.strip():
        raise ConfigError(message="Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)")

    api_base_url = (os.getenv("GITHUB_API_URL") or DEFAULT_API_BASE_URL).strip().rstrip("/")
    if not api_base_url.startswith("https://"):
        raise ConfigError(message="GITHUB_API_URL must be an https:// URL")

    log_level = (os.getenv("ISSUE_DEPS_MCP_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigError(message="ISSUE_DEPS_MCP_LOG_LEVEL must be a standard logging level name")

    total_timeout = _parse_timeout(os.getenv("ISSUE_DEPS_MCP_TIMEOUT_S"))

    return AppConfig(
        token=token.strip(),
        api_base_url=api_base_url,
        policy=PolicyConfig(
            read_only=_parse_bool(os.getenv("ISSUE_DEPS_MCP_READ_ONLY")),
            allowed_repos=_parse_allowed_repos(os.getenv("ISSUE_DEPS_MCP_ALLOWED_REPOS")),
        ),
        audit_log_path=_optional_absolute_path("ISSUE_DEPS_MCP_AUDIT_LOG_PATH"),
        limits=LimitsConfig(
            total_timeout_s=total_timeout,
            connect_timeout_s=min(DEFAULT_CONNECT_TIMEOUT_S, total_timeout),
            read_timeout_s=min(DEFAULT_READ_TIMEOUT_S, total_timeout),
        ),
        log_level=log_level,
        translations_path=_optional_absolute_path("ISSUE_DEPS_MCP_TRANSLATIONS_PATH"),
    )

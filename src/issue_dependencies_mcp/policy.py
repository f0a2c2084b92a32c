"""Policy evaluation.

This module enforces:
- read-only mode (only tools annotated read-only may run)
- repository allowlist for the primary owner/repo of a call
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """Policy decision result."""

    allowed: bool
    reason: str | None = None


class Policy:
    """Policy engine."""

    def __init__(self, *, read_only: bool, allowed_repos: frozenset[str]) -> None:
        """Create a policy evaluator."""
        self._read_only = read_only
        self._allowed_repos = frozenset(r.lower() for r in allowed_repos)

    @property
    def read_only(self) -> bool:
        """Return whether mutation tools are disabled."""
        return self._read_only

    @property
    def allowlist_size(self) -> int:
        return len(self._allowed_repos)

    def check_operation_allowed(self, *, operation: str, read_only_hint: bool) -> PolicyDecision:
        """Return whether the operation may run under the current mode."""
        if self._read_only and not read_only_hint:
            return PolicyDecision(False, f"{operation} is disabled in read-only mode")
        return PolicyDecision(True)

    def check_repo_allowed(self, target_repo: str) -> PolicyDecision:
        """Return whether the target repo is allowed by the configured allowlist.

        Matching is case-insensitive, like GitHub owner and repository names.
        """
        if not self._allowed_repos:
            return PolicyDecision(True)
        if target_repo.lower() in self._allowed_repos:
            return PolicyDecision(True)
        return PolicyDecision(False, "Repository is not in allowlist")

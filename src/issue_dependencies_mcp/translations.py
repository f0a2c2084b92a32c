"""Human-readable tool titles and descriptions.

Every string shown to users goes through a translation helper called as
``t(key, default)``. Hosts can override any key with an environment variable
(``ISSUE_DEPS_MCP_<KEY>``) or a JSON file mapping keys to strings; the set of keys
seen at runtime can be exported to bootstrap such a file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "ISSUE_DEPS_MCP_"


class TranslationHelper:
    """Resolve translation keys and remember every key that was asked for."""

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._overrides = dict(overrides or {})
        self._environ = os.environ if environ is None else environ
        self._seen: dict[str, str] = {}

    @classmethod
    def from_file(cls, path: Path | None, *, environ: Mapping[str, str] | None = None) -> TranslationHelper:
        """Load overrides from a JSON object file; a missing path means no overrides."""
        if path is None:
            return cls(environ=environ)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("Translations file not found; using defaults")
            return cls(environ=environ)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(message="Translations file is unreadable or not valid JSON") from exc

        if not isinstance(raw, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in raw.items()):
            raise ConfigError(message="Translations file must be a JSON object of string values")
        return cls(raw, environ=environ)

    def __call__(self, key: str, default: str) -> str:
        value = self._environ.get(f"{ENV_PREFIX}{key}")
        if not value:
            value = self._overrides.get(key, default)
        self._seen[key] = value
        return value

    def as_dict(self) -> dict[str, str]:
        """Keys resolved so far with their current values."""
        return dict(sorted(self._seen.items()))

    def export(self, path: Path) -> None:
        """Write resolved keys to `path` as pretty JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.as_dict(), indent=2) + "\n", encoding="utf-8")

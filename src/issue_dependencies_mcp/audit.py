"""Structured audit logging.

One event is written per tool call. Events never carry the API token or request bodies.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

AUDIT_LOGGER_NAME = "issue_dependencies_mcp.audit"


def new_correlation_id() -> str:
    """Generate a random correlation id for traceability."""
    return uuid.uuid4().hex


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """A single audit event."""

    timestamp: str
    correlation_id: str
    operation: str
    target: str
    outcome: str
    reason: str | None
    duration_ms: int | None

    def to_json(self) -> str:
        payload: dict[str, object] = {
            "timestamp": self.timestamp,
            "correlation_id": self.correlation_id,
            "operation": self.operation,
            "target": self.target,
            "outcome": self.outcome,
        }
        if self.reason is not None:
            payload["reason"] = self.reason
        if self.duration_ms is not None:
            payload["duration_ms"] = self.duration_ms
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class AuditLogger:
    """Emits audit events as JSON lines through `logging`.

    Events always go to the ``issue_dependencies_mcp.audit`` logger (stderr via the
    root handler). When a sink path is configured, they are also appended to a
    size-rotated JSONL file.
    """

    def __init__(
        self,
        *,
        sink_path: Path | None = None,
        max_bytes: int = 5 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        self._logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self._file_handler: RotatingFileHandler | None = None
        if sink_path is not None:
            try:
                sink_path.parent.mkdir(parents=True, exist_ok=True)
                handler = RotatingFileHandler(
                    sink_path,
                    maxBytes=max_bytes,
                    backupCount=max_backups,
                    encoding="utf-8",
                    delay=True,
                )
            except OSError:
                logging.getLogger(__name__).warning("Audit file sink unavailable; logging to stderr only")
            else:
                handler.setFormatter(logging.Formatter("%(message)s"))
                self._file_handler = handler

    @property
    def file_sink_enabled(self) -> bool:
        return self._file_handler is not None

    def write_event(self, event: AuditEvent) -> None:
        """Write an audit event to the audit logger and the optional file sink."""
        line = event.to_json()
        self._logger.info(line)
        if self._file_handler is not None:
            record = self._logger.makeRecord(self._logger.name, logging.INFO, __file__, 0, line, None, None)
            # handle() reports I/O failures through handleError() instead of raising.
            self._file_handler.handle(record)

    def close(self) -> None:
        if self._file_handler is not None:
            self._file_handler.close()

    def measure_start(self) -> float:
        """Return a monotonic start timestamp for duration measurement."""
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        """Convert a monotonic start timestamp into elapsed milliseconds."""
        return int((time.monotonic() - start) * 1000)


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    """Construct an audit event."""
    return AuditEvent(
        timestamp=_now_rfc3339(),
        correlation_id=correlation_id,
        operation=operation,
        target=target,
        outcome=outcome,
        reason=reason,
        duration_ms=duration_ms,
    )

"""
Structured logging for dispatch events.

Outputs one JSON object per line for log collectors.  Only decisions and
outcomes are logged as events - the raw webhook body is never logged at
info level.

Logged events:
- webhook.received
- dispatch.matched
- action.succeeded
- action.failed
- action.not_found

Usage:
    from amgate.logger import DispatchLogger, configure_logging

    configure_logging(level="info", fmt="json")
    events = DispatchLogger(receiver="amgate")
    events.log_webhook_received(group_key="{}:{}", status="firing", alert_count=2)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Event logger writes pre-rendered JSON lines
_event_logger = logging.getLogger("amgate.events")
_event_logger.setLevel(logging.INFO)
_event_logger.propagate = False

if not _event_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _event_logger.addHandler(handler)


class JsonFormatter(logging.Formatter):
    """Render standard log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """
    Configure the ``amgate`` logger hierarchy.

    Args:
        level: debug, info, warning or error (anything else means info)
        fmt: json or text
    """
    root = logging.getLogger("amgate")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root.handlers.clear()
    root.addHandler(handler)


class DispatchLogger:
    """
    Structured logger for dispatch events.

    Each entry includes standard fields for filtering:
    - service, receiver
    - event type and event-specific attributes
    """

    def __init__(
        self,
        receiver: str = "",
        service_name: str = "amgate",
    ):
        self.receiver = receiver
        self.service_name = service_name
        self._logger = _event_logger

    def _emit(self, event: str, level: str = "info", **fields: Any) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
        }
        if self.receiver:
            entry["receiver"] = self.receiver
        entry.update({k: v for k, v in fields.items() if v is not None})

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_webhook_received(
        self,
        group_key: str,
        status: str,
        alert_count: int,
        truncated_alerts: int = 0,
    ) -> None:
        """Log an accepted webhook delivery."""
        self._emit(
            event="webhook.received",
            group_key=group_key,
            status=status,
            alert_count=alert_count,
            truncated_alerts=truncated_alerts,
        )

    def log_matched(
        self,
        action: str,
        fingerprint: str,
        alert_status: str,
        alertname: Optional[str] = None,
    ) -> None:
        """Log an (alert, action) match."""
        self._emit(
            event="dispatch.matched",
            action=action,
            fingerprint=fingerprint,
            alert_status=alert_status,
            alertname=alertname,
        )

    def log_action_succeeded(
        self,
        action: str,
        fingerprint: str,
        duration_ms: float,
        message: str = "",
    ) -> None:
        self._emit(
            event="action.succeeded",
            action=action,
            fingerprint=fingerprint,
            duration_ms=round(duration_ms, 3),
            message=message or None,
        )

    def log_action_failed(
        self,
        action: str,
        fingerprint: str,
        error: str,
        duration_ms: float = 0.0,
    ) -> None:
        self._emit(
            event="action.failed",
            level="error",
            action=action,
            fingerprint=fingerprint,
            error=error,
            duration_ms=round(duration_ms, 3),
        )

    def log_action_not_found(self, action: str, fingerprint: str) -> None:
        """Log a match whose action has no registered implementation."""
        self._emit(
            event="action.not_found",
            level="error",
            action=action,
            fingerprint=fingerprint,
        )

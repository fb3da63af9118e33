"""Structured JSON logging configuration.

Configures Python logging to emit JSON-formatted log entries with required
fields: request_id, level, timestamp. RPC-specific fields are added
contextually (endpoint_url, attempt, latency_ms, error_reason for endpoint
failures; tx_hash, duration_ms for validation requests).

SECURITY: RPC provider URLs frequently embed API keys in their path or
query string. Those are redacted before anything is written.
"""

from __future__ import annotations

import json
import logging
import re
from contextvars import ContextVar, Token
from datetime import datetime, timezone

_request_id_var: ContextVar[str | None] = ContextVar("txverify_request_id", default=None)

# Patterns that should be redacted from log output
_SENSITIVE_PATTERNS = re.compile(
    r"(api.key|apikey|secret|password|token|authorization)"
    r"[\s]*[=:]\s*[^\s&]+",
    re.IGNORECASE,
)

# Provider keys embedded in URL paths, e.g. https://bsc.example.io/v3/<key>
_URL_KEY_PATTERN = re.compile(r"(https?://[^\s/]+/(?:v\d+/)?)([A-Za-z0-9_-]{24,})")

_CONTEXT_FIELDS = (
    "endpoint_url",
    "attempt",
    "max_attempts",
    "latency_ms",
    "tx_hash",
    "error_reason",
    "duration_ms",
)


def bind_request_id(request_id: str | None) -> Token:
    """Attach a request ID to the current context."""
    return _request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id_var.reset(token)


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON with structured fields.

    Each entry contains at minimum: request_id, level, timestamp, message.
    Additional fields can be attached via the ``extra`` dict on log calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self._sanitize(record.getMessage()),
            "request_id": getattr(record, "request_id", None) or _request_id_var.get(),
        }

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                value = getattr(record, name)
                entry[name] = self._sanitize(value) if isinstance(value, str) else value

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self._sanitize(
                self.formatException(record.exc_info)
            )

        return json.dumps(entry, default=str)

    @staticmethod
    def _sanitize(text: str) -> str:
        """Remove sensitive values from log text."""
        text = _SENSITIVE_PATTERNS.sub("[REDACTED]", text)
        return _URL_KEY_PATTERN.sub(r"\1[REDACTED]", text)


def configure_logging(level: str = "INFO", *, json_logs: bool = True) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    json_logs:
        Emit JSON lines when true, plain text otherwise (local development).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    root.addHandler(handler)

    # httpx logs every request at INFO, including full provider URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)

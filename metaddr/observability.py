"""
metaddr Observability

Structured logging for the codec boundaries (document loading, link
validation, configuration and the CLI). The codec itself is pure and does
not log on its hot paths.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    Application Code                      │
    │   logger.warning("msg", address=x, error_code=...)       │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                    MetaddrLogger                         │
    │        layer + operation + structured context            │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │          StructuredHandler (json) / TextFormatter        │
    └─────────────────────────────────────────────────────────┘

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "metaddr"


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Layer(Enum):
    """Package layers for categorization."""
    CODEC = "codec"
    DETAILS = "details"
    LINKS = "links"
    SERDE = "serde"
    SCHEMA = "schema"
    CONFIG = "config"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    layer: str = ""
    operation: str = ""
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _event_from_record(record: logging.LogRecord) -> LogEvent:
    event = LogEvent(
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        level=record.levelname.lower(),
        logger=record.name,
        message=record.getMessage(),
        layer=getattr(record, "layer", ""),
        operation=getattr(record, "operation", ""),
        error_code=getattr(record, "error_code", ""),
        context=getattr(record, "context", {}),
    )
    if record.exc_info:
        event.exception = "".join(traceback.format_exception(*record.exc_info))
    return event


class StructuredHandler(logging.Handler):
    """Logging handler that outputs one JSON object per line."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.write(_event_from_record(record).to_json() + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


class TextFormatter(logging.Formatter):
    """Human readable single line format with trailing key=value context."""

    def format(self, record: logging.LogRecord) -> str:
        event = _event_from_record(record)
        parts = [event.timestamp, event.level.upper(), event.logger]
        if event.layer:
            parts.append(f"[{event.layer}]")
        parts.append(event.message)
        if event.error_code:
            parts.append(f"error_code={event.error_code}")
        parts.extend(f"{k}={v}" for k, v in event.context.items())
        line = " ".join(parts)
        if event.exception:
            line += "\n" + event.exception.rstrip()
        return line


class MetaddrLogger:
    """
    Structured logger for metaddr components.

    Adds layer information and keyword context to every event. Output
    handlers are installed once on the ``metaddr`` root logger by
    ``configure_logging``.
    """

    def __init__(self, name: str, layer: Layer):
        self.name = name
        self.layer = layer
        self._logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{layer.value}.{name}")

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return self._logger.isEnabledFor(getattr(logging, level.value.upper()))

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)


def configure_logging(
    level: str = "warning",
    log_format: str = "json",
    stream: Any = None,
) -> logging.Logger:
    """Install the output handler and level on the ``metaddr`` logger tree.

    Calling it again replaces the previously installed handler.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, LogLevel(level.lower()).value.upper()))
    for existing in list(root.handlers):
        if getattr(existing, "_metaddr_handler", False):
            root.removeHandler(existing)

    if log_format == "json":
        handler: logging.Handler = StructuredHandler(stream)
    else:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(TextFormatter())
    handler._metaddr_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root


def get_logger(name: str, layer: Layer) -> MetaddrLogger:
    """Get a logger for a metaddr component."""
    return MetaddrLogger(name, layer)

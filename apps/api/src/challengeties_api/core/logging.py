"""Structured JSON logging for the API process.

Everything goes through Loguru. Records emitted by libraries that use the
standard ``logging`` module (uvicorn, sqlalchemy, httpx) are forwarded into
Loguru so that every line on stdout has the same shape.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Mapping

from loguru import logger
from opentelemetry import trace

# Attributes every LogRecord carries; anything else was passed via ``extra=``.
_STANDARD_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_QUIET_LOGGERS: Mapping[str, int] = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "aiosqlite": logging.INFO,
}


def _trace_context() -> Dict[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


class JsonLogSink:
    """Loguru sink writing one JSON object per line."""

    def __init__(self, *, service_name: str, environment: str, version: str, stream=None) -> None:
        self._static = {"service": service_name, "environment": environment, "version": version}
        self._stream = stream

    def render(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name.lower(),
            "message": record["message"],
            "logger": record["name"],
            **self._static,
            **_trace_context(),
        }
        entry.update(record["extra"])

        exception = record["exception"]
        if exception is not None and exception.type is not None:
            entry["exception"] = f"{exception.type.__name__}: {exception.value}"
        return entry

    def __call__(self, message) -> None:
        stream = sys.stdout if self._stream is None else self._stream
        stream.write(json.dumps(self.render(message.record), default=str, ensure_ascii=False) + "\n")
        stream.flush()


class InterceptHandler(logging.Handler):
    """Forward stdlib records into Loguru, keeping ``extra=`` fields as bound context."""

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so Loguru reports the original caller.
        frame, depth = logging.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        context = {key: value for key, value in vars(record).items() if key not in _STANDARD_RECORD_FIELDS}
        logger.bind(**context).opt(depth=depth, exception=record.exc_info).log(
            level,
            "{}",
            record.getMessage(),
        )


def configure_logging(*, service_name: str, environment: str, version: str) -> None:
    """Route all application and library logs to JSON lines on stdout."""

    logger.remove()
    logger.add(
        JsonLogSink(service_name=service_name, environment=environment, version=version),
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


__all__ = ["InterceptHandler", "JsonLogSink", "configure_logging"]

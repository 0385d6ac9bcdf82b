"""Structured logging configuration helpers."""

from __future__ import annotations

import json
import logging
import os
import socket
import traceback
from collections.abc import Iterable, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

__all__ = [
    "configure_logging",
    "get_structured_logger",
    "bind_context",
    "clear_context",
    "logging_context",
    "StructuredJSONFormatter",
    "StructuredLoggerAdapter",
]

_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "context",
        "taskName",
    }
)

_context: ContextVar[dict[str, Any]] = ContextVar("user_lookup_log_context", default={})


@lru_cache(maxsize=1)
def _get_host() -> str:
    host = os.getenv("HOSTNAME")
    if host:
        return host
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def _json_default(value: Any) -> str:
    return repr(value)


class StructuredJSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, *, utc: bool = True, service: str = "user_lookup") -> None:
        super().__init__()
        self.utc = utc
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "schema": "log.v1",
            "ts": datetime.fromtimestamp(record.created, UTC if self.utc else None).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", None) or self.service,
            "host": _get_host(),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        context = getattr(record, "context", None) or _context.get()
        for key, value in dict(context).items():
            payload.setdefault(key, value)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            payload.setdefault(key, value)

        if record.exc_info:
            payload["error"] = {
                "type": getattr(record.exc_info[0], "__name__", ""),
                "message": str(record.exc_info[1]),
                "stack": "".join(traceback.format_exception(*record.exc_info)).strip(),
            }
        elif record.exc_text:
            payload["error"] = {"message": record.exc_text}

        return json.dumps(payload, default=_json_default, ensure_ascii=True)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that turns keyword arguments into structured fields.

    ``logger.info("reloaded", event="x", entries=3)`` attaches ``event`` and
    ``entries`` to the record; bound context and static adapter context are
    merged under ``context``.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.setdefault("extra", {})

        for key in [k for k in kwargs if k not in {"exc_info", "stack_info", "stacklevel", "extra"}]:
            extra.setdefault(key, kwargs.pop(key))

        context_data = _context.get()
        if context_data or self.extra:
            extra.setdefault("context", {**dict(context_data), **dict(self.extra or {})})
        return msg, kwargs


def configure_logging(
    level: int | str = logging.INFO,
    *,
    stream: Any | None = None,
    handlers: Iterable[logging.Handler] | None = None,
    formatter: logging.Formatter | None = None,
    reset: bool = True,
) -> None:
    """Configure the root logger with structured JSON output."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = formatter or StructuredJSONFormatter()
    resolved: Iterable[logging.Handler] = handlers or (logging.StreamHandler(stream),)

    root = logging.getLogger()
    if reset:
        root.handlers = []

    for handler in resolved:
        if handler.level == logging.NOTSET:
            handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(level)


def get_structured_logger(name: str, **context: Any) -> StructuredLoggerAdapter:
    """Return a structured logger adapter with optional static context."""
    context = {k: v for k, v in context.items() if v is not None}
    return StructuredLoggerAdapter(logging.getLogger(name), context)


def bind_context(**kwargs: Any) -> Token:
    """Bind key/value pairs to the contextual log scope."""
    current = dict(_context.get())
    current.update({k: v for k, v in kwargs.items() if v is not None})
    return _context.set(current)


def clear_context(token: Token | None = None) -> None:
    """Clear contextual information, optionally restoring a previous token."""
    if token is not None:
        _context.reset(token)
    else:
        _context.set({})


@contextmanager
def logging_context(**kwargs: Any):
    """Bind log context for the enclosed block."""
    token = bind_context(**kwargs)
    try:
        yield
    finally:
        clear_context(token)

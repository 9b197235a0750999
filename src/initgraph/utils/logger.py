# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Logging helpers for initgraph.

The library only ever calls :func:`get_logger`; it never configures handlers
on import. Applications opt into output with :func:`setup_logger`:

    >>> from initgraph.utils.logger import setup_logger
    >>> setup_logger(level=logging.DEBUG)            # colored, human readable
    >>> setup_logger(use_json=True, force=True)      # one JSON object per line

Structured context travels through ``extra=``. Every library record carries
an ``event`` key such as ``container.resolve.done``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from typing import Any, ClassVar


__all__ = ["ColoredFormatter", "JSONFormatter", "get_logger", "setup_logger"]

_LIBRARY_ROOT = "initgraph"

# Attributes present on every LogRecord; anything else came in via ``extra=``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys() | {"message", "asctime"}
)

logging.getLogger(_LIBRARY_ROOT).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``initgraph``."""
    if name != _LIBRARY_ROOT and not name.startswith(_LIBRARY_ROOT + "."):
        name = f"{_LIBRARY_ROOT}.{name}"
    return logging.getLogger(name)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS}


class ColoredFormatter(logging.Formatter):
    """Formatter that tints the level name with ANSI colors.

    Subclasses override ``LEVEL_COLORS`` to change the palette.
    """

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[1;31m",  # Bold red
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, *, use_color: bool = True) -> None:
        super().__init__(fmt or "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)
        color = self.LEVEL_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Args:
        serializer: Turns the payload dict into a string. Defaults to compact
            ``json.dumps`` with ``default=str``.
        payload_transformer: Optional hook applied to the payload before
            serialization, e.g. to validate or reshape context.
    """

    def __init__(
        self,
        *,
        serializer: Callable[[dict[str, Any]], str] | None = None,
        payload_transformer: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
    ) -> None:
        super().__init__()
        self._serializer = serializer or _default_serializer
        self._transform = payload_transformer

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _extra_fields(record)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if self._transform is not None:
            payload = self._transform(payload)
        return self._serializer(payload).rstrip("\n")


def _default_serializer(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def setup_logger(
    *,
    level: int | str = logging.INFO,
    use_json: bool = False,
    json_serializer: Callable[[dict[str, Any]], str] | None = None,
    payload_transformer: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
    stream: Any = None,
    force: bool = False,
) -> logging.Handler:
    """Install a stream handler on the root logger.

    Args:
        level: Root log level.
        use_json: Emit JSON lines instead of colored text.
        json_serializer: Custom serializer for JSON output.
        payload_transformer: Hook applied to each JSON payload.
        stream: Target stream, ``sys.stderr`` by default.
        force: Remove existing root handlers first.

    Returns:
        The installed handler.
    """
    root = logging.getLogger()
    if force:
        for existing in list(root.handlers):
            root.removeHandler(existing)
            existing.close()

    target = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(target)
    if use_json:
        handler.setFormatter(JSONFormatter(serializer=json_serializer, payload_transformer=payload_transformer))
    else:
        use_color = bool(getattr(target, "isatty", lambda: False)())
        handler.setFormatter(ColoredFormatter(use_color=use_color))

    root.addHandler(handler)
    root.setLevel(level)
    return handler

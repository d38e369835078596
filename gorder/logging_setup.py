"""Log formatting for the services."""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime

_HANDLER_FLAG = "_gorder_handler"
_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_PLAIN = re.compile(r"^[A-Za-z0-9\-._/@^+]+$")
_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


def _quote(value: str) -> str:
    if _PLAIN.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _level(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelno, record.levelname.lower())


class KeyValueFormatter(logging.Formatter):
    """``time=... severity=... message=...`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds")
        parts = [
            f"time={_quote(when)}",
            f"severity={_level(record)}",
            f"message={_quote(record.getMessage())}",
        ]
        if record.exc_info:
            parts.append(f"error={_quote(self.formatException(record.exc_info))}")
        return " ".join(parts)


class PrefixedFormatter(logging.Formatter):
    """Human-friendly ``[time]  LEVEL logger: message`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{when}] {_level(record).upper():>7} {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _is_local() -> bool:
    return os.environ.get("LOCAL_ENV", "") in _TRUE_VALUES


def set_formatter(logger: logging.Logger) -> logging.Handler:
    """Give ``logger`` its service output handler and return it."""
    handler = next((h for h in logger.handlers if getattr(h, _HANDLER_FLAG, False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)
    handler.setFormatter(PrefixedFormatter() if _is_local() else KeyValueFormatter())
    return handler


def init_logging() -> None:
    """Configure the root logger for debug-level service output."""
    root = logging.getLogger()
    set_formatter(root)
    root.setLevel(logging.DEBUG)
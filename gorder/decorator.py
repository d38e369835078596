"""Logging and metrics wrappers for command and query handlers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

_log = logging.getLogger(__name__)


class MetricsClient(Protocol):
    """Receives counter increments."""

    def inc(self, key: str, value: int) -> None: ...


class Handler(Protocol):
    def handle(self, cmd: Any) -> Any: ...


class TodoMetrics:
    """Metrics client that only records increments in the debug log."""

    def inc(self, key: str, value: int) -> None:
        _log.debug("metric %s += %d", key, value)


def action_name(cmd: Any) -> str:
    """Name of the command or query, taken from its type."""
    return type(cmd).__name__


@dataclass
class LoggingDecorator:
    """Logs the outcome of every call to the wrapped handler."""

    logger: logging.Logger | logging.LoggerAdapter
    base: Handler

    def handle(self, cmd: Any) -> Any:
        fields = {"query": action_name(cmd), "query_body": f"#{cmd}"}
        try:
            result = self.base.handle(cmd)
        except Exception as exc:
            self.logger.error("Failed to execute query: %s", exc, extra=fields)
            raise
        self.logger.info("Query execute successfully", extra=fields)
        return result


@dataclass
class MetricsDecorator:
    """Counts duration, successes and failures of the wrapped handler."""

    base: Handler
    client: MetricsClient

    def handle(self, cmd: Any) -> Any:
        started = time.monotonic()
        name = action_name(cmd).lower()
        ok = False
        try:
            result = self.base.handle(cmd)
            ok = True
            return result
        finally:
            elapsed = int(time.monotonic() - started)
            self.client.inc(f"querys.{name}.duration", elapsed)
            outcome = "success" if ok else "failure"
            self.client.inc(f"querys.{name}.{outcome}", 1)


def apply_command_decorators(
    handler: Handler, logger: logging.Logger | logging.LoggerAdapter, metrics_client: MetricsClient
) -> LoggingDecorator:
    """Wrap a command handler with metrics, then logging."""
    return LoggingDecorator(logger=logger, base=MetricsDecorator(base=handler, client=metrics_client))


def apply_query_decorators(
    handler: Handler, logger: logging.Logger | logging.LoggerAdapter, metrics_client: MetricsClient
) -> LoggingDecorator:
    """Wrap a query handler with metrics, then logging."""
    return LoggingDecorator(logger=logger, base=MetricsDecorator(base=handler, client=metrics_client))
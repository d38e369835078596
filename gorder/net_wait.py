"""Waiting for a TCP address to accept connections."""

from __future__ import annotations

import logging
import socket
import time
from typing import Any

from gorder.config import get_config

_POLL_INTERVAL = 0.2
_DIAL_TIMEOUT = 1.0

_log = logging.getLogger(__name__)


def _split(addr: str) -> tuple[str, int]:
    host, _, port = addr.rpartition(":")
    return host or "localhost", int(port)


def wait_for(addr: str, timeout: float) -> bool:
    """Return True once ``addr`` accepts a TCP connection, False after ``timeout`` seconds."""
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        try:
            host, port = _split(addr)
            with socket.create_connection((host, port), timeout=min(_DIAL_TIMEOUT, remaining)):
                return True
        except (OSError, ValueError):
            pass
        time.sleep(max(0.0, min(_POLL_INTERVAL, deadline - time.monotonic())))


def _address(config: Any, key: str) -> str:
    config = config if config is not None else get_config()
    return str(config.get(key, "") or "")


def wait_for_order_service(timeout: float, config: Any = None) -> bool:
    """Wait for the order service's RPC address to come up."""
    _log.info("waiting for order grpc client to connect at %ss", timeout)
    return wait_for(_address(config, "order.grpc-addr"), timeout)


def wait_for_stock_service(timeout: float, config: Any = None) -> bool:
    """Wait for the stock service's RPC address to come up."""
    _log.info("waiting for stock grpc client to connect at %ss", timeout)
    return wait_for(_address(config, "stock.grpc-addr"), timeout)
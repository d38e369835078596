"""Named Redis clients from configuration, and SETNX/DEL helpers."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any

import redis

from gorder.config import get_config
from gorder.singleton import Singleton

LOCAL_SUPPLIER = "local"
CONF_NAME = "redis"

_log = logging.getLogger(__name__)


def _report(action: str, started_at: datetime, started: float, error: Exception | None, **fields: Any) -> None:
    extra = {
        "start": started_at.isoformat(),
        "error": error,
        "cost": int((time.monotonic() - started) * 1000),
        **fields,
    }
    outcome = "success" if error is None else "error"
    _log.info("redis %s %s", action, outcome, extra=extra)


def set_nx(client: Any, key: str, value: str, ttl: int | timedelta) -> bool:
    """Set ``key`` only if absent, expiring after ``ttl``; return whether it was set."""
    started_at, started = datetime.now(), time.monotonic()
    error: Exception | None = None
    try:
        if client is None:
            raise ValueError("redis client is None")
        return bool(client.set(key, value, nx=True, ex=ttl))
    except Exception as exc:
        error = exc
        raise
    finally:
        _report("setnx", started_at, started, error, key=key, value=value)


def delete(client: Any, key: str) -> int:
    """Delete ``key``; return the number of keys removed."""
    started_at, started = datetime.now(), time.monotonic()
    error: Exception | None = None
    try:
        if client is None:
            raise ValueError("redis client is None")
        return int(client.delete(key))
    except Exception as exc:
        error = exc
        raise
    finally:
        _report("del", started_at, started, error, key=key)


def _millis(value: Any) -> float | None:
    try:
        ms = float(value or 0)
    except (TypeError, ValueError):
        return None
    return ms / 1000 if ms > 0 else None


def _build_client(name: str) -> redis.Redis:
    section = get_config().sub(f"{CONF_NAME}.{name}")
    if section is None:
        raise KeyError(f"no redis configuration named {name!r}")
    max_conn = section.get_int("max_conn") or section.get_int("pool_size") or None
    return redis.Redis(
        host=str(section.get("ip", "")),
        port=section.get_int("port"),
        max_connections=max_conn,
        socket_timeout=_millis(section.get("read_timeout")),
        socket_connect_timeout=_millis(section.get("conn_timeout")),
    )


_singleton = Singleton(_build_client)


def client(name: str) -> redis.Redis:
    """Return the shared client for the configuration section ``redis.<name>``."""
    return _singleton.get(name)


def local_client() -> redis.Redis:
    """Return the client configured under ``redis.local``."""
    return client(LOCAL_SUPPLIER)


def init_clients() -> dict[str, redis.Redis]:
    """Create a client for every configured section under ``redis``."""
    sections = get_config().get(CONF_NAME) or {}
    return {name: client(name) for name in sections}
"""Shared HTTP server setup for the services."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from flask import Flask

from gorder import tracing
from gorder.config import get_config

DEFAULT_HOST = "0.0.0.0"

_log = logging.getLogger(__name__)


class _TracingMiddleware:
    """Runs each request inside a tracing span."""

    def __init__(self, app: Callable[..., Iterable[bytes]]) -> None:
        self._app = app

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        name = f"{environ.get('REQUEST_METHOD', '')} {environ.get('PATH_INFO', '')}"
        with tracing.start(name):
            return list(self._app(environ, start_response))


def _set_middlewares(app: Flask) -> None:
    @app.errorhandler(500)
    def recover(exc: Any) -> Any:
        original = getattr(exc, "original_exception", None) or exc
        _log.error("recovered from panic: %s", original, exc_info=original)
        return "", 500

    app.wsgi_app = _TracingMiddleware(app.wsgi_app)  # type: ignore[method-assign]


def create_app(wrapper: Callable[[Flask], None]) -> Flask:
    """Build a Flask app with recovery and tracing, then let ``wrapper`` add routes."""
    app = Flask(__name__)
    _set_middlewares(app)
    wrapper(app)
    return app


def run_http_server(service_name: str, wrapper: Callable[[Flask], None], config: Any = None) -> Flask:
    """Serve on the ``<service>.http-addr`` address; return the app once it stops."""
    config = config if config is not None else get_config()
    addr = str(config.get(f"{service_name}.http-addr", "") or "")
    if not addr:
        raise ValueError("addr is empty")
    return run_http_server_on_addr(addr, wrapper)


def run_http_server_on_addr(addr: str, wrapper: Callable[[Flask], None]) -> Flask:
    """Serve the app built by ``wrapper`` on ``host:port``; return it once it stops."""
    app = create_app(wrapper)
    host, _, port = addr.rpartition(":")
    app.run(host=host or DEFAULT_HOST, port=int(port))
    return app
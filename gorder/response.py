"""Uniform JSON response envelope for HTTP handlers."""

from __future__ import annotations

from typing import Any

from gorder import tracing

TRACE_VIEWER = "http://centos2:16686/trace/"
ERRNO_SUCCESS = 0
ERRNO_FAILURE = 2
HTTP_OK = 200


def trace_url(trace: str) -> str:
    """Link to the trace viewer for ``trace``."""
    return f"{TRACE_VIEWER}{trace}"


def respond(err: BaseException | None, data: Any = None, with_url: bool = True) -> tuple[int, dict[str, Any]]:
    """Build the (status, body) pair for a handler outcome.

    The status is always 200; failure is signalled by ``errno``. With
    ``with_url`` the body uses snake-case keys and includes a trace link;
    otherwise it uses the capitalised field names.
    """
    trace = tracing.trace_id()
    if err is None:
        errno, message, payload = ERRNO_SUCCESS, "success", data
    else:
        errno, message, payload = ERRNO_FAILURE, str(err), None
    if with_url:
        body = {
            "errno": errno,
            "message": message,
            "data": payload,
            "trace_id": trace,
            "trace_id_url": trace_url(trace),
        }
    else:
        body = {"Errno": errno, "Message": message, "Data": payload, "TraceID": trace}
    return HTTP_OK, body
"""Lightweight span tracking with W3C trace-context and B3 propagation."""

from __future__ import annotations

import re
import secrets
import time
from collections.abc import Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field

INVALID_TRACE_ID = "0" * 32
INVALID_SPAN_ID = "0" * 16

TRACEPARENT = "traceparent"
B3_TRACE_ID = "x-b3-traceid"
B3_SPAN_ID = "x-b3-spanid"
B3_SAMPLED = "x-b3-sampled"

_HEX32 = re.compile(r"^[0-9a-f]{32}$")
_HEX16 = re.compile(r"^[0-9a-f]{16}$")
_HEX2 = re.compile(r"^[0-9a-f]{2}$")


@dataclass
class Span:
    """A unit of traced work."""

    name: str
    trace_id: str
    span_id: str
    parent_id: str | None = None
    remote: bool = False
    events: list[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None

    def add_event(self, name: str) -> None:
        """Record a named event on this span."""
        self.events.append(name)

    @property
    def ended(self) -> bool:
        return self.end_time is not None


_current: ContextVar[Span | None] = ContextVar("gorder_current_span", default=None)


def current_span() -> Span | None:
    """Return the active span, if any."""
    return _current.get()


@contextmanager
def start(name: str) -> Iterator[Span]:
    """Open a child of the active span (or a new trace) for the block's duration."""
    parent = _current.get()
    span = Span(
        name=name,
        trace_id=parent.trace_id if parent else secrets.token_hex(16),
        span_id=secrets.token_hex(8),
        parent_id=parent.span_id if parent else None,
    )
    token = _current.set(span)
    try:
        yield span
    finally:
        span.end_time = time.time()
        _current.reset(token)


def trace_id() -> str:
    """Return the active trace id, or the all-zero id when nothing is traced."""
    span = _current.get()
    return span.trace_id if span else INVALID_TRACE_ID


def inject(carrier: MutableMapping[str, object]) -> MutableMapping[str, object]:
    """Write the active span's context into ``carrier`` and return it."""
    span = _current.get()
    if span is None:
        return carrier
    carrier[TRACEPARENT] = f"00-{span.trace_id}-{span.span_id}-01"
    carrier[B3_TRACE_ID] = span.trace_id
    carrier[B3_SPAN_ID] = span.span_id
    carrier[B3_SAMPLED] = "1"
    return carrier


def _valid_ids(trace: str, span: str) -> bool:
    return (
        bool(_HEX32.match(trace))
        and bool(_HEX16.match(span))
        and trace != INVALID_TRACE_ID
        and span != INVALID_SPAN_ID
    )


def _from_traceparent(value: str) -> tuple[str, str] | None:
    parts = value.strip().lower().split("-")
    if len(parts) < 4 or not _HEX2.match(parts[0]) or parts[0] == "ff":
        return None
    trace, span = parts[1], parts[2]
    return (trace, span) if _valid_ids(trace, span) else None


def _from_b3(headers: Mapping[str, str]) -> tuple[str, str] | None:
    trace = headers.get(B3_TRACE_ID, "").strip().lower()
    span = headers.get(B3_SPAN_ID, "").strip().lower()
    if len(trace) == 16:
        trace = "0" * 16 + trace
    return (trace, span) if _valid_ids(trace, span) else None


@contextmanager
def extract(carrier: Mapping[str, object]) -> Iterator[Span | None]:
    """Make the remote context found in ``carrier`` active for the block."""
    headers = {
        str(k).lower(): v.decode() if isinstance(v, bytes) else v
        for k, v in carrier.items()
        if isinstance(v, (str, bytes))
    }
    ids = None
    if TRACEPARENT in headers:
        ids = _from_traceparent(headers[TRACEPARENT])
    b3_ids = _from_b3(headers)
    if b3_ids is not None:
        ids = b3_ids
    if ids is None:
        yield None
        return
    remote = Span(name="remote", trace_id=ids[0], span_id=ids[1], remote=True)
    token = _current.set(remote)
    try:
        yield remote
    finally:
        _current.reset(token)
from gorder import tracing


def test_trace_id_without_span_is_zero():
    assert tracing.trace_id() == tracing.INVALID_TRACE_ID
    assert tracing.current_span() is None


def test_nested_spans_share_trace():
    with tracing.start("outer") as outer:
        assert tracing.current_span() is outer
        with tracing.start("inner") as inner:
            assert inner.trace_id == outer.trace_id
            assert inner.parent_id == outer.span_id
            assert tracing.trace_id() == outer.trace_id
        assert tracing.current_span() is outer
    assert outer.ended and inner.ended
    assert tracing.current_span() is None


def test_add_event():
    with tracing.start("work") as span:
        span.add_event("order.updated")
        span.add_event("payment.created")
    assert span.events == ["order.updated", "payment.created"]


def test_inject_without_span_leaves_carrier():
    carrier = {}
    assert tracing.inject(carrier) == {}


def test_inject_extract_round_trip():
    carrier = {}
    with tracing.start("publish") as span:
        tracing.inject(carrier)
    assert carrier[tracing.TRACEPARENT] == f"00-{span.trace_id}-{span.span_id}-01"
    with tracing.extract(carrier) as remote:
        assert remote.trace_id == span.trace_id
        assert remote.span_id == span.span_id
        with tracing.start("consume") as child:
            assert child.trace_id == span.trace_id
            assert child.parent_id == span.span_id
    assert tracing.current_span() is None


def test_extract_traceparent_only():
    with tracing.start("x") as span:
        pass
    header = {"traceparent": f"00-{span.trace_id}-{span.span_id}-01"}
    with tracing.extract(header) as remote:
        assert tracing.trace_id() == span.trace_id
        assert remote.remote is True


def test_extract_short_b3_trace_id_is_padded():
    short = "a" * 16
    span_id = "b" * 16
    with tracing.extract({"X-B3-TraceId": short, "X-B3-SpanId": span_id}) as remote:
        assert remote.trace_id == "0" * 16 + short
        assert remote.span_id == span_id


def test_extract_invalid_headers_yields_none():
    bad = {"traceparent": "00-" + "0" * 32 + "-" + "1" * 16 + "-01", "other": 5}
    with tracing.extract(bad) as remote:
        assert remote is None
        assert tracing.trace_id() == tracing.INVALID_TRACE_ID
import logging
from dataclasses import dataclass

import pytest

from gorder import decorator


@dataclass
class CreateOrder:
    customer_id: str


class Recorder:
    def __init__(self):
        self.calls = []

    def inc(self, key, value):
        self.calls.append((key, value))


class Echo:
    def handle(self, cmd):
        return cmd.customer_id


class Failing:
    def handle(self, cmd):
        raise ValueError("boom")


def test_action_name():
    assert decorator.action_name(CreateOrder("c")) == "CreateOrder"


def test_todo_metrics_discards():
    assert decorator.TodoMetrics().inc("k", 1) is None


def test_success_path_counts_and_logs(caplog):
    metrics = Recorder()
    logger = logging.getLogger("gorder.test.decorator")
    handler = decorator.apply_command_decorators(Echo(), logger, metrics)
    with caplog.at_level(logging.INFO, logger="gorder.test.decorator"):
        assert handler.handle(CreateOrder("c1")) == "c1"
    assert [key for key, _ in metrics.calls] == ["querys.createorder.duration", "querys.createorder.success"]
    assert metrics.calls[1][1] == 1
    record = caplog.records[-1]
    assert record.getMessage() == "Query execute successfully"
    assert record.query == "CreateOrder"
    assert record.query_body.startswith("#")


def test_failure_path_reraises_and_counts(caplog):
    metrics = Recorder()
    logger = logging.getLogger("gorder.test.decorator.fail")
    handler = decorator.apply_query_decorators(Failing(), logger, metrics)
    with caplog.at_level(logging.INFO, logger="gorder.test.decorator.fail"):
        with pytest.raises(ValueError):
            handler.handle(CreateOrder("c2"))
    assert metrics.calls[-1] == ("querys.createorder.failure", 1)
    assert caplog.records[-1].levelno == logging.ERROR


def test_decorator_structure():
    metrics = Recorder()
    logger = logging.getLogger("x")
    wrapped = decorator.apply_query_decorators(Echo(), logger, metrics)
    assert isinstance(wrapped.base, decorator.MetricsDecorator)
    assert wrapped.base.client is metrics
from unittest import mock

import pytest

from gorder.http_server import create_app, run_http_server, run_http_server_on_addr


class FakeConfig:
    def __init__(self, values):
        self.values = values

    def get(self, key, default=None):
        return self.values.get(key, default)


def _routes(app):
    @app.get("/ok")
    def ok():
        return "fine"

    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")


def test_wrapper_routes_are_served():
    client = create_app(_routes).test_client()
    response = client.get("/ok")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "fine"


def test_unhandled_error_recovers_with_500():
    client = create_app(_routes).test_client()
    assert client.get("/boom").status_code == 500
    assert client.get("/ok").status_code == 200


def test_unknown_route_keeps_404():
    client = create_app(_routes).test_client()
    assert client.get("/missing").status_code == 404


def test_run_http_server_requires_addr():
    with pytest.raises(ValueError, match="addr is empty"):
        run_http_server("order", _routes, FakeConfig({}))


@mock.patch("flask.Flask.run")
def test_run_http_server_reads_service_addr(run):
    app = run_http_server("order", _routes, FakeConfig({"order.http-addr": "127.0.0.1:8282"}))
    run.assert_called_once_with(host="127.0.0.1", port=8282)
    assert app.test_client().get("/ok").get_data(as_text=True) == "fine"


@mock.patch("flask.Flask.run")
def test_run_on_addr_without_host_binds_all(run):
    app = run_http_server_on_addr(":8284", _routes)
    run.assert_called_once_with(host="0.0.0.0", port=8284)
    assert app.test_client().get("/boom").status_code == 500
"""Service registration and discovery through a Consul agent."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from typing import Any, Protocol

import requests

DEFAULT_CONSUL_ADDR = "127.0.0.1:8500"
CHECK_TTL = "5s"
CHECK_TIMEOUT = "5s"
DEREGISTER_CRITICAL_AFTER = "10s"
HEARTBEAT_OUTPUT = "online"
HEALTH_PASSING = "passing"
HEARTBEAT_INTERVAL = 1.0

_log = logging.getLogger(__name__)


class Registry(Protocol):
    """What a service registry offers to the services."""

    def register(self, instance_id: str, service_name: str, host_port: str) -> None: ...

    def deregister(self, instance_id: str, service_name: str) -> None: ...

    def discover(self, service_name: str) -> list[str]: ...

    def health_check(self, instance_id: str, service_name: str) -> None: ...


def _base_url(address: str) -> str:
    address = address or DEFAULT_CONSUL_ADDR
    if "://" not in address:
        address = f"http://{address}"
    return address.rstrip("/")


class ConsulRegistry:
    """Registry backed by the HTTP API of a Consul agent."""

    def __init__(self, address: str = DEFAULT_CONSUL_ADDR, session: Any = None, timeout: float = 10.0) -> None:
        self._base = _base_url(address)
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self._base}{path}"

    def register(self, instance_id: str, service_name: str, host_port: str) -> None:
        """Register an instance at ``host:port`` with a TTL health check."""
        parts = host_port.split(":")
        if len(parts) != 2:
            raise ValueError("invalid host:port format")
        host, port_text = parts
        try:
            port = int(port_text)
        except ValueError:
            port = 0
        registration = {
            "ID": instance_id,
            "Name": service_name,
            "Address": host,
            "Port": port,
            "Check": {
                "CheckID": instance_id,
                "TLSSkipVerify": False,
                "TTL": CHECK_TTL,
                "Timeout": CHECK_TIMEOUT,
                "DeregisterCriticalServiceAfter": DEREGISTER_CRITICAL_AFTER,
            },
        }
        response = self._session.put(
            self._url("/v1/agent/service/register"), json=registration, timeout=self._timeout
        )
        response.raise_for_status()

    def deregister(self, instance_id: str, service_name: str) -> None:
        """Remove the instance's health check from the agent."""
        _log.info("deregister from consul instanceID=%s serviceName=%s", instance_id, service_name)
        response = self._session.put(
            self._url(f"/v1/agent/check/deregister/{instance_id}"), timeout=self._timeout
        )
        response.raise_for_status()

    def discover(self, service_name: str) -> list[str]:
        """Return ``host:port`` of every passing instance of ``service_name``."""
        response = self._session.get(
            self._url(f"/v1/health/service/{service_name}"),
            params={"passing": "true"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        entries = response.json() or []
        return [f"{entry['Service']['Address']}:{entry['Service']['Port']}" for entry in entries]

    def health_check(self, instance_id: str, service_name: str) -> None:
        """Refresh the TTL check of the instance as passing."""
        response = self._session.put(
            self._url(f"/v1/agent/check/update/{instance_id}"),
            json={"Status": HEALTH_PASSING, "Output": HEARTBEAT_OUTPUT},
            timeout=self._timeout,
        )
        response.raise_for_status()


def generate_instance_id(service_name: str) -> str:
    """A random instance id for ``service_name``."""
    return f"{service_name}-{random.randrange(2**63)}"


def register_to_consul(registry: Registry, service_name: str, grpc_addr: str) -> Callable[[], None]:
    """Register this service, keep its check alive, and return a deregistering callable."""
    instance_id = generate_instance_id(service_name)
    registry.register(instance_id, service_name, grpc_addr)
    stop = threading.Event()

    def heartbeat() -> None:
        while not stop.is_set():
            try:
                registry.health_check(instance_id, service_name)
            except Exception as exc:
                _log.critical("no heartbeat from %s to registry, err=%s", service_name, exc)
                return
            stop.wait(HEARTBEAT_INTERVAL)

    threading.Thread(target=heartbeat, name=f"heartbeat-{service_name}", daemon=True).start()
    _log.info("registered to consul serviceName=%s addr=%s", service_name, grpc_addr)

    def deregister() -> None:
        stop.set()
        registry.deregister(instance_id, service_name)

    return deregister


def get_service_addr(registry: Registry, service_name: str) -> str:
    """Pick one discovered address of ``service_name`` at random."""
    addrs = registry.discover(service_name)
    if not addrs:
        raise LookupError(f"got empty {service_name} addrs from consul")
    _log.info("discovered %d instance of %s, addrs=%s", len(addrs), service_name, addrs)
    return random.choice(addrs)
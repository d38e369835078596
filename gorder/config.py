"""Layered configuration: a YAML file overlaid by environment variables."""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_NAME = "global.yaml"
CONFIG_ENV_VAR = "GORDER_CONFIG"

_BOUND_SETTINGS = ("stripe-key", "endpoint-stripe-secret")


def _env_name(setting: str) -> str:
    return setting.upper().replace("-", "_")


DEFAULT_BINDINGS = {setting: _env_name(setting) for setting in _BOUND_SETTINGS}

_MISSING = object()


def _lower_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            value = _lower_keys(value)
        result[str(key).lower()] = value
    return result


class Config:
    """Case-insensitive, dot-addressed view over nested settings.

    When ``env`` is given, a variable named after the upper-cased key (or an
    explicitly bound name) takes precedence over the file value.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        env: Mapping[str, str] | None = None,
        bindings: Mapping[str, str] | None = None,
    ) -> None:
        self._data = _lower_keys(data or {})
        self._env = env
        self._bindings = {k.lower(): v for k, v in (bindings or {}).items()}

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.lower().split("."):
            if not isinstance(node, Mapping) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at ``key``, or ``default`` when it is not set."""
        if self._env is not None:
            env_name = self._bindings.get(key.lower(), key.upper())
            if env_name in self._env:
                return self._env[env_name]
        value = self._lookup(key)
        return default if value is _MISSING else value

    def get_int(self, key: str, default: int = 0) -> int:
        """Return the value at ``key`` as an int, or ``default`` if unusable."""
        value = self.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def sub(self, key: str) -> Config | None:
        """Return the section at ``key`` as its own Config, or None."""
        value = self._lookup(key)
        if isinstance(value, Mapping):
            return Config(value)
        return None


_lock = threading.Lock()
_current: Config | None = None


def load_config(path: str | os.PathLike[str]) -> Config:
    """Load a YAML file (or ``global.yaml`` in a directory) and make it current."""
    global _current
    target = Path(path)
    if target.is_dir():
        target = target / CONFIG_NAME
    with target.open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"configuration in {target} is not a mapping")
    config = Config(data, env=os.environ, bindings=DEFAULT_BINDINGS)
    with _lock:
        _current = config
    return config


def get_config() -> Config:
    """Return the current configuration, loading the default file on first use."""
    global _current
    with _lock:
        if _current is not None:
            return _current
    try:
        return load_config(os.environ.get(CONFIG_ENV_VAR, CONFIG_NAME))
    except FileNotFoundError:
        config = Config({}, env=os.environ, bindings=DEFAULT_BINDINGS)
        with _lock:
            if _current is None:
                _current = config
            return _current
"""Thread-safe, lazily filled per-key instance cache."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any


class Singleton:
    """Builds one value per key with ``supplier`` and caches it."""

    def __init__(self, supplier: Callable[[str], Any]) -> None:
        self._supplier = supplier
        self._cache: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        """Return the cached value for ``key``, building it on first request."""
        try:
            return self._cache[key]
        except KeyError:
            pass
        with self._lock:
            if key not in self._cache:
                self._cache[key] = self._supplier(key)
            return self._cache[key]
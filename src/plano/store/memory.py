"""In-process store backend. Used by tests and for local development."""

from __future__ import annotations

import threading

from plano.errors import StaleWriteError
from plano.store.interface import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store with an availability switch."""

    def __init__(self, available: bool = True) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def get_data(self, key: str) -> bytes:
        self.ensure_available()
        with self._lock:
            return self._data.get(key, b"")

    def set_data(self, key: str, value: bytes) -> None:
        self.ensure_available()
        with self._lock:
            self._data[key] = bytes(value)

    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> None:
        self.ensure_available()
        with self._lock:
            if self._data.get(key, b"") != expected:
                raise StaleWriteError(key)
            self._data[key] = bytes(value)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

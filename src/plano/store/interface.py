"""Key/value store adapter — the registry's only persistence collaborator.

Keys are strings, values are opaque bytes. An empty value means the key
is absent. Adapters report StoreUnavailableError when they cannot serve.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from plano.errors import StoreUnavailableError


class KeyValueStore(ABC):
    """Contract every store backend implements."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the store can serve requests right now."""

    @abstractmethod
    def get_data(self, key: str) -> bytes:
        """Return the value under ``key``, or b"" when absent."""

    @abstractmethod
    def set_data(self, key: str, value: bytes) -> None:
        """Overwrite the value under ``key``."""

    @abstractmethod
    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> None:
        """Write ``value`` only if the current value equals ``expected``.

        ``expected == b""`` means the key must be absent.
        Raises StaleWriteError when the current value differs.
        """

    def ensure_available(self) -> None:
        if not self.is_available():
            raise StoreUnavailableError()

"""File-backed store: one JSON document holding every key.

Values are base64 text inside the document. Each write replaces the file
atomically (temp file + os.replace), so readers never see a torn write.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from plano.errors import ParseFailure, StaleWriteError, StoreUnavailableError
from plano.store.interface import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        directory = self.path.parent
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            return False
        return not self.path.exists() or os.access(self.path, os.R_OK | os.W_OK)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.error("Cannot read store file %s: %s", self.path, exc)
            raise StoreUnavailableError(f"Store file unreadable: {self.path}") from exc
        if not isinstance(doc, dict):
            raise StoreUnavailableError(f"Store file is not a JSON object: {self.path}")
        return doc

    def _save(self, doc: dict[str, str]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(doc, fh, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as exc:
            Path(tmp).unlink(missing_ok=True)
            raise StoreUnavailableError(f"Store file unwritable: {self.path}") from exc

    def _get(self, doc: dict[str, str], key: str) -> bytes:
        encoded = doc.get(key)
        if not encoded:
            return b""
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            logger.error("Corrupt value for key %r in %s: %s", key, self.path, exc)
            raise ParseFailure(f"Stored value for key {key!r} is not valid base64") from exc

    def get_data(self, key: str) -> bytes:
        self.ensure_available()
        with self._lock:
            return self._get(self._load(), key)

    def set_data(self, key: str, value: bytes) -> None:
        self.ensure_available()
        with self._lock:
            doc = self._load()
            doc[key] = base64.b64encode(value).decode("ascii")
            self._save(doc)

    def compare_and_set(self, key: str, expected: bytes, value: bytes) -> None:
        self.ensure_available()
        with self._lock:
            doc = self._load()
            if self._get(doc, key) != expected:
                raise StaleWriteError(key)
            doc[key] = base64.b64encode(value).decode("ascii")
            self._save(doc)

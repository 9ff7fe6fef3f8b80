"""Namespaced key/value settings persisted to a JSON file."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def _default_path() -> Path:
    return Path.home() / ".aivox" / "settings.json"


def _load(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    data = json.loads(text) if text.strip() else {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} does not hold an object")
    return data


def _write(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


class Settings:
    """One namespace of persistent settings.

    Changes made through a read-write instance are committed when it is
    closed; a read-only instance logs and ignores every write.
    """

    def __init__(self, namespace: str, read_write: bool = False, path: str | os.PathLike | None = None):
        self.namespace = namespace
        self.read_write = read_write
        self.path = Path(path) if path is not None else _default_path()
        stored = _load(self.path).get(namespace, {})
        self._values: dict[str, Any] = dict(stored) if isinstance(stored, dict) else {}
        self._dirty = False
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"Settings namespace {self.namespace} is closed")

    def _writable(self) -> bool:
        self._check_open()
        if not self.read_write:
            logger.warning("Namespace %s is not open for writing", self.namespace)
        return self.read_write

    def get_string(self, key: str, default: str = "") -> str:
        """Return the string stored under ``key``, or ``default``."""
        self._check_open()
        value = self._values.get(key)
        return value if isinstance(value, str) else default

    def set_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Value for {key} must be a string")
        if self._writable():
            self._values[key] = value
            self._dirty = True

    def get_int(self, key: str, default: int = 0) -> int:
        """Return the 32-bit integer stored under ``key``, or ``default``."""
        self._check_open()
        value = self._values.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return default

    def set_int(self, key: str, value: int) -> None:
        value = int(value)
        if not _INT32_MIN <= value <= _INT32_MAX:
            raise ValueError(f"Value for {key} does not fit in 32 bits: {value}")
        if self._writable():
            self._values[key] = value
            self._dirty = True

    def erase_key(self, key: str) -> None:
        """Remove ``key``; a missing key is not an error."""
        if self._writable() and key in self._values:
            del self._values[key]
            self._dirty = True

    def erase_all(self) -> None:
        if self._writable():
            self._values.clear()
            self._dirty = True

    def close(self) -> None:
        """Commit pending changes and release the namespace."""
        if self._closed:
            return
        self._closed = True
        if self.read_write and self._dirty:
            data = _load(self.path)
            data[self.namespace] = dict(self._values)
            _write(self.path, data)
            self._dirty = False

    def __enter__(self) -> Settings:
        self._check_open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
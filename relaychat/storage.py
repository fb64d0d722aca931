"""
Local key-value storage.

Persists string values under string keys in a single JSON file
(~/.relaychat/storage.json by default), the way a browser's localStorage
holds them. The conversation store serializes its own values; this layer
only moves strings to and from disk.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from relaychat.exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Durable string-to-string store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""


class MemoryStorage(KeyValueStorage):
    """Process-local storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class JsonFileStorage(KeyValueStorage):
    """
    File-backed storage.

    The whole file is read on every access and rewritten on every change,
    so external edits are always observed. Values must be strings.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(
                f"Failed to read storage file: {exc}",
                context={"path": str(self.path)},
            ) from exc
        if not isinstance(data, dict):
            raise StorageError(
                "Storage file must contain a JSON object",
                context={"path": str(self.path), "type": type(data).__name__},
            )
        return data

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StorageError(
                f"Failed to write storage file: {exc}",
                context={"path": str(self.path)},
            ) from exc

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(
                f"Stored value for {key!r} is not a string",
                context={"path": str(self.path), "key": key},
            )
        return value

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except StorageError:
            logger.warning("Overwriting unreadable storage file %s", self.path)
            data = {}
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        """Remove the storage file."""
        try:
            if self.path.exists():
                self.path.unlink()
        except OSError as exc:
            raise StorageError(
                f"Failed to remove storage file: {exc}",
                context={"path": str(self.path)},
            ) from exc

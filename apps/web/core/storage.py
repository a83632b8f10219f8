"""
Key-value storage for client state that must survive restarts.

Values are whole JSON documents: a write always replaces everything stored
under the key, never a single field.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from filelock import FileLock

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStorage(Protocol):
    """Whole-object persistence keyed by name."""

    def read(self, key: str) -> Any | None:
        """Return the stored value or None when absent."""
        ...

    def write(self, key: str, value: Any) -> None:
        """Replace the value stored under key."""
        ...

    def remove(self, key: str) -> None:
        """Forget key. Missing keys are ignored."""
        ...


class MemoryStorage:
    """Process-local storage, used in tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def write(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers never share mutable state.
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStorage:
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock")

    def read(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        with self._lock_for(path):
            try:
                return json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable state file %s: %s", path, e)
                return None

    def write(self, key: str, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(value, ensure_ascii=False)
        with self._lock_for(path):
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if not path.exists():
            return
        with self._lock_for(path):
            path.unlink(missing_ok=True)

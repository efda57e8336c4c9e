"""
Key-value storage scopes

Two kinds of scope back the storefront state:
- MemoryStorage: lives as long as the process (session-lifetime scope)
- FileStorage: JSON file on disk, survives restarts (persistent scope)

Values are plain strings; callers serialize their own payloads.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Minimal storage contract shared by every scope"""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def remove_many(self, keys: Iterable[str]) -> None:
        """Remove several keys in one write"""
        ...


class MemoryStorage:
    """In-process storage, cleared when the process exits"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class FileStorage:
    """
    JSON-file-backed storage

    Every write rewrites the whole file atomically (temp file + rename).
    A missing or unreadable file reads as empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} does not hold an object, ignoring it")
            return {}

        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=".storage_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        self._write_all(data)

    def remove_many(self, keys: Iterable[str]) -> None:
        data = self._read_all()
        present = [key for key in keys if key in data]
        if not present:
            return
        for key in present:
            del data[key]
        self._write_all(data)

    def keys(self):
        return list(self._read_all().keys())

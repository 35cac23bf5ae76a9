"""Device-local key/value storage"""

import json
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Synchronous string key/value store.

    Mirrors the browser's localStorage: values are strings, every write is
    flushed before the call returns. When no path is given the data lives
    only in memory.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: dict[str, str] = {}
        if path:
            self._data = self._read_file(path)

    @staticmethod
    def _read_file(path: str) -> dict[str, str]:
        """Read stored values, starting empty if the file is missing or unreadable"""
        if not os.path.exists(path):
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {path}: expected an object")
            return {}

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        if not self.path:
            return

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        """Get a value, None if absent"""
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store a value"""
        self._data[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        """Remove a value if present"""
        if key in self._data:
            del self._data[key]
            self._flush()

    def clear(self) -> None:
        """Remove all values"""
        self._data = {}
        self._flush()

    def keys(self) -> list[str]:
        return list(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

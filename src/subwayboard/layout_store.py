"""Key/value storage for the dashboard layout."""

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LayoutStore(ABC):
    """Opaque byte storage keyed by name."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None if the key is unknown."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> bool:
        """Store a value; returns True on success."""


class MemoryLayoutStore(LayoutStore):
    """Process-local store, lost on restart."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> bool:
        with self._lock:
            self._data[key] = bytes(value)
        return True


class FileLayoutStore(LayoutStore):
    """Stores all keys in a single JSON file."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Layout file {self.path} must contain a JSON object")
        return data

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            value = self._read_all().get(key)
        return value.encode("utf-8") if value is not None else None

    def set(self, key: str, value: bytes) -> bool:
        with self._lock:
            try:
                data = self._read_all()
                data[key] = value.decode("utf-8")
                tmp_path = f"{self.path}.tmp"
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to save layout to {self.path}: {e}")
                return False
        return True

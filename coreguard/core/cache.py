"""
CoreGuard - TTL cache backends for the manifest store.

MemoryTTLCache keeps entries in process; JsonFileTTLCache persists them to a
JSON file so a manifest survives between CLI invocations.
"""

import contextlib
import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def manifest_cache_key(release_id: str) -> str:
    """Cache key of the manifest for a release."""
    return f"core_tree_list_{release_id}"


class TTLCache(ABC):
    """Key-value store whose entries expire after a per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None on miss or expiry."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Drop key if present."""

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryTTLCache(TTLCache):
    """Thread-safe in-memory TTL cache."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class JsonFileTTLCache(TTLCache):
    """
    TTL cache persisted as one JSON document.

    Layout: {"<key>": {"expires_at": <unix ts>, "value": <json value>}}.
    Values must be JSON-serializable. Writes go through a temp file and
    os.replace so readers never see a half-written document.
    """

    def __init__(self, path: Path, clock: Callable[[], float] = time.time) -> None:
        self.path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_name, self.path)
        except OSError:
            logger.exception("Failed to write cache file %s", self.path)
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._load().get(key)
            if not isinstance(item, dict):
                return None
            if self._clock() >= float(item.get("expires_at", 0)):
                return None
            return item.get("value")

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            data = self._load()
            now = self._clock()
            data = {k: v for k, v in data.items() if isinstance(v, dict) and float(v.get("expires_at", 0)) > now}
            data[key] = {"expires_at": now + ttl_seconds, "value": value}
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


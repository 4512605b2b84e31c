"""
Local key-value storage.

String values under string keys, synchronous. Three backends:
- MemoryStorage: per-process, optional byte quota
- JsonFileStorage: one JSON document on disk, the localStorage stand-in
- RedisStorage: Upstash Redis namespaced by session, for server-side guests

Every backend raises StorageError on failure; callers decide whether to
swallow it.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from storefront import config
from storefront.config import StorageKeys
from storefront.errors import ConfigurationError, StorageError
from storefront.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """Synchronous string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def get_json(self, key: str) -> Any:
        """Read and decode a JSON value. Returns None if the key is absent."""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise StorageError(key, f"malformed JSON: {e}") from e

    def set_json(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(key, f"serialization failed: {e}") from e
        self.set(key, encoded)


class MemoryStorage(KeyValueStorage):
    """In-process storage. `quota_bytes` mimics a browser storage quota."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
            if used + len(key) + len(value) > self.quota_bytes:
                raise StorageError(key, "quota exceeded")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStorage(KeyValueStorage):
    """All keys in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, str], key: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(key, f"write failed: {e}") from e

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data, key)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data, key)


class RedisStorage(KeyValueStorage):
    """Upstash Redis storage, keys namespaced per guest session."""

    def __init__(self, redis, session_id: str, ttl_seconds: Optional[int] = None) -> None:
        self.redis = redis
        self.prefix = StorageKeys.session_prefix(session_id)
        self.ttl_seconds = ttl_seconds

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._key(key))
        except Exception as e:
            logger.error(f"Failed to read {key} from Redis: {e}")
            raise StorageError(key, f"Redis unavailable: {e}") from e
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    def set(self, key: str, value: str) -> None:
        try:
            if self.ttl_seconds:
                self.redis.set(self._key(key), value, ex=self.ttl_seconds)
            else:
                self.redis.set(self._key(key), value)
        except Exception as e:
            logger.error(f"Failed to write {key} to Redis: {e}")
            raise StorageError(key, f"Redis unavailable: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.redis.delete(self._key(key))
        except Exception as e:
            logger.error(f"Failed to delete {key} from Redis: {e}")
            raise StorageError(key, f"Redis unavailable: {e}") from e


def get_storage(session_id: Optional[str] = None) -> KeyValueStorage:
    """
    Build the storage backend named by STOREFRONT_STORAGE.

    Args:
        session_id: Guest session id, required for the redis backend
    """
    kind = config.STOREFRONT_STORAGE
    if kind == "memory":
        return MemoryStorage()
    if kind == "file":
        return JsonFileStorage(config.STOREFRONT_STORAGE_PATH)
    if kind == "redis":
        if not session_id:
            raise ConfigurationError("session_id is required for redis storage")
        from storefront.db import get_redis_sync
        return RedisStorage(get_redis_sync(), session_id)
    raise ConfigurationError(f"Unknown STOREFRONT_STORAGE: {kind}")

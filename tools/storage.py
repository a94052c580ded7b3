import json
import os
import tempfile
import threading
from typing import Dict, Optional
import redis
from loguru import logger


class StorageError(Exception):
    """Raised when a key/value backend cannot be read or written."""


class MemoryStorage:
    """Dict-backed storage. Nothing survives the process; used for tests and throwaway runs."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """Key/value storage kept in a single JSON document on disk."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or os.getenv("PENDING_LEDGER_PATH", "./data/pending_ledger.json")
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                return self._load().get(key)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._lock:
                data = self._load()
                data[key] = value
                directory = os.path.dirname(os.path.abspath(self.path))
                os.makedirs(directory, exist_ok=True)
                # Temp file + replace keeps the document whole on disk
                fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
                try:
                    with os.fdopen(fd, "w") as f:
                        json.dump(data, f)
                    os.replace(tmp_path, self.path)
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                    raise
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e


class RedisStorage:
    """Redis-backed key/value storage."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")
        self.r = client or redis.from_url(self.redis_url, decode_responses=True)

    def ping(self) -> bool:
        return bool(self.r.ping())

    def get_item(self, key: str) -> Optional[str]:
        try:
            value = self.r.get(key)
        except redis.RedisError as e:
            raise StorageError(f"Redis read failed for {key}: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set_item(self, key: str, value: str) -> None:
        try:
            self.r.set(name=key, value=value)
        except redis.RedisError as e:
            raise StorageError(f"Redis write failed for {key}: {e}") from e


def storage_from_env():
    """
    Pick the durable backend for the pending ledger.

    Redis is used when REDIS_URL is set and answers a ping. Otherwise the
    ledger lives in a JSON file, which still survives restarts.
    """
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        try:
            storage = RedisStorage(redis_url)
            storage.ping()
            logger.info("Redis connection established successfully")
            return storage
        except redis.RedisError as e:
            logger.error(f"Redis connection failed: {e}")

    storage = FileStorage()
    logger.warning(f"Using file storage for pending ledger: {storage.path}")
    return storage

"""
Script cache abstraction layer.

Provides a unified key/value interface for caching generated ScriptResults,
with in-memory, file, SQLite and Redis backends. Entries are keyed by a hash
of the request content, written once per distinct request and never evicted.

Backends raise CacheError when storage is unavailable; callers treat that as a
miss (on read) or a skipped write.
"""

import hashlib
import json
import logging
import os
import re
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import redis

from .errors import CacheError

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "qs_"

_PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DEFAULT_CACHE_DIR = _PROJECT_ROOT / "data"
DEFAULT_DB_FILENAME = "script_cache.db"
DEFAULT_FILE_CACHE_DIRNAME = "script_cache"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_]+$")


def compute_cache_key(
    cleaned_story: str,
    song_title: str,
    artist: str,
    style_descriptor: str,
    pg_safe: bool,
) -> str:
    """
    Compute the content-derived cache key for a script request.

    Hashes compact JSON of the five inputs in a fixed field order, so any
    change to story, song, artist, style or PG-safety yields a new key.

    Returns:
        "qs_" followed by the lowercase hex SHA-256 digest
    """
    payload = json.dumps(
        {
            "cleanedStory": cleaned_story,
            "songTitle": song_title,
            "artist": artist,
            "styleBlob": style_descriptor,
            "pgSafe": pg_safe,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


class ScriptCache(ABC):
    """
    Abstract interface for script cache storage.

    Values are serialized ScriptResult JSON strings. Writes for the same key
    are idempotent (same inputs produce an equivalent value).
    """

    backend_name = "base"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Look up a cached value.

        Args:
            key: Cache key from compute_cache_key

        Returns:
            Stored value, or None on a miss

        Raises:
            CacheError: If the backend is unavailable
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        """
        Store a value under a key, replacing any previous value.

        Returns:
            True if the value was stored

        Raises:
            CacheError: If the backend is unavailable
        """
        pass


class MemoryScriptCache(ScriptCache):
    """Process-local cache. Contents are lost on restart."""

    backend_name = "memory"

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            self._entries[key] = value
        return True

    def __len__(self) -> int:
        return len(self._entries)


class FileScriptCache(ScriptCache):
    """
    File-based cache.

    Stores each entry as ``<key>.json`` in the cache directory.
    """

    backend_name = "file"

    def __init__(self, cache_dir: Optional[str] = None):
        """
        Initialize file cache.

        Args:
            cache_dir: Directory for entries (default: data/script_cache/)
        """
        self.cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR / DEFAULT_FILE_CACHE_DIRNAME

    def _entry_path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise CacheError("lookup", f"Invalid cache key: {key[:40]!r}")
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CacheError("read", f"Could not read cache entry {key}: {e}") from e
        if not isinstance(entry, dict) or not isinstance(entry.get("value"), str):
            raise CacheError("read", f"Malformed cache entry {key}")
        return entry["value"]

    def set(self, key: str, value: str) -> bool:
        path = self._entry_path(key)
        entry = {
            "key": key,
            "value": value,
            "saved_at": datetime.now().isoformat(),
        }
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(entry, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise CacheError("write", f"Could not write cache entry {key}: {e}") from e
        return True


class DatabaseScriptCache(ScriptCache):
    """SQLite-backed cache. Safe to share between threads; one connection per call."""

    backend_name = "sqlite"

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite cache.

        Args:
            db_path: Path to the database file (default: data/script_cache.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_CACHE_DIR / DEFAULT_DB_FILENAME
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.db_path), check_same_thread=False)

    @contextmanager
    def _transaction(self, operation: str):
        try:
            conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            raise CacheError(operation, f"Could not open script cache database: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise CacheError(operation, f"Script cache {operation} failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self):
        if self._initialized:
            return
        with self._transaction("init") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS script_cache (
                    cache_key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    created_at TEXT
                )
            """)
        self._initialized = True

    def get(self, key: str) -> Optional[str]:
        self._ensure_schema()
        with self._transaction("read") as conn:
            row = conn.execute(
                "SELECT value FROM script_cache WHERE cache_key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> bool:
        self._ensure_schema()
        with self._transaction("write") as conn:
            conn.execute(
                "INSERT OR REPLACE INTO script_cache (cache_key, value, created_at) VALUES (?, ?, ?)",
                (key, value, datetime.now().isoformat()),
            )
        return True


class RedisScriptCache(ScriptCache):
    """Redis-backed cache, shared between processes. No TTL is set."""

    backend_name = "redis"

    def __init__(self, redis_url: Optional[str] = None, client: Optional["redis.Redis"] = None):
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis URL (default: REDIS_URL env var)
            client: Pre-built client (mainly for tests)
        """
        self.redis_url = redis_url or os.getenv("REDIS_URL", DEFAULT_REDIS_URL)
        self._client = client or redis.from_url(self.redis_url, decode_responses=True)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client.get(key)
        except redis.RedisError as e:
            raise CacheError("read", f"Redis read failed: {e}") from e

    def set(self, key: str, value: str) -> bool:
        try:
            return bool(self._client.set(key, value))
        except redis.RedisError as e:
            raise CacheError("write", f"Redis write failed: {e}") from e


def create_script_cache(backend: Optional[str] = None, path: Optional[str] = None) -> ScriptCache:
    """
    Factory function to create the configured script cache.

    Uses environment variables when arguments are omitted:
    - SCRIPT_CACHE_BACKEND: memory, file, sqlite or redis (default: sqlite)
    - SCRIPT_CACHE_PATH: directory for file/sqlite storage (default: data/)
    - REDIS_URL: Redis connection URL for the redis backend

    Returns:
        ScriptCache instance

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = (backend or os.getenv("SCRIPT_CACHE_BACKEND", "sqlite")).lower()
    base_dir = Path(path or os.getenv("SCRIPT_CACHE_PATH") or DEFAULT_CACHE_DIR)

    if backend == "memory":
        cache = MemoryScriptCache()
    elif backend == "file":
        cache = FileScriptCache(str(base_dir / DEFAULT_FILE_CACHE_DIRNAME))
    elif backend == "sqlite":
        cache = DatabaseScriptCache(str(base_dir / DEFAULT_DB_FILENAME))
    elif backend == "redis":
        cache = RedisScriptCache()
    else:
        raise ValueError(
            f"Unknown script cache backend: {backend}. "
            f"Supported backends: memory, file, sqlite, redis"
        )

    logger.info(f"Created {cache.backend_name} script cache")
    return cache

"""
Tests for script cache keys and backends.
"""

import hashlib
import json
from unittest.mock import MagicMock

import pytest
import redis

from quipsync.utils.cache import (
    DatabaseScriptCache,
    FileScriptCache,
    MemoryScriptCache,
    RedisScriptCache,
    compute_cache_key,
    create_script_cache,
)
from quipsync.utils.errors import CacheError


KEY_ARGS = ("Local bakery reopens after fire", "Here Comes the Sun", "The Beatles", "touching", True)


class TestComputeCacheKey:
    def test_deterministic(self):
        assert compute_cache_key(*KEY_ARGS) == compute_cache_key(*KEY_ARGS)

    def test_prefix_and_digest(self):
        key = compute_cache_key(*KEY_ARGS)
        assert key.startswith("qs_")
        assert len(key) == len("qs_") + 64

    def test_matches_compact_json_hash(self):
        payload = (
            '{"cleanedStory":"Local bakery reopens after fire","songTitle":"Here Comes the Sun",'
            '"artist":"The Beatles","styleBlob":"touching","pgSafe":true}'
        )
        expected = "qs_" + hashlib.sha256(payload.encode("utf-8")).hexdigest()
        assert compute_cache_key(*KEY_ARGS) == expected

    def test_pg_safe_alone_changes_key(self):
        story, song, artist, style, _ = KEY_ARGS
        assert compute_cache_key(story, song, artist, style, True) != \
            compute_cache_key(story, song, artist, style, False)

    @pytest.mark.parametrize("index, value", [
        (0, "A different story"),
        (1, "Good Day Sunshine"),
        (2, "The Beach Boys"),
        (3, "humorous"),
    ])
    def test_each_field_changes_key(self, index, value):
        args = list(KEY_ARGS)
        args[index] = value
        assert compute_cache_key(*args) != compute_cache_key(*KEY_ARGS)

    def test_non_ascii_hashed_as_utf8(self):
        payload = json.dumps(
            {"cleanedStory": "Café reopens", "songTitle": "Sol", "artist": "Björk",
             "styleBlob": "touching", "pgSafe": False},
            separators=(",", ":"), ensure_ascii=False,
        )
        expected = "qs_" + hashlib.sha256(payload.encode("utf-8")).hexdigest()
        assert compute_cache_key("Café reopens", "Sol", "Björk", "touching", False) == expected


class TestMemoryScriptCache:
    def test_miss_then_hit(self, memory_cache):
        assert memory_cache.get("qs_abc") is None
        assert memory_cache.set("qs_abc", '{"a": 1}') is True
        assert memory_cache.get("qs_abc") == '{"a": 1}'
        assert len(memory_cache) == 1


class TestFileScriptCache:
    def test_round_trip(self, tmp_path):
        cache = FileScriptCache(str(tmp_path / "entries"))
        assert cache.get("qs_abc") is None
        cache.set("qs_abc", '{"a": 1}')
        assert cache.get("qs_abc") == '{"a": 1}'
        assert (tmp_path / "entries" / "qs_abc.json").exists()

    def test_overwrite_is_idempotent(self, tmp_path):
        cache = FileScriptCache(str(tmp_path))
        cache.set("qs_abc", "one")
        cache.set("qs_abc", "two")
        assert cache.get("qs_abc") == "two"

    def test_unsafe_key_rejected(self, tmp_path):
        cache = FileScriptCache(str(tmp_path))
        with pytest.raises(CacheError):
            cache.get("../etc/passwd")

    def test_corrupt_entry_raises_cache_error(self, tmp_path):
        cache = FileScriptCache(str(tmp_path))
        (tmp_path / "qs_bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CacheError):
            cache.get("qs_bad")


class TestDatabaseScriptCache:
    def test_round_trip(self, tmp_path):
        cache = DatabaseScriptCache(str(tmp_path / "cache.db"))
        assert cache.get("qs_abc") is None
        assert cache.set("qs_abc", '{"a": 1}') is True
        assert cache.get("qs_abc") == '{"a": 1}'

    def test_replace_existing(self, tmp_path):
        cache = DatabaseScriptCache(str(tmp_path / "cache.db"))
        cache.set("qs_abc", "one")
        cache.set("qs_abc", "two")
        assert cache.get("qs_abc") == "two"

    def test_persists_across_instances(self, tmp_path):
        db_path = str(tmp_path / "cache.db")
        DatabaseScriptCache(db_path).set("qs_abc", "kept")
        assert DatabaseScriptCache(db_path).get("qs_abc") == "kept"

    def test_unopenable_database_raises_cache_error(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file", encoding="utf-8")
        cache = DatabaseScriptCache(str(blocker / "cache.db"))
        with pytest.raises(CacheError):
            cache.get("qs_abc")


class TestRedisScriptCache:
    def test_get_and_set_use_client(self):
        client = MagicMock()
        client.get.return_value = "cached"
        client.set.return_value = True
        cache = RedisScriptCache(client=client)

        assert cache.get("qs_abc") == "cached"
        assert cache.set("qs_abc", "value") is True
        client.get.assert_called_once_with("qs_abc")
        client.set.assert_called_once_with("qs_abc", "value")

    def test_redis_errors_become_cache_errors(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("refused")
        client.set.side_effect = redis.ConnectionError("refused")
        cache = RedisScriptCache(client=client)

        with pytest.raises(CacheError):
            cache.get("qs_abc")
        with pytest.raises(CacheError):
            cache.set("qs_abc", "value")


class TestCreateScriptCache:
    def test_memory_backend(self):
        assert isinstance(create_script_cache("memory"), MemoryScriptCache)

    def test_sqlite_is_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SCRIPT_CACHE_BACKEND", raising=False)
        cache = create_script_cache(path=str(tmp_path))
        assert isinstance(cache, DatabaseScriptCache)
        assert cache.db_path.parent == tmp_path

    def test_backend_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCRIPT_CACHE_BACKEND", "file")
        monkeypatch.setenv("SCRIPT_CACHE_PATH", str(tmp_path))
        cache = create_script_cache()
        assert isinstance(cache, FileScriptCache)
        assert cache.cache_dir.parent == tmp_path

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown script cache backend"):
            create_script_cache("dynamo")


class TestMalformedFileEntries:
    """Entries that parse as JSON but are not cache records are read errors."""

    @pytest.mark.parametrize("content", ["[]", '"x"', '{"key": "qs_bad"}', '{"value": 5}'])
    def test_malformed_entry_raises_cache_error(self, tmp_path, content):
        cache = FileScriptCache(str(tmp_path))
        (tmp_path / "qs_bad.json").write_text(content, encoding="utf-8")
        with pytest.raises(CacheError):
            cache.get("qs_bad")

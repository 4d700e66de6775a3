"""
Unit tests for database/caching module.
"""

import os
import sqlite3
import threading

import pytest
import imagehash
import numpy as np

from similar_images.database import CacheStats, HashCache, get_cache, make_cache_key, reset_cache
from similar_images.models import CachedHash, FileEntry, HashVariant
from similar_images.params import Parameters


def _cached(fill=True, variants=1):
    bits = np.zeros((8, 8), dtype=bool)
    bits[::2] = fill
    return CachedHash(
        width=100,
        height=80,
        hash_variants=tuple(
            HashVariant(name, imagehash.ImageHash(np.roll(bits, i, axis=1)))
            for i, name in enumerate(['original', 'mirror'][:variants])
        ),
    )


def _entry(path="/photos/a.jpg", size=1234, mtime=1700000000.5):
    return FileEntry(path, size, mtime)


class TestCacheStats:
    """Test CacheStats dataclass."""

    def test_hit_rate_calculation(self):
        stats = CacheStats(cache_hits=75, cache_misses=25, total_files=100)
        assert stats.hit_rate == 75.0

    def test_hit_rate_no_files(self):
        assert CacheStats().hit_rate == 0.0


class TestMakeCacheKey:
    """Cache keys must change with any hashing setting."""

    def test_key_includes_file_identity(self):
        params = Parameters.create()
        key = make_cache_key(_entry(), params)
        assert key != make_cache_key(_entry(size=999), params)
        assert key != make_cache_key(_entry(mtime=1.0), params)
        assert key != make_cache_key(_entry(path="/photos/b.jpg"), params)

    @pytest.mark.parametrize("change", [
        {'hash_size': 16},
        {'hash_algorithm': 'blockhash'},
        {'resize_filter': 'nearest'},
        {'geometric_invariance': 'mirror_flip'},
    ])
    def test_key_includes_settings(self, change):
        entry = _entry()
        assert make_cache_key(entry, Parameters.create()) != make_cache_key(
            entry, Parameters.create(**change)
        )

    def test_key_ignores_grouping_settings(self):
        entry = _entry()
        assert make_cache_key(entry, Parameters.create(similarity_threshold=0)) == make_cache_key(
            entry, Parameters.create(similarity_threshold=20, exclude_same_size=True)
        )


class TestHashCache:
    """Test HashCache class."""

    def test_initialization(self, temp_cache_db):
        HashCache(db_path=temp_cache_db)
        assert os.path.exists(temp_cache_db)

    def test_store_and_lookup(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cached = _cached(variants=2)

        assert cache.store("key1", _entry(), cached) is True
        result = cache.lookup("key1")

        assert result == cached
        assert [v.transform for v in result.hash_variants] == ['original', 'mirror']

    def test_lookup_missing(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        assert cache.lookup("nope") is None

    def test_store_replaces(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached(fill=True))
        cache.store("key1", _entry(), _cached(fill=False))
        assert cache.lookup("key1") == _cached(fill=False)

    def test_batch_operations(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        items = [(f"key{i}", _entry(path=f"/photos/{i}.jpg"), _cached()) for i in range(5)]

        assert cache.store_batch(items) == 5
        results = cache.lookup_batch(["key0", "key3", "missing"])

        assert results["key0"] == _cached()
        assert results["key3"] == _cached()
        assert results["missing"] is None

    def test_lookup_batch_empty(self, temp_cache_db):
        assert HashCache(db_path=temp_cache_db).lookup_batch([]) == {}

    def test_lookup_batch_many_keys(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        items = [(f"key{i}", _entry(path=f"/p/{i}.jpg"), _cached()) for i in range(1200)]
        cache.store_batch(items)
        results = cache.lookup_batch([f"key{i}" for i in range(1200)])
        assert all(value is not None for value in results.values())

    def test_corrupt_entry_is_a_miss(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached())

        conn = sqlite3.connect(temp_cache_db)
        conn.execute("UPDATE hashes SET variants = 'not json' WHERE cache_key = 'key1'")
        conn.commit()
        conn.close()

        assert cache.lookup("key1") is None
        assert cache.lookup_batch(["key1"]) == {"key1": None}

    def test_invalidate(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached())
        cache.store("key2", _entry(), _cached())
        cache.invalidate("/photos/a.jpg")
        assert cache.lookup("key1") is None
        assert cache.lookup("key2") is None

    def test_cleanup_missing(self, temp_cache_db, temp_dir):
        cache = HashCache(db_path=temp_cache_db)
        existing = temp_dir / "exists.jpg"
        existing.write_bytes(b"x")

        cache.store("gone", _entry(path=str(temp_dir / "gone.jpg")), _cached())
        cache.store("here", _entry(path=str(existing)), _cached())

        assert cache.cleanup_missing() == 1
        assert cache.lookup("here") is not None

    def test_cleanup_stale(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached())

        conn = sqlite3.connect(temp_cache_db)
        conn.execute("UPDATE hashes SET last_accessed = 0")
        conn.commit()
        conn.close()

        assert cache.cleanup_stale(max_age_days=1) == 1
        assert cache.get_stats()['total_entries'] == 0

    def test_get_stats(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached())
        cache.store("key2", _entry(), _cached())
        stats = cache.get_stats()
        assert stats['total_entries'] == 2
        assert stats['distinct_files'] == 1
        assert stats['db_path'] == temp_cache_db

    def test_clear(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)
        cache.store("key1", _entry(), _cached())
        cache.clear()
        assert cache.get_stats()['total_entries'] == 0

    def test_persists_across_instances(self, temp_cache_db):
        HashCache(db_path=temp_cache_db).store("key1", _entry(), _cached())
        assert HashCache(db_path=temp_cache_db).lookup("key1") == _cached()

    def test_concurrent_writers(self, temp_cache_db):
        cache = HashCache(db_path=temp_cache_db)

        def worker(n):
            for i in range(20):
                cache.store(f"w{n}-{i}", _entry(path=f"/w/{n}/{i}.jpg"), _cached())
                cache.lookup(f"w{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cache.get_stats()['total_entries'] == 80


class TestGlobalCache:
    """Test the global cache singleton."""

    def test_singleton(self):
        assert get_cache() is get_cache()

    def test_uses_configured_path(self, tmp_path):
        assert get_cache().db_path == str(tmp_path / 'global_cache.db')

    def test_reset(self):
        first = get_cache()
        reset_cache()
        assert get_cache() is not first

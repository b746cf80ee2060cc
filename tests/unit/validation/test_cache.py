"""Tests for the validation result cache."""

import threading
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

from procdoc.config import FingerprintMode
from procdoc.models.validation import SchemaValidationResult, ValidationMetrics
from procdoc.validation.cache import CacheStats, Fingerprint, ValidationCache


def result() -> SchemaValidationResult:
    return SchemaValidationResult.valid_result()


class TestFingerprint:
    """Test Fingerprint derivation."""

    def test_same_path_and_content(self, tmp_path):
        assert Fingerprint.of(tmp_path / "a.xml", b"<p/>") == Fingerprint.of(tmp_path / "a.xml", b"<p/>")

    def test_content_change_changes_fingerprint(self, tmp_path):
        assert Fingerprint.of(tmp_path / "a.xml", b"<p/>") != Fingerprint.of(tmp_path / "a.xml", b"<q/>")

    def test_path_matters_by_default(self, tmp_path):
        assert Fingerprint.of(tmp_path / "a.xml", b"<p/>") != Fingerprint.of(tmp_path / "b.xml", b"<p/>")

    def test_content_mode_ignores_path(self, tmp_path):
        first = Fingerprint.of(tmp_path / "a.xml", b"<p/>", FingerprintMode.CONTENT)
        second = Fingerprint.of(tmp_path / "b.xml", b"<p/>", FingerprintMode.CONTENT)

        assert first == second
        assert first.path is None

    def test_relative_and_absolute_paths_agree(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert Fingerprint.of(Path("a.xml"), b"<p/>") == Fingerprint.of(tmp_path / "a.xml", b"<p/>")


class TestCacheStats:
    """Test hit rate computation."""

    def test_empty_hit_rate(self):
        assert CacheStats().hit_rate == 0.0

    def test_hit_rate(self):
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75


class TestValidationCache:
    """Test ValidationCache behavior."""

    def test_computes_once(self):
        cache = ValidationCache()
        key = Fingerprint(path=None, content_hash="abc")
        compute = Mock(return_value=result())

        first = cache.get_or_compute(key, compute)
        second = cache.get_or_compute(key, compute)

        assert first is second
        compute.assert_called_once()
        stats = cache.stats
        assert (stats.hits, stats.misses, stats.computations, stats.size) == (1, 1, 1, 1)

    def test_failed_computation_is_not_cached(self):
        cache = ValidationCache()
        key = Fingerprint(path=None, content_hash="abc")
        compute = Mock(side_effect=[RuntimeError("boom"), result()])

        with pytest.raises(RuntimeError, match="boom"):
            cache.get_or_compute(key, compute)

        assert key not in cache
        assert cache.get_or_compute(key, compute).valid is True
        assert compute.call_count == 2

    def test_lru_eviction(self):
        cache = ValidationCache(max_entries=2)
        keys = [Fingerprint(path=None, content_hash=h) for h in ("a", "b", "c")]

        cache.get_or_compute(keys[0], result)
        cache.get_or_compute(keys[1], result)
        cache.get(keys[0])
        cache.get_or_compute(keys[2], result)

        assert keys[0] in cache
        assert keys[1] not in cache
        assert keys[2] in cache
        assert cache.stats.evictions == 1

    def test_invalid_max_entries(self):
        with pytest.raises(ValueError):
            ValidationCache(max_entries=0)

    def test_invalidate_and_clear(self):
        cache = ValidationCache()
        key = Fingerprint(path=None, content_hash="abc")
        cache.get_or_compute(key, result)

        assert cache.invalidate(key) is True
        assert cache.invalidate(key) is False

        cache.get_or_compute(key, result)
        cache.clear()
        assert len(cache) == 0
        assert cache.stats == CacheStats()

    def test_concurrent_callers_share_one_computation(self):
        cache = ValidationCache()
        key = Fingerprint(path=None, content_hash="shared")
        shared = result()

        def slow():
            time.sleep(0.05)
            return shared

        compute = Mock(side_effect=slow)
        barrier = threading.Barrier(8)
        outcomes = []

        def worker():
            barrier.wait()
            outcomes.append(cache.get_or_compute(key, compute))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        compute.assert_called_once()
        assert len(outcomes) == 8
        assert all(outcome is shared for outcome in outcomes)
        stats = cache.stats
        assert stats.misses == 1
        assert stats.hits == 7


class FakeClock:
    """Manually advanced time source."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestCacheExpiry:
    """Test TTL handling and size accounting."""

    def test_expired_entry_is_recomputed(self):
        clock = FakeClock()
        cache = ValidationCache(ttl_seconds=10, clock=clock)
        key = Fingerprint(path=None, content_hash="abc")
        compute = Mock(side_effect=[result(), result()])

        cache.get_or_compute(key, compute)
        clock.now = 5
        cache.get_or_compute(key, compute)
        assert compute.call_count == 1

        clock.now = 16
        assert cache.get(key) is None
        cache.get_or_compute(key, compute)

        assert compute.call_count == 2
        assert cache.stats.expirations == 1

    def test_clear_expired(self):
        clock = FakeClock()
        cache = ValidationCache(ttl_seconds=10, clock=clock)
        old = Fingerprint(path=None, content_hash="old")
        fresh = Fingerprint(path=None, content_hash="fresh")

        cache.get_or_compute(old, result)
        clock.now = 8
        cache.get_or_compute(fresh, result)
        clock.now = 12

        assert cache.clear_expired() == 1
        assert old not in cache
        assert fresh in cache
        assert cache.stats.expirations == 1

    def test_clear_expired_without_ttl(self):
        cache = ValidationCache()
        cache.get_or_compute(Fingerprint(path=None, content_hash="abc"), result)

        assert cache.clear_expired() == 0
        assert len(cache) == 1

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            ValidationCache(ttl_seconds=0)

    def test_cached_bytes(self):
        cache = ValidationCache()
        for content_hash, size in (("a", 100), ("b", 250)):
            sized = SchemaValidationResult.assemble([], metrics=ValidationMetrics(file_size_bytes=size))
            cache.get_or_compute(Fingerprint(path=None, content_hash=content_hash), lambda: sized)
        cache.get_or_compute(Fingerprint(path=None, content_hash="c"), result)

        assert cache.stats.cached_bytes == 350
        assert cache.stats.size == 3

"""Tests for the two-tier DocumentCache."""

from __future__ import annotations

from pathlib import Path

import pytest

from swaggen.cache import DocumentCache


def _document(title: str = "Pets") -> dict:
    return {"openapi": "3.0.3", "info": {"title": title, "version": "1"}, "paths": {}}


@pytest.fixture()
def disabled_cache(tmp_path):
    c = DocumentCache(tmp_path / "disabled", enabled=False)
    yield c
    c.close()


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_and_get(self, document_cache: DocumentCache) -> None:
        key = DocumentCache.make_key("https://api.example.com/openapi.json")
        document_cache.set(key, _document())
        assert document_cache.get(key) == _document()

    def test_cache_miss_returns_none(self, document_cache: DocumentCache) -> None:
        assert document_cache.get(DocumentCache.make_key("https://missing")) is None

    def test_set_replaces_previous_entry(self, document_cache: DocumentCache) -> None:
        key = DocumentCache.make_key("ref")
        document_cache.set(key, _document("old"))
        document_cache.set(key, _document("new"))
        assert document_cache.get(key)["info"]["title"] == "new"


# ------------------------------------------------------------------ #
# Disk tier
# ------------------------------------------------------------------ #


class TestDiskTier:
    def test_entry_survives_a_new_instance(self, tmp_path: Path, clock) -> None:
        """A second cache on the same directory reads what the first wrote."""
        key = DocumentCache.make_key("ref")
        first = DocumentCache(tmp_path / "shared", clock=clock)
        first.set(key, _document())
        first.close()

        second = DocumentCache(tmp_path / "shared", clock=clock)
        try:
            assert second.get(key) == _document()
            assert second.stats()["memory_entries"] == 1  # promoted
        finally:
            second.close()

    def test_memory_only_cache_has_no_disk_entries(self, clock) -> None:
        cache = DocumentCache(None, clock=clock)
        cache.set("k", _document())
        assert cache.get("k") == _document()
        assert cache.stats()["disk_entries"] is None
        assert cache.stats()["directory"] is None

    def test_unusable_directory_falls_back_to_memory(self, tmp_path: Path, clock) -> None:
        """A directory that cannot be created disables only the disk tier."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        cache = DocumentCache(blocker / "cache", clock=clock)
        cache.set("k", _document())
        assert cache.get("k") == _document()
        assert cache.stats()["disk_entries"] is None
        cache.close()


# ------------------------------------------------------------------ #
# TTL
# ------------------------------------------------------------------ #


class TestTTL:
    def test_entry_fresh_within_ttl(self, document_cache: DocumentCache, clock) -> None:
        document_cache.set("k", _document())
        clock.advance(599)
        assert document_cache.get("k") is not None

    def test_entry_stale_after_ttl(self, document_cache: DocumentCache, clock) -> None:
        document_cache.set("k", _document())
        clock.advance(601)
        assert document_cache.get("k") is None

    def test_per_lookup_ttl_overrides_default(self, document_cache: DocumentCache, clock) -> None:
        document_cache.set("k", _document())
        clock.advance(120)
        assert document_cache.get("k", ttl_seconds=60) is None
        assert document_cache.get("k", ttl_seconds=3600) is not None

    def test_stale_disk_entry_not_returned(self, tmp_path: Path, clock) -> None:
        first = DocumentCache(tmp_path / "shared", ttl_seconds=60, clock=clock)
        first.set("k", _document())
        first.close()
        clock.advance(61)

        second = DocumentCache(tmp_path / "shared", ttl_seconds=60, clock=clock)
        try:
            assert second.get("k") is None
        finally:
            second.close()


# ------------------------------------------------------------------ #
# Disabled cache
# ------------------------------------------------------------------ #


class TestDisabled:
    def test_disabled_get_returns_none(self, disabled_cache: DocumentCache) -> None:
        disabled_cache.set("k", _document())
        assert disabled_cache.get("k") is None

    def test_disabled_stats(self, disabled_cache: DocumentCache) -> None:
        stats = disabled_cache.stats()
        assert stats["enabled"] is False
        assert stats["memory_entries"] == 0


# ------------------------------------------------------------------ #
# Evict and clear
# ------------------------------------------------------------------ #


class TestEvictAndClear:
    def test_evict_removes_one_entry(self, document_cache: DocumentCache) -> None:
        document_cache.set("a", _document("a"))
        document_cache.set("b", _document("b"))
        document_cache.evict("a")
        assert document_cache.get("a") is None
        assert document_cache.get("b") is not None

    def test_evict_unknown_key_is_noop(self, document_cache: DocumentCache) -> None:
        document_cache.evict("nothing-here")

    def test_clear_removes_both_tiers(self, document_cache: DocumentCache) -> None:
        document_cache.set("a", _document())
        document_cache.clear()
        stats = document_cache.stats()
        assert stats["memory_entries"] == 0
        assert stats["disk_entries"] == 0


# ------------------------------------------------------------------ #
# Stats
# ------------------------------------------------------------------ #


class TestStats:
    def test_stats_after_inserts(self, document_cache: DocumentCache, tmp_path: Path) -> None:
        document_cache.set("a", _document())
        document_cache.set("b", _document())
        stats = document_cache.stats()
        assert stats["memory_entries"] == 2
        assert stats["disk_entries"] == 2
        assert stats["directory"] == str(tmp_path / "doc-cache")
        assert stats["ttl_seconds"] == 600


# ------------------------------------------------------------------ #
# Key derivation
# ------------------------------------------------------------------ #


class TestCacheKey:
    def test_key_deterministic(self) -> None:
        assert DocumentCache.make_key("u", {"a": "1"}) == DocumentCache.make_key("u", {"a": "1"})

    def test_key_varies_with_reference(self) -> None:
        assert DocumentCache.make_key("u1") != DocumentCache.make_key("u2")

    def test_key_varies_with_headers(self) -> None:
        assert DocumentCache.make_key("u", {"Authorization": "a"}) != DocumentCache.make_key(
            "u", {"Authorization": "b"}
        )

    def test_key_header_order_independent(self) -> None:
        assert DocumentCache.make_key("u", {"a": "1", "b": "2"}) == DocumentCache.make_key(
            "u", {"b": "2", "a": "1"}
        )

    def test_key_none_headers_equals_empty(self) -> None:
        assert DocumentCache.make_key("u", None) == DocumentCache.make_key("u", {})


# ------------------------------------------------------------------ #
# Close
# ------------------------------------------------------------------ #


class TestClose:
    def test_double_close(self, tmp_path: Path) -> None:
        cache = DocumentCache(tmp_path / "c")
        cache.set("k", _document())
        cache.close()
        cache.close()

    def test_close_before_use(self, disabled_cache: DocumentCache) -> None:
        disabled_cache.close()
